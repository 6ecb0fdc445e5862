# app/services/admission.py
"""
Check-in admission.

Checks run in a fixed order and stop at the first failure, each mapping to
one error kind:

    input -> session exists -> session accepting -> duplicate student
          -> duplicate origin (when enforced) -> insert

Per-address rate limiting is applied before any of these, at the HTTP layer
(see app.core.limiter). The duplicate pre-checks only give early, friendly
answers: the unique constraints on attendance_records are what actually keep
concurrent submissions from both being admitted, so an IntegrityError on
insert is mapped back to the matching error kind.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    DuplicateOriginError,
    DuplicateStudentError,
    InvalidInputError,
    SessionClosedError,
    SessionNotFoundError,
    StoreFailureError,
)
from app.crud.attendance import create_checkin, get_checkin_by_origin, get_checkin_by_student
from app.crud.session import get_session_by_id
from app.models.attendance import (
    AttendanceRecord,
    FINGERPRINT_LENGTH,
    ORIGIN_CONSTRAINT,
    ORIGIN_LENGTH,
    STUDENT_CONSTRAINT,
    STUDENT_FIELD_LENGTH,
    USER_AGENT_LENGTH,
)
from app.models.session import AcceptanceState
from app.utils.clock import utcnow

logger = logging.getLogger(__name__)


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


def _clip(value: Optional[str], length: int) -> Optional[str]:
    """Request metadata is advisory; keep what fits the column."""
    value = _clean(value)
    return value[:length] or None


class AdmissionEngine:
    def __init__(self, enforce_unique_origin: Optional[bool] = None):
        # None defers to settings at call time
        self._enforce_unique_origin = enforce_unique_origin

    @property
    def enforce_unique_origin(self) -> bool:
        if self._enforce_unique_origin is None:
            return settings.ENFORCE_UNIQUE_ORIGIN
        return self._enforce_unique_origin

    async def submit_checkin(
            self,
            db: AsyncSession,
            session_id: str,
            student_id: str,
            student_name: str,
            origin_address: Optional[str] = None,
            client_signature: Optional[str] = None,
            device_fingerprint: Optional[str] = None,
            now: Optional[datetime] = None
    ) -> AttendanceRecord:
        """
        Admit a check-in or raise the first rejection that applies.

        Returns:
            The committed AttendanceRecord

        Raises:
            InvalidInputError, SessionNotFoundError, SessionClosedError,
            DuplicateStudentError, DuplicateOriginError, StoreFailureError
        """
        session_id = _clean(session_id)
        student_id = _clean(student_id)
        student_name = _clean(student_name)
        origin_address = _clip(origin_address, ORIGIN_LENGTH)
        client_signature = _clip(client_signature, USER_AGENT_LENGTH)
        device_fingerprint = _clip(device_fingerprint, FINGERPRINT_LENGTH)

        missing = [
            name for name, value in (
                ("sessionId", session_id),
                ("studentId", student_id),
                ("studentName", student_name),
            ) if not value
        ]
        if missing:
            raise InvalidInputError(
                "Invalid input data. Backend validation failed.",
                details={"missing": missing}
            )

        too_long = [
            name for name, value in (
                ("studentId", student_id),
                ("studentName", student_name),
            ) if len(value) > STUDENT_FIELD_LENGTH
        ]
        if too_long:
            raise InvalidInputError(
                f"{', '.join(too_long)} must be at most {STUDENT_FIELD_LENGTH} characters",
                details={"too_long": too_long}
            )

        logger.info(f"[ATTENDANCE ATTEMPT] IP: {origin_address} | Student: {student_id} | Session: {session_id}")

        enforce_origin = self.enforce_unique_origin and origin_address is not None

        try:
            attendance_session = await get_session_by_id(db, session_id)
            if attendance_session is None:
                raise SessionNotFoundError(session_id)

            state = attendance_session.acceptance_state(now or utcnow())
            if state is not AcceptanceState.ACCEPTING:
                logger.info(f"Check-in refused for session {session_id}: {state.value}")
                raise SessionClosedError(session_id, expired=state is AcceptanceState.EXPIRED)

            if await get_checkin_by_student(db, session_id, student_id):
                raise DuplicateStudentError(session_id, student_id)

            if enforce_origin and await get_checkin_by_origin(db, session_id, origin_address):
                raise DuplicateOriginError(session_id)

            record = await create_checkin(
                db,
                session_id=session_id,
                student_id=student_id,
                student_name=student_name,
                origin_address=origin_address,
                user_agent=client_signature,
                device_fingerprint=device_fingerprint,
                claim_origin=enforce_origin
            )

        except IntegrityError as e:
            raise self._classify_integrity_error(e, session_id, student_id) from e
        except SQLAlchemyError as e:
            logger.error(f"[ATTENDANCE ERROR] session={session_id} student={student_id}: {e}", exc_info=True)
            raise StoreFailureError() from e

        logger.info(f"Attendance logged: student={student_id} session={session_id} id={record.id}")
        return record

    @staticmethod
    def _classify_integrity_error(error: IntegrityError, session_id: str, student_id: str):
        """Map whichever store constraint fired to its error kind."""
        message = str(error.orig if error.orig is not None else error).lower()

        if ORIGIN_CONSTRAINT in message or "origin_claim" in message:
            logger.info(f"Duplicate origin rejected by store for session {session_id}")
            return DuplicateOriginError(session_id)
        if STUDENT_CONSTRAINT in message or "student_id" in message:
            logger.info(f"Duplicate student {student_id} rejected by store for session {session_id}")
            return DuplicateStudentError(session_id, student_id)
        if "foreign key" in message:
            # session deleted between the existence check and the insert
            return SessionNotFoundError(session_id)

        logger.error(f"[ATTENDANCE ERROR] unmapped integrity error: {message}")
        return StoreFailureError()


admission_engine = AdmissionEngine()
