# app/services/lifecycle.py
"""
Session lifecycle: create (active), close, reopen, delete.

Only the creator may change or delete a session. Expiry is never written
back as a status; it is evaluated when a check-in arrives, so a session
listed as "active" may already be expired.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    ForbiddenError,
    InvalidInputError,
    SessionNotFoundError,
    StoreFailureError,
)
from app.crud import session as crud_session
from app.models.session import AttendanceSession, SessionStatus
from app.utils.clock import utcnow

logger = logging.getLogger(__name__)


class SessionLifecycle:

    async def create_session(
            self,
            db: AsyncSession,
            owner_id: str,
            title: str,
            description: Optional[str] = "",
            expires_in_minutes: Optional[int] = None,
            now: Optional[datetime] = None
    ) -> AttendanceSession:
        title = (title or "").strip()
        if not title:
            raise InvalidInputError("Title is required")
        if expires_in_minutes is not None and expires_in_minutes <= 0:
            raise InvalidInputError("expiresInMinutes must be a positive number of minutes")

        expires_at = None
        if expires_in_minutes:
            expires_at = (now or utcnow()) + timedelta(minutes=expires_in_minutes)

        try:
            return await crud_session.create_session(
                db,
                creator_id=owner_id,
                title=title,
                description=(description or "").strip(),
                expires_at=expires_at
            )
        except SQLAlchemyError as e:
            raise StoreFailureError("Failed to create session") from e

    async def get_session(self, db: AsyncSession, session_id: str) -> AttendanceSession:
        try:
            attendance_session = await crud_session.get_session_by_id(db, session_id)
        except SQLAlchemyError as e:
            raise StoreFailureError("Failed to load session") from e
        if attendance_session is None:
            raise SessionNotFoundError(session_id)
        return attendance_session

    async def get_owned_session(self, db: AsyncSession, owner_id: str, session_id: str) -> AttendanceSession:
        attendance_session = await self.get_session(db, session_id)
        if attendance_session.creator_id != owner_id:
            logger.warning(f"User {owner_id} denied access to session {session_id}")
            raise ForbiddenError()
        return attendance_session

    async def set_status(self, db: AsyncSession, owner_id: str, session_id: str, status: str) -> AttendanceSession:
        """
        Close or reopen a session.

        Reopening leaves expires_at as it is, so a reopened session whose
        expiry has passed still refuses check-ins.
        """
        try:
            new_status = SessionStatus((status or "").strip().lower())
        except ValueError:
            raise InvalidInputError(
                f"Unknown status '{status}'. Use 'active' or 'closed'.",
                details={"status": status}
            )

        attendance_session = await self.get_owned_session(db, owner_id, session_id)
        if attendance_session.status == new_status.value:
            return attendance_session

        try:
            return await crud_session.update_session_status(db, attendance_session, new_status)
        except SQLAlchemyError as e:
            raise StoreFailureError("Failed to update session") from e

    async def close_session(self, db: AsyncSession, owner_id: str, session_id: str) -> AttendanceSession:
        return await self.set_status(db, owner_id, session_id, SessionStatus.CLOSED.value)

    async def reopen_session(self, db: AsyncSession, owner_id: str, session_id: str) -> AttendanceSession:
        return await self.set_status(db, owner_id, session_id, SessionStatus.ACTIVE.value)

    async def delete_session(self, db: AsyncSession, owner_id: str, session_id: str) -> int:
        """Irreversible; removes every check-in of the session with it."""
        await self.get_owned_session(db, owner_id, session_id)
        try:
            return await crud_session.delete_session(db, session_id)
        except SQLAlchemyError as e:
            raise StoreFailureError("Failed to delete session") from e


session_lifecycle = SessionLifecycle()
