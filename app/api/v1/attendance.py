# app/api/v1/attendance.py
import logging

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.limiter import CHECKIN_SCOPE, checkin_rate_limit, limiter
from app.core.request_context import get_client_address, get_user_agent
from app.dependencies import get_write_db
from app.models.attendance import AttendanceRecord
from app.schemas.attendance import CheckinData, CheckinRequest, CheckinResponse
from app.services.admission import admission_engine

# Setup logging
logger = logging.getLogger(__name__)
router = APIRouter(prefix="/attendance", tags=["attendance"])


def to_checkin_response(record: AttendanceRecord) -> CheckinResponse:
    return CheckinResponse(
        message="Attendance securely logged!",
        data=CheckinData(student_id=record.student_id, session_id=record.session_id)
    )


async def admit(db: AsyncSession, request: Request, checkin: CheckinRequest, session_id: str) -> CheckinResponse:
    record = await admission_engine.submit_checkin(
        db,
        session_id=session_id,
        student_id=checkin.student_id,
        student_name=checkin.student_name,
        origin_address=get_client_address(request),
        client_signature=get_user_agent(request),
        device_fingerprint=checkin.device_fingerprint or "Unknown"
    )
    return to_checkin_response(record)


@router.post("/mark", response_model=CheckinResponse, status_code=status.HTTP_201_CREATED)
@limiter.shared_limit(checkin_rate_limit, scope=CHECKIN_SCOPE)
async def mark_attendance(
        request: Request,  # Required for rate limiting
        checkin: CheckinRequest,
        db: AsyncSession = Depends(get_write_db)
):
    """
    Student self check-in.

    - **studentId**, **studentName**, **sessionId**: required, non-blank
    - **deviceFingerprint**: optional client identifier

    The client address and user-agent are taken from the request.
    """
    return await admit(db, request, checkin, checkin.session_id or "")
