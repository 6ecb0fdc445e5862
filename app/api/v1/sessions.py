# app/api/v1/sessions.py
import asyncio
import logging

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import StreamingResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.attendance import admit
from app.core.exceptions import StoreFailureError
from app.core.limiter import CHECKIN_SCOPE, checkin_rate_limit, limiter
from app.crud.attendance import count_checkins
from app.crud.session import get_sessions_with_counts
from app.dependencies import get_current_user, get_db, get_write_db
from app.models.session import AcceptanceState, AttendanceSession
from app.models.user import User
from app.schemas.attendance import CheckinRequest, CheckinResponse
from app.schemas.session_schema import (
    DeleteResponse,
    SessionCreate,
    SessionDetailResponse,
    SessionEnvelope,
    SessionListResponse,
    SessionResponse,
    SessionStatusUpdate,
    SessionSummary,
)
from app.services.lifecycle import session_lifecycle
from app.services.qr_service import generate_session_qr
from app.services.roster import roster_notifier

# Setup logger
logger = logging.getLogger(__name__)

session_router = APIRouter(prefix="/sessions", tags=["sessions"])


def convert_to_session_response(attendance_session: AttendanceSession) -> SessionResponse:
    """Convert SQLAlchemy model to Pydantic response model, with derived acceptance flags."""
    state = attendance_session.acceptance_state()
    return SessionResponse(
        id=attendance_session.id,
        title=attendance_session.title,
        description=attendance_session.description or "",
        creator_id=attendance_session.creator_id,
        status=attendance_session.status,
        expires_at=attendance_session.expires_at,
        created_at=attendance_session.created_at,
        accepting=state is AcceptanceState.ACCEPTING,
        expired=attendance_session.is_expired()
    )


@session_router.post("", response_model=SessionEnvelope, status_code=status.HTTP_201_CREATED)
async def create_session(
        payload: SessionCreate,
        db: AsyncSession = Depends(get_write_db),
        current_user: User = Depends(get_current_user)
):
    """
    Create an attendance session in the active state.

    - **expiresInMinutes**: optional; expiry is creation time plus this many minutes
    """
    attendance_session = await session_lifecycle.create_session(
        db,
        owner_id=current_user.id,
        title=payload.title,
        description=payload.description,
        expires_in_minutes=payload.expires_in_minutes
    )
    return SessionEnvelope(session=convert_to_session_response(attendance_session))


@session_router.get("", response_model=SessionListResponse)
async def list_sessions(
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(get_current_user)
):
    """Sessions owned by the caller, newest first. Status is as stored; see `accepting` for expiry."""
    try:
        rows = await get_sessions_with_counts(db, current_user.id)
    except SQLAlchemyError as e:
        raise StoreFailureError("Failed to load sessions") from e

    sessions = [
        SessionSummary(**convert_to_session_response(s).model_dump(), attendee_count=count)
        for s, count in rows
    ]
    return SessionListResponse(sessions=sessions)


@session_router.get("/{session_id}", response_model=SessionDetailResponse)
async def get_session(
        session_id: str,
        db: AsyncSession = Depends(get_db)
):
    """Public session details, used by the check-in page."""
    attendance_session = await session_lifecycle.get_session(db, session_id)
    try:
        attendee_count = await count_checkins(db, session_id)
    except SQLAlchemyError as e:
        raise StoreFailureError("Failed to load session") from e

    return SessionDetailResponse(
        session=convert_to_session_response(attendance_session),
        attendee_count=attendee_count
    )


@session_router.patch("/{session_id}", response_model=SessionEnvelope)
async def update_session_status(
        session_id: str,
        payload: SessionStatusUpdate,
        db: AsyncSession = Depends(get_write_db),
        current_user: User = Depends(get_current_user)
):
    """Close (`closed`) or reopen (`active`) a session. Owner only."""
    attendance_session = await session_lifecycle.set_status(db, current_user.id, session_id, payload.status)
    return SessionEnvelope(session=convert_to_session_response(attendance_session))


@session_router.delete("/{session_id}", response_model=DeleteResponse)
async def delete_session(
        session_id: str,
        db: AsyncSession = Depends(get_write_db),
        current_user: User = Depends(get_current_user)
):
    """Delete a session and all of its check-ins. Owner only."""
    removed = await session_lifecycle.delete_session(db, current_user.id, session_id)
    return DeleteResponse(message="Session deleted", removed_checkins=removed)


@session_router.post("/{session_id}/attend", response_model=CheckinResponse, status_code=status.HTTP_201_CREATED)
@limiter.shared_limit(checkin_rate_limit, scope=CHECKIN_SCOPE)
async def attend_session(
        session_id: str,
        request: Request,  # Required for rate limiting
        checkin: CheckinRequest,
        db: AsyncSession = Depends(get_write_db)
):
    """Check in to the session named in the path; any sessionId in the body is ignored."""
    return await admit(db, request, checkin, session_id)


@session_router.get("/{session_id}/stream")
@limiter.exempt  # long-lived; the limiter middleware cannot wrap a streamed body
async def stream_roster(
        session_id: str,
        request: Request,
        db: AsyncSession = Depends(get_db)
):
    """
    Server-sent events feed of the session roster.

    First event has type `init`, later ones `update`; each carries the full
    list of check-ins, newest first.
    """
    await session_lifecycle.get_session(db, session_id)
    # release the request connection; the stream opens its own per tick
    await db.close()

    async def event_stream():
        async for snapshot in roster_notifier.subscribe(session_id, is_disconnected=request.is_disconnected):
            yield snapshot.to_sse()

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
        }
    )


@session_router.get("/{session_id}/qr")
async def session_qr_code(
        session_id: str,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(get_current_user)
):
    """PNG QR code linking to the session's check-in page. Owner only."""
    await session_lifecycle.get_owned_session(db, current_user.id, session_id)
    png = await asyncio.to_thread(generate_session_qr, session_id)
    return Response(content=png, media_type="image/png")
