import logging

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import StoreFailureError
from app.crud.analytics import count_attendees, count_sessions, get_daily_trend
from app.crud.session import get_sessions_with_counts
from app.dependencies import get_current_user, get_db
from app.models.session import SessionStatus
from app.models.user import User
from app.schemas.analytics import (
    AnalyticsOverview,
    AnalyticsResponse,
    DailyCount,
    SessionAttendance,
)

logger = logging.getLogger(__name__)

analytics_router = APIRouter(prefix="/analytics", tags=["analytics"])


@analytics_router.get("", response_model=AnalyticsResponse)
async def get_analytics(
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(get_current_user)
):
    """Simple attendance counts across the caller's sessions."""
    try:
        total_sessions = await count_sessions(db, current_user.id)
        total_attendees = await count_attendees(db, current_user.id)
        sessions = await get_sessions_with_counts(db, current_user.id)
        daily_trend = await get_daily_trend(db, current_user.id)
    except SQLAlchemyError as e:
        logger.error(f"Database error building analytics for {current_user.id}: {str(e)}", exc_info=True)
        raise StoreFailureError("Failed to load analytics")

    # by stored status; expired-but-active sessions still count here
    active_sessions = len([s for s, _ in sessions if s.status == SessionStatus.ACTIVE.value])
    avg_attendance = int(total_attendees / total_sessions + 0.5) if total_sessions > 0 else 0

    return AnalyticsResponse(
        overview=AnalyticsOverview(
            total_sessions=total_sessions,
            total_attendees=total_attendees,
            active_sessions=active_sessions,
            avg_attendance=avg_attendance
        ),
        sessions=[
            SessionAttendance(
                id=s.id,
                title=s.title,
                attendee_count=count,
                status=s.status,
                created_at=s.created_at
            )
            for s, count in sessions
        ],
        daily_trend=[DailyCount(date=day, count=count) for day, count in daily_trend]
    )
