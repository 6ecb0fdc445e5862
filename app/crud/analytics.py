from typing import List, Tuple

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.models.attendance import AttendanceRecord
from app.models.session import AttendanceSession


async def count_sessions(db: AsyncSession, creator_id: str) -> int:
    result = await db.execute(
        select(func.count(AttendanceSession.id)).where(AttendanceSession.creator_id == creator_id)
    )
    return result.scalar() or 0


async def count_attendees(db: AsyncSession, creator_id: str) -> int:
    result = await db.execute(
        select(func.count(AttendanceRecord.id))
        .join(AttendanceSession, AttendanceRecord.session_id == AttendanceSession.id)
        .where(AttendanceSession.creator_id == creator_id)
    )
    return result.scalar() or 0


async def get_daily_trend(db: AsyncSession, creator_id: str, days: int = 14) -> List[Tuple[str, int]]:
    """
    Check-ins per calendar day across the owner's sessions.
    Most recent `days` days that have data, oldest first.
    """
    day = func.date(AttendanceRecord.marked_at)
    query = (
        select(day.label("day"), func.count(AttendanceRecord.id))
        .join(AttendanceSession, AttendanceRecord.session_id == AttendanceSession.id)
        .where(AttendanceSession.creator_id == creator_id)
        .group_by(day)
        .order_by(day.desc())
        .limit(days)
    )
    result = await db.execute(query)
    rows = [(str(row[0]), row[1]) for row in result.all()]
    rows.reverse()
    return rows
