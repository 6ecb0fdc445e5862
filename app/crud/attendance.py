import logging
from typing import List, Optional

from sqlalchemy import func, and_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.models.attendance import AttendanceRecord
from app.utils.clock import utcnow

logger = logging.getLogger(__name__)


async def get_checkin_by_student(
        db: AsyncSession,
        session_id: str,
        student_id: str
) -> Optional[AttendanceRecord]:
    query = select(AttendanceRecord).where(
        and_(
            AttendanceRecord.session_id == session_id,
            AttendanceRecord.student_id == student_id
        )
    )
    result = await db.execute(query)
    return result.scalars().first()


async def get_checkin_by_origin(
        db: AsyncSession,
        session_id: str,
        origin_address: str
) -> Optional[AttendanceRecord]:
    """Only records admitted while origin tracking was enforced carry an origin claim."""
    query = select(AttendanceRecord).where(
        and_(
            AttendanceRecord.session_id == session_id,
            AttendanceRecord.origin_claim == origin_address
        )
    )
    result = await db.execute(query)
    return result.scalars().first()


async def create_checkin(
        db: AsyncSession,
        session_id: str,
        student_id: str,
        student_name: str,
        origin_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        device_fingerprint: Optional[str] = None,
        claim_origin: bool = False
) -> AttendanceRecord:
    """
    Insert and commit a check-in.

    Raises:
        IntegrityError: a uniqueness or foreign-key constraint rejected the row
        SQLAlchemyError: any other database failure
    """
    record = AttendanceRecord(
        session_id=session_id,
        student_id=student_id,
        student_name=student_name,
        marked_at=utcnow(),
        origin_address=origin_address,
        origin_claim=origin_address if claim_origin else None,
        user_agent=user_agent,
        device_fingerprint=device_fingerprint
    )

    try:
        db.add(record)
        await db.commit()
        await db.refresh(record)
        logger.debug(f"Check-in stored: session={session_id} student={student_id} id={record.id}")
        return record
    except SQLAlchemyError:
        await db.rollback()
        raise


async def get_roster(db: AsyncSession, session_id: str) -> List[AttendanceRecord]:
    """All check-ins for a session, newest first"""
    query = select(AttendanceRecord).where(
        AttendanceRecord.session_id == session_id
    ).order_by(AttendanceRecord.marked_at.desc(), AttendanceRecord.id.desc())

    result = await db.execute(query)
    return result.scalars().all()


async def count_checkins(db: AsyncSession, session_id: str) -> int:
    query = select(func.count(AttendanceRecord.id)).where(AttendanceRecord.session_id == session_id)
    result = await db.execute(query)
    return result.scalar() or 0
