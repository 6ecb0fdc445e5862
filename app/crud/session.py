# app/crud/session.py
import logging
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import delete, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.models.attendance import AttendanceRecord
from app.models.session import AttendanceSession, SessionStatus
from app.utils.clock import utcnow

# Setup logger
logger = logging.getLogger(__name__)


async def get_session_by_id(db: AsyncSession, session_id: str) -> Optional[AttendanceSession]:
    """
    Get attendance session by ID.

    Args:
        db: Database session
        session_id: Session ID

    Returns:
        AttendanceSession instance or None
    """
    try:
        logger.debug(f"Querying session by ID: {session_id}")
        result = await db.execute(
            select(AttendanceSession).where(AttendanceSession.id == session_id)
        )
        return result.scalar_one_or_none()

    except SQLAlchemyError as e:
        logger.error(f"Database error querying session {session_id}: {str(e)}", exc_info=True)
        raise


async def create_session(
        db: AsyncSession,
        creator_id: str,
        title: str,
        description: str = "",
        expires_at: Optional[datetime] = None
) -> AttendanceSession:
    """
    Create a new session in the active state.

    Raises:
        SQLAlchemyError: If database operation fails
    """
    try:
        db_session = AttendanceSession(
            title=title,
            description=description,
            creator_id=creator_id,
            status=SessionStatus.ACTIVE.value,
            expires_at=expires_at,
            created_at=utcnow()
        )

        db.add(db_session)
        await db.commit()
        await db.refresh(db_session)

        logger.info(f"Session created: {db_session.id} by {creator_id} (expires_at={expires_at})")
        return db_session

    except SQLAlchemyError as e:
        logger.error(f"Database error creating session for {creator_id}: {str(e)}", exc_info=True)
        await db.rollback()
        raise


async def update_session_status(
        db: AsyncSession,
        db_session: AttendanceSession,
        status: SessionStatus
) -> AttendanceSession:
    """Single-row status update. Expiry is left untouched."""
    try:
        db_session.status = status.value
        await db.commit()
        await db.refresh(db_session)

        logger.info(f"Session {db_session.id} status set to {status.value}")
        return db_session

    except SQLAlchemyError as e:
        logger.error(f"Database error updating session {db_session.id}: {str(e)}", exc_info=True)
        await db.rollback()
        raise


async def delete_session(db: AsyncSession, session_id: str) -> int:
    """
    Delete a session and all of its check-ins in one transaction.

    Returns:
        Number of check-in records removed
    """
    try:
        result = await db.execute(
            delete(AttendanceRecord).where(AttendanceRecord.session_id == session_id)
        )
        await db.execute(
            delete(AttendanceSession).where(AttendanceSession.id == session_id)
        )
        await db.commit()

        removed = result.rowcount or 0
        logger.info(f"Session {session_id} deleted with {removed} check-ins")
        return removed

    except SQLAlchemyError as e:
        logger.error(f"Database error deleting session {session_id}: {str(e)}", exc_info=True)
        await db.rollback()
        raise


async def get_sessions_with_counts(
        db: AsyncSession,
        creator_id: str
) -> List[Tuple[AttendanceSession, int]]:
    """Owner's sessions, newest first, each paired with its check-in count"""
    query = (
        select(AttendanceSession, func.count(AttendanceRecord.id))
        .outerjoin(AttendanceRecord, AttendanceRecord.session_id == AttendanceSession.id)
        .where(AttendanceSession.creator_id == creator_id)
        .group_by(AttendanceSession.id)
        .order_by(AttendanceSession.created_at.desc())
    )
    result = await db.execute(query)
    return [(row[0], row[1]) for row in result.all()]
