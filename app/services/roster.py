# app/services/roster.py
"""
Live roster delivery.

Each subscription is its own polling loop: a full snapshot on subscribe,
then a fresh full snapshot every poll interval. Nothing is diffed and
intermediate states may be skipped; an observer that stays connected sees
every accepted check-in by the tick after it was accepted.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import AsyncIterator, Awaitable, Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.crud.attendance import get_roster
from app.crud.session import get_session_by_id
from app.database import Database, database
from app.schemas.attendance import AttendeeResponse, RosterEvent
from app.utils.clock import utcnow

logger = logging.getLogger(__name__)

DisconnectCheck = Callable[[], Awaitable[bool]]


@dataclass
class RosterSnapshot:
    event: str  # "init" | "update"
    session_id: str
    attendees: List[AttendeeResponse] = field(default_factory=list)
    generated_at: datetime = field(default_factory=utcnow)

    def to_sse(self) -> str:
        payload = RosterEvent(type=self.event, attendees=self.attendees)
        return f"data: {payload.model_dump_json()}\n\n"


class RosterNotifier:
    def __init__(self, db_handle: Optional[Database] = None, poll_interval: Optional[float] = None):
        self.db_handle = db_handle or database
        self._poll_interval = poll_interval

    @property
    def poll_interval(self) -> float:
        if self._poll_interval is None:
            return settings.ROSTER_POLL_INTERVAL_SECONDS
        return self._poll_interval

    async def fetch_roster(self, session_id: str) -> Optional[List[AttendeeResponse]]:
        """Current check-ins newest first, or None if the session no longer exists."""
        async with self.db_handle.get_session() as db:
            attendance_session = await get_session_by_id(db, session_id)
            if attendance_session is None:
                return None
            records = await get_roster(db, session_id)
            return [AttendeeResponse.model_validate(r) for r in records]

    async def subscribe(
            self,
            session_id: str,
            is_disconnected: Optional[DisconnectCheck] = None
    ) -> AsyncIterator[RosterSnapshot]:
        """
        Yield roster snapshots until the observer goes away or the session is deleted.

        Ends (without error) when:
            - is_disconnected() reports True
            - the session no longer exists
            - the consumer closes or cancels the iterator
        A failed fetch skips that tick only.
        """
        delivered = 0
        logger.info(f"Roster subscription opened for session {session_id}")
        try:
            while True:
                if is_disconnected is not None and await is_disconnected():
                    logger.info(f"Roster observer disconnected from session {session_id}")
                    return

                try:
                    attendees = await self.fetch_roster(session_id)
                except SQLAlchemyError as e:
                    logger.warning(f"Roster fetch failed for session {session_id}, retrying next tick: {e}")
                else:
                    if attendees is None:
                        logger.info(f"Session {session_id} no longer exists, ending roster stream")
                        return
                    yield RosterSnapshot(
                        event="init" if delivered == 0 else "update",
                        session_id=session_id,
                        attendees=attendees
                    )
                    delivered += 1

                await asyncio.sleep(self.poll_interval)
        finally:
            logger.info(f"Roster subscription closed for session {session_id} after {delivered} snapshots")


roster_notifier = RosterNotifier()
