import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import Column, String, Text, DateTime, ForeignKey

from app.database import Base
from app.utils.clock import utcnow


class SessionStatus(str, Enum):
    ACTIVE = "active"
    CLOSED = "closed"


class AcceptanceState(str, Enum):
    """Derived from status and expiry; never stored."""
    ACCEPTING = "accepting"
    CLOSED = "closed"
    EXPIRED = "expired"


class AttendanceSession(Base):
    __tablename__ = "sessions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    creator_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(16), nullable=False, default=SessionStatus.ACTIVE.value)
    expires_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        return (now or utcnow()) > self.expires_at

    def acceptance_state(self, now: Optional[datetime] = None) -> AcceptanceState:
        if self.status != SessionStatus.ACTIVE.value:
            return AcceptanceState.CLOSED
        if self.is_expired(now):
            return AcceptanceState.EXPIRED
        return AcceptanceState.ACCEPTING
