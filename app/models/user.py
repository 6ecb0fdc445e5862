import uuid

from sqlalchemy import Column, String, DateTime

from app.database import Base
from app.utils.clock import utcnow


class User(Base):
    """Teacher account that owns attendance sessions."""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default="teacher")
    created_at = Column(DateTime, nullable=False, default=utcnow)
