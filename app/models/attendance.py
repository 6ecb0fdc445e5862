import uuid

from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint

from app.database import Base
from app.utils.clock import utcnow

STUDENT_CONSTRAINT = "uq_attendance_session_student"
ORIGIN_CONSTRAINT = "uq_attendance_session_origin"

# Column widths; the admission engine rejects or clips values to fit
STUDENT_FIELD_LENGTH = 255
ORIGIN_LENGTH = 64
USER_AGENT_LENGTH = 512
FINGERPRINT_LENGTH = 255


class AttendanceRecord(Base):
    __tablename__ = "attendance_records"
    __table_args__ = (
        UniqueConstraint("session_id", "student_id", name=STUDENT_CONSTRAINT),
        # origin_claim stays NULL unless origin tracking is enforced; NULLs never collide.
        UniqueConstraint("session_id", "origin_claim", name=ORIGIN_CONSTRAINT),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    session_id = Column(String(36), ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    student_name = Column(String(STUDENT_FIELD_LENGTH), nullable=False)
    student_id = Column(String(STUDENT_FIELD_LENGTH), nullable=False)
    marked_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    origin_address = Column(String(ORIGIN_LENGTH), nullable=True)
    origin_claim = Column(String(ORIGIN_LENGTH), nullable=True)
    user_agent = Column(String(USER_AGENT_LENGTH), nullable=True)
    device_fingerprint = Column(String(FINGERPRINT_LENGTH), nullable=True)
