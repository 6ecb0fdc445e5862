from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class CheckinRequest(BaseModel):
    """
    Student self check-in.

    Every field is optional here: missing, blank and over-long values are
    rejected by the admission engine, after the rate limiter has counted
    the request.
    """
    student_id: Optional[str] = Field(None, alias="studentId")
    student_name: Optional[str] = Field(None, alias="studentName")
    session_id: Optional[str] = Field(None, alias="sessionId")
    device_fingerprint: Optional[str] = Field(None, alias="deviceFingerprint")

    class Config:
        populate_by_name = True


class CheckinData(BaseModel):
    student_id: str = Field(..., alias="studentId")
    session_id: str = Field(..., alias="sessionId")

    class Config:
        populate_by_name = True


class CheckinResponse(BaseModel):
    status: str = "success"
    message: str
    data: CheckinData


class AttendeeResponse(BaseModel):
    id: str
    session_id: str
    student_name: str
    student_id: str
    marked_at: datetime

    class Config:
        from_attributes = True


class RosterEvent(BaseModel):
    type: str  # "init" on first delivery, "update" afterwards
    attendees: List[AttendeeResponse]
