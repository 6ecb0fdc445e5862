from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class SessionCreate(BaseModel):
    title: str = Field(..., max_length=255)
    description: Optional[str] = ""
    expires_in_minutes: Optional[int] = Field(None, alias="expiresInMinutes", gt=0, le=7 * 24 * 60)

    class Config:
        populate_by_name = True


class SessionStatusUpdate(BaseModel):
    status: str


class SessionResponse(BaseModel):
    id: str
    title: str
    description: str
    creator_id: str
    status: str
    expires_at: Optional[datetime]
    created_at: datetime
    accepting: bool = False
    expired: bool = False

    class Config:
        from_attributes = True


class SessionSummary(SessionResponse):
    attendee_count: int = 0


class SessionListResponse(BaseModel):
    sessions: List[SessionSummary]


class SessionDetailResponse(BaseModel):
    session: SessionResponse
    attendee_count: int


class SessionEnvelope(BaseModel):
    session: SessionResponse


class DeleteResponse(BaseModel):
    message: str
    removed_checkins: int
