from datetime import datetime
from typing import List

from pydantic import BaseModel


class AnalyticsOverview(BaseModel):
    total_sessions: int
    total_attendees: int
    active_sessions: int
    avg_attendance: int


class SessionAttendance(BaseModel):
    id: str
    title: str
    attendee_count: int
    status: str
    created_at: datetime


class DailyCount(BaseModel):
    date: str
    count: int


class AnalyticsResponse(BaseModel):
    overview: AnalyticsOverview
    sessions: List[SessionAttendance]
    daily_trend: List[DailyCount]
