from uuid import UUID
from datetime import datetime
from pydantic import BaseModel, Field, constr

from checkin_service.event_sessions.schemas import EventSummary


class MemberCheckInRequest(BaseModel):
    """Request to check in with an event code"""
    code: constr(strip_whitespace=True, min_length=1)


class GuestCheckInRequest(BaseModel):
    """Guest check-in; without a code the currently live event is used"""
    code: str | None = None
    full_name: constr(strip_whitespace=True, min_length=1)
    phone: constr(strip_whitespace=True, min_length=1)
    email: str | None = None
    adults: int = Field(1, ge=1)
    children: int = Field(0, ge=0)
    first_time: bool = False
    contact_ok: bool = True
    prayer_request: str | None = None


class CheckInResponse(BaseModel):
    """Attendance record response"""
    id: UUID
    session_id: UUID
    event_id: UUID
    type: str  # member | guest
    member_id: UUID | None = None
    guest_name: str | None = None
    adults: int
    children_count: int
    first_time: bool
    created_at: datetime

    class Config:
        from_attributes = True


class CheckInResult(BaseModel):
    success: bool = True
    event: EventSummary | None = None
    checkin: CheckInResponse
    checked_in_at: datetime
