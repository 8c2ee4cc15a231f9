from uuid import UUID
from datetime import date, datetime
from typing import List
from pydantic import BaseModel

from checkin_service.event_sessions.schemas import EventSessionResponse, EventSummary
from checkin_service.programs.schemas import ProgramSessionResponse


class ActiveCheckIn(BaseModel):
    """What the lobby screen shows while an event is live"""
    event: EventSummary
    session: EventSessionResponse


class EventRosterEntry(BaseModel):
    checkin_id: UUID
    type: str  # member | guest
    member_id: UUID | None = None
    name: str
    phone: str | None = None
    email: str | None = None
    adults: int
    children_count: int
    first_time: bool
    contact_ok: bool
    prayer_request: str | None = None
    checked_in_at: datetime


class EventRoster(BaseModel):
    event: EventSummary
    session: EventSessionResponse | None = None
    total: int
    entries: List[EventRosterEntry]


class ProgramRosterEntry(BaseModel):
    checkin_id: UUID
    kind: str  # child | teen
    subject_id: UUID
    name: str
    age: float | None = None
    has_allergies: bool = False
    allergies: str | None = None
    parent_name: str | None = None
    parent_phone: str | None = None
    parent_email: str | None = None
    emergency_contact_name: str | None = None
    emergency_contact_phone: str | None = None
    notes: str | None = None
    pickup_code: str | None = None
    status: str  # checked_in | picked_up
    checked_in_at: datetime
    picked_up_at: datetime | None = None
    picked_up_by: str | None = None


class ProgramRoster(BaseModel):
    program: str
    service_date: date
    session: ProgramSessionResponse | None = None
    total: int
    entries: List[ProgramRosterEntry]
