from uuid import UUID
from datetime import datetime
from pydantic import BaseModel


class EventSummary(BaseModel):
    """Event fields shown next to a check-in session"""
    id: UUID
    title: str
    description: str | None = None
    location: str | None = None
    starts_at: datetime | None = None
    status: str  # scheduled | live | completed

    class Config:
        from_attributes = True


class EventSessionResponse(BaseModel):
    """Event check-in session response"""
    id: UUID
    event_id: UUID
    code: str
    status: str  # active | ended
    started_at: datetime
    ended_at: datetime | None = None
    started_by: UUID | None = None

    class Config:
        from_attributes = True


class StartSessionResponse(BaseModel):
    event: EventSummary
    session: EventSessionResponse


class StopSessionResponse(BaseModel):
    success: bool = True
    message: str
    session: EventSessionResponse | None = None
