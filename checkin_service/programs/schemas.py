from uuid import UUID
from datetime import date, datetime
from enum import Enum
from typing import Annotated, List, Literal, Union
from pydantic import BaseModel, Field


class Program(str, Enum):
    DAYCARE = "daycare"
    YOUTH = "youth"
    TEEN = "teen"


class ChildProgram(str, Enum):
    """Programs a parent checks children into"""
    DAYCARE = "daycare"
    YOUTH = "youth"


# ----- Sessions -----

class ProgramSessionRequest(BaseModel):
    program: Program


class ProgramSessionResponse(BaseModel):
    id: UUID
    program: str
    service_date: date
    status: str  # active | closed
    opened_at: datetime
    closed_at: datetime | None = None
    opened_by: UUID | None = None
    closed_by: UUID | None = None

    class Config:
        from_attributes = True


class ActiveProgramSessions(BaseModel):
    """Today's open session per program, null when closed"""
    daycare: ProgramSessionResponse | None = None
    youth: ProgramSessionResponse | None = None
    teen: ProgramSessionResponse | None = None


# ----- Children -----

class ChildCreateRequest(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=255)
    last_name: str = Field(..., min_length=1, max_length=255)
    date_of_birth: date
    allergies: str | None = None
    notes: str | None = None
    authorized_pickup_names: List[str] = Field(default_factory=list)


class ChildUpdateRequest(BaseModel):
    """Only fields that are sent are changed"""
    first_name: str | None = Field(None, min_length=1, max_length=255)
    last_name: str | None = Field(None, min_length=1, max_length=255)
    date_of_birth: date | None = None
    allergies: str | None = None
    notes: str | None = None
    authorized_pickup_names: List[str] | None = None


class ChildResponse(BaseModel):
    id: UUID
    parent_id: UUID
    first_name: str
    last_name: str
    date_of_birth: date
    age: float
    eligible_program: str  # daycare | youth | teen | none
    allergies: str | None = None
    notes: str | None = None
    authorized_pickup_names: List[str] = []

    class Config:
        from_attributes = True


# ----- Check-in -----

class ChildSubjectResponse(BaseModel):
    kind: Literal["child"] = "child"
    child_id: UUID


class TeenSubjectResponse(BaseModel):
    kind: Literal["teen"] = "teen"
    teen_user_id: UUID


CheckInSubject = Annotated[
    Union[ChildSubjectResponse, TeenSubjectResponse],
    Field(discriminator="kind"),
]


class ChildCheckInRequest(BaseModel):
    child_ids: List[UUID] = Field(..., min_length=1)
    emergency_contact_name: str | None = None
    emergency_contact_phone: str | None = None
    notes: str | None = None
    generate_pickup_code: bool = False  # youth only; daycare always gets a code


class ProgramCheckInResponse(BaseModel):
    id: UUID
    session_id: UUID
    program: str
    subject: CheckInSubject
    name: str | None = None
    pickup_code: str | None = None
    checked_in_at: datetime
    picked_up_at: datetime | None = None
    picked_up_by: str | None = None


class SkippedChild(BaseModel):
    child_id: UUID
    reason: Literal["not_authorized", "already_checked_in"]


class ChildCheckInResult(BaseModel):
    success: bool = True
    checkins: List[ProgramCheckInResponse]
    skipped: List[SkippedChild] = []


# ----- Pickup -----

class PickupRequest(BaseModel):
    pickup_code: str = Field(..., min_length=1)
    picked_up_by: str | None = None


class PickupResult(BaseModel):
    success: bool = True
    checkin_id: UUID
    child_name: str
    picked_up_at: datetime
