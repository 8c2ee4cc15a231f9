from dataclasses import dataclass
from uuid import UUID, uuid4
from sqlalchemy import (
    Column, String, DateTime, Date, Text, JSON, ForeignKey, Uuid,
    UniqueConstraint, CheckConstraint,
)
from checkin_service.db.base import Base
from checkin_service.programs.eligibility import calculate_age, eligible_program
from checkin_service.utils.timezone import utcnow


class ProgramSession(Base):
    """One day's operating window for daycare, youth or teen"""
    __tablename__ = "program_sessions"
    __table_args__ = (
        UniqueConstraint("program", "service_date", name="uq_program_sessions_program_date"),
        CheckConstraint("program IN ('daycare', 'youth', 'teen')", name="ck_program_sessions_program"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    program = Column(String(20), nullable=False)
    service_date = Column(Date, nullable=False, index=True)
    status = Column(String(20), default="active", nullable=False, index=True)  # active | closed
    opened_at = Column(DateTime, default=utcnow, nullable=False)
    closed_at = Column(DateTime, nullable=True)
    opened_by = Column(Uuid, nullable=True)
    closed_by = Column(Uuid, nullable=True)


class Child(Base):
    """A minor's profile, owned by the parent account that registered it"""
    __tablename__ = "children"

    id = Column(Uuid, primary_key=True, default=uuid4)
    parent_id = Column(Uuid, nullable=False, index=True)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    date_of_birth = Column(Date, nullable=False)
    allergies = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    authorized_pickup_names = Column(JSON, default=list, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def age(self) -> float:
        return calculate_age(self.date_of_birth)

    @property
    def eligible_program(self) -> str:
        return eligible_program(self.date_of_birth)


@dataclass(frozen=True)
class ChildSubject:
    child_id: UUID
    kind: str = "child"


@dataclass(frozen=True)
class TeenSubject:
    teen_user_id: UUID
    kind: str = "teen"


class ProgramCheckIn(Base):
    """
    A child's or teen's presence in a program session.

    Exactly one of child_id / teen_user_id is set. Rows are built through
    for_child() or for_teen() and read back through `subject`.
    """
    __tablename__ = "program_checkins"
    __table_args__ = (
        UniqueConstraint("session_id", "child_id", name="uq_program_checkins_session_child"),
        UniqueConstraint("session_id", "teen_user_id", name="uq_program_checkins_session_teen"),
        CheckConstraint(
            "(program = 'teen' AND teen_user_id IS NOT NULL AND child_id IS NULL) OR "
            "(program IN ('daycare', 'youth') AND child_id IS NOT NULL AND teen_user_id IS NULL)",
            name="ck_program_checkins_subject",
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    session_id = Column(Uuid, ForeignKey("program_sessions.id"), nullable=False, index=True)
    program = Column(String(20), nullable=False)
    child_id = Column(Uuid, ForeignKey("children.id"), nullable=True, index=True)
    teen_user_id = Column(Uuid, nullable=True, index=True)
    parent_id = Column(Uuid, nullable=True)
    emergency_contact_name = Column(String(255), nullable=True)
    emergency_contact_phone = Column(String(50), nullable=True)
    notes = Column(Text, nullable=True)
    pickup_code = Column(String(4), nullable=True, index=True)
    picked_up_at = Column(DateTime, nullable=True)
    picked_up_by = Column(String(255), nullable=True)
    checked_in_at = Column(DateTime, default=utcnow, nullable=False)

    @classmethod
    def for_child(
        cls,
        session_id: UUID,
        program: str,
        child_id: UUID,
        parent_id: UUID,
        pickup_code: str | None = None,
        emergency_contact_name: str | None = None,
        emergency_contact_phone: str | None = None,
        notes: str | None = None,
    ) -> "ProgramCheckIn":
        return cls(
            id=uuid4(),
            session_id=session_id,
            program=program,
            child_id=child_id,
            teen_user_id=None,
            parent_id=parent_id,
            emergency_contact_name=emergency_contact_name,
            emergency_contact_phone=emergency_contact_phone,
            notes=notes,
            pickup_code=pickup_code,
            picked_up_at=None,
            picked_up_by=None,
            checked_in_at=utcnow(),
        )

    @classmethod
    def for_teen(cls, session_id: UUID, teen_user_id: UUID) -> "ProgramCheckIn":
        # Teens release themselves; no pickup code
        return cls(
            id=uuid4(),
            session_id=session_id,
            program="teen",
            child_id=None,
            teen_user_id=teen_user_id,
            parent_id=None,
            emergency_contact_name=None,
            emergency_contact_phone=None,
            notes=None,
            pickup_code=None,
            picked_up_at=None,
            picked_up_by=None,
            checked_in_at=utcnow(),
        )

    @property
    def subject(self) -> ChildSubject | TeenSubject:
        if self.child_id is not None:
            return ChildSubject(child_id=self.child_id)
        return TeenSubject(teen_user_id=self.teen_user_id)
