from uuid import uuid4
from sqlalchemy import Column, String, DateTime, Text, Date, Uuid
from checkin_service.db.base import Base
from checkin_service.utils.timezone import utcnow


class Event(Base):
    """
    Events table - owned by the events service.
    Check-in only flips status between scheduled, live and completed.
    """
    __tablename__ = "events"
    __table_args__ = {'extend_existing': True}

    id = Column(Uuid, primary_key=True, default=uuid4)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    location = Column(String(255), nullable=True)
    starts_at = Column(DateTime, nullable=True)
    status = Column(String(50), default="scheduled", nullable=False, index=True)  # scheduled | live | completed
    created_at = Column(DateTime, default=utcnow, nullable=False)


class UserProfile(Base):
    """
    Member profiles - owned by the directory service.
    Defined here for read-only queries (names, contact details, birthday).
    """
    __tablename__ = "user_profiles"
    __table_args__ = {'extend_existing': True}

    id = Column(Uuid, primary_key=True, default=uuid4)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    birthday = Column(Date, nullable=True)
    role = Column(String(50), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
