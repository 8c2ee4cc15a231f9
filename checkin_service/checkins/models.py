from uuid import uuid4
from sqlalchemy import (
    Column, String, DateTime, Text, Boolean, Integer, ForeignKey, Uuid,
    UniqueConstraint, CheckConstraint,
)
from checkin_service.db.base import Base
from checkin_service.utils.timezone import utcnow


class CheckIn(Base):
    """
    One attendance record against an event session.
    Members are unique per session; guests are never deduplicated.
    """
    __tablename__ = "checkins"
    __table_args__ = (
        UniqueConstraint("session_id", "member_id", name="uq_checkins_session_member"),
        CheckConstraint(
            "(type = 'member' AND member_id IS NOT NULL) OR "
            "(type = 'guest' AND member_id IS NULL AND guest_name IS NOT NULL)",
            name="ck_checkins_actor",
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    session_id = Column(Uuid, ForeignKey("event_sessions.id"), nullable=False, index=True)
    event_id = Column(Uuid, nullable=False, index=True)
    type = Column(String(20), nullable=False)  # member | guest
    member_id = Column(Uuid, nullable=True, index=True)
    guest_name = Column(String(255), nullable=True)
    guest_phone = Column(String(50), nullable=True)
    guest_email = Column(String(255), nullable=True)
    adults = Column(Integer, default=1, nullable=False)
    children_count = Column(Integer, default=0, nullable=False)
    first_time = Column(Boolean, default=False, nullable=False)
    contact_ok = Column(Boolean, default=True, nullable=False)
    prayer_request = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    @classmethod
    def for_member(cls, session, member_id) -> "CheckIn":
        return cls(
            id=uuid4(),
            session_id=session.id,
            event_id=session.event_id,
            type="member",
            member_id=member_id,
            guest_name=None,
            guest_phone=None,
            guest_email=None,
            adults=1,
            children_count=0,
            first_time=False,
            contact_ok=True,
            prayer_request=None,
            created_at=utcnow(),
        )

    @classmethod
    def for_guest(cls, session, guest) -> "CheckIn":
        return cls(
            id=uuid4(),
            session_id=session.id,
            event_id=session.event_id,
            type="guest",
            member_id=None,
            guest_name=guest.full_name.strip(),
            guest_phone=guest.phone.strip(),
            guest_email=guest.email,
            adults=guest.adults,
            children_count=guest.children,
            first_time=guest.first_time,
            contact_ok=guest.contact_ok,
            prayer_request=guest.prayer_request,
            created_at=utcnow(),
        )
