from uuid import uuid4
from sqlalchemy import Column, String, DateTime, ForeignKey, Index, Uuid, text
from checkin_service.db.base import Base
from checkin_service.utils.timezone import utcnow


class EventSession(Base):
    """
    One check-in window for one event, identified by a 4-digit code.
    The partial unique index allows a single active row system-wide.
    """
    __tablename__ = "event_sessions"
    __table_args__ = (
        Index(
            "uq_event_sessions_single_active",
            "status",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    event_id = Column(Uuid, ForeignKey("events.id"), nullable=False, index=True)
    code = Column(String(4), nullable=False, index=True)
    status = Column(String(20), default="active", nullable=False)  # active | ended
    started_at = Column(DateTime, default=utcnow, nullable=False)
    ended_at = Column(DateTime, nullable=True)
    started_by = Column(Uuid, nullable=True)
