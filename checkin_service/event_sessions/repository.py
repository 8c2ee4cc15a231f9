"""Event Session Repository Layer"""
from uuid import UUID
from datetime import datetime
from typing import Optional, List
from sqlalchemy import select, update, and_

from checkin_service.db.models import Event
from checkin_service.db.repository import BaseRepository
from checkin_service.event_sessions.models import EventSession


class EventSessionRepository(BaseRepository):
    """Repository for event session database operations"""

    async def get_event(self, event_id: UUID) -> Optional[Event]:
        """Get event by ID"""
        result = await self.db.execute(select(Event).where(Event.id == event_id))
        return result.scalar_one_or_none()

    async def set_event_status(self, event_id: UUID, status: str):
        """Flip the event's live/completed marker"""
        await self.db.execute(
            update(Event).where(Event.id == event_id).values(status=status)
        )

    async def get_active(self) -> Optional[EventSession]:
        """Get the single active session, if any"""
        stmt = select(EventSession).where(EventSession.status == "active")
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_active_by_code(self, code: str) -> Optional[EventSession]:
        """Get active session by its check-in code"""
        stmt = select(EventSession).where(
            and_(
                EventSession.code == code,
                EventSession.status == "active",
            )
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_latest_for_event(self, event_id: UUID) -> Optional[EventSession]:
        """Get the event's active or most recently started session"""
        stmt = (
            select(EventSession)
            .where(EventSession.event_id == event_id)
            .order_by(EventSession.started_at.desc())
            .limit(1)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def code_in_use(self, code: str) -> bool:
        """Whether an active session already uses this code"""
        return await self.get_active_by_code(code) is not None

    async def end_active_for_event(self, event_id: UUID, ended_at: datetime) -> List[UUID]:
        """End every active session of an event, returning the ended ids"""
        stmt = select(EventSession.id).where(
            and_(
                EventSession.event_id == event_id,
                EventSession.status == "active",
            )
        )
        ids = list((await self.db.execute(stmt)).scalars().all())
        if ids:
            await self.db.execute(
                update(EventSession)
                .where(and_(EventSession.id.in_(ids), EventSession.status == "active"))
                .values(status="ended", ended_at=ended_at)
            )
        return ids
