import logging
from uuid import UUID, uuid4
from typing import Optional, Tuple
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from checkin_service.db.models import Event
from checkin_service.event_sessions.exceptions import (
    AnotherEventLiveException,
    EventNotFoundException,
)
from checkin_service.event_sessions.models import EventSession
from checkin_service.event_sessions.repository import EventSessionRepository
from checkin_service.messaging.publisher import CheckInEventPublisher
from checkin_service.utils.codes import generate_code
from checkin_service.utils.timezone import utcnow

logger = logging.getLogger(__name__)


class EventSessionService:
    """Opens and closes the single live event check-in window"""

    def __init__(self, db: AsyncSession, publisher: CheckInEventPublisher | None = None):
        self.db = db
        self.repository = EventSessionRepository(db)
        self.publisher = publisher or CheckInEventPublisher()

    async def _conflict(self, active: EventSession) -> AnotherEventLiveException:
        other = await self.repository.get_event(active.event_id)
        logger.warning(
            f"Refused to start a session: event {active.event_id} is already live (session {active.id})"
        )
        return AnotherEventLiveException(other.title if other else None)

    async def start_session(self, event_id: UUID, actor_id: UUID) -> EventSession:
        """
        Start the check-in window for an event.

        Steps:
        1. Validate the event exists
        2. Return the event's own active session if it is already live
        3. Refuse when any other event is live
        4. Insert the session with a fresh code and mark the event live

        The partial unique index on active sessions is the real guard: a
        concurrent start that slipped past step 3 fails on flush and is
        re-evaluated against whichever session won.
        """
        event = await self.repository.get_event(event_id)
        if not event:
            raise EventNotFoundException(event_id)

        active = await self.repository.get_active()
        if active:
            if active.event_id == event_id:
                return active
            raise await self._conflict(active)

        code = await generate_code(self.repository.code_in_use)
        session = EventSession(
            id=uuid4(),
            event_id=event_id,
            code=code,
            status="active",
            started_at=utcnow(),
            started_by=actor_id,
            ended_at=None,
        )

        try:
            await self.repository.add(session)
            await self.repository.set_event_status(event_id, "live")
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            winner = await self.repository.get_active()
            if winner is None:
                raise
            if winner.event_id == event_id:
                return winner
            raise await self._conflict(winner)

        logger.info(f"Check-in session {session.id} started for event {event_id} by {actor_id}")
        self.publisher.event_session_started(session)
        return session

    async def stop_session(self, event_id: UUID, actor_id: UUID) -> None:
        """End the event's active session and mark the event completed; no-op if none is active."""
        ended_ids = await self.repository.end_active_for_event(event_id, utcnow())
        if not ended_ids:
            return

        await self.repository.set_event_status(event_id, "completed")
        await self.db.commit()

        logger.info(f"Check-in for event {event_id} stopped by {actor_id}")
        self.publisher.event_session_ended(event_id, actor_id, ended_ids)

    async def stop_active(self, actor_id: UUID) -> Optional[EventSession]:
        """Stop whichever event is currently live."""
        active = await self.repository.get_active()
        if not active:
            return None
        await self.stop_session(active.event_id, actor_id)
        await self.db.refresh(active)
        return active

    async def get_active(self) -> Optional[EventSession]:
        """Get the live session, if any"""
        return await self.repository.get_active()

    async def get_active_with_event(self) -> Optional[Tuple[EventSession, Event]]:
        """Get the live session together with its event"""
        active = await self.repository.get_active()
        if not active:
            return None
        event = await self.repository.get_event(active.event_id)
        return active, event
