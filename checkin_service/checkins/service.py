import logging
from uuid import UUID
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from checkin_service.checkins.exceptions import (
    AlreadyCheckedInException,
    InvalidCheckInCodeException,
    NoActiveSessionException,
)
from checkin_service.checkins.models import CheckIn
from checkin_service.checkins.repository import CheckInRepository
from checkin_service.checkins.schemas import GuestCheckInRequest
from checkin_service.event_sessions.repository import EventSessionRepository
from checkin_service.messaging.publisher import CheckInEventPublisher

logger = logging.getLogger(__name__)


class CheckInService:
    """Records member and guest attendance against the live event session"""

    def __init__(self, db: AsyncSession, publisher: CheckInEventPublisher | None = None):
        self.db = db
        self.repository = CheckInRepository(db)
        self.session_repository = EventSessionRepository(db)
        self.publisher = publisher or CheckInEventPublisher()

    async def check_in_member(self, code: str, member_id: UUID) -> CheckIn:
        """
        Check a member in with the session code.

        Business rules:
        - The code must belong to an active session
        - A member checks in at most once per session; the unique
          (session_id, member_id) constraint decides concurrent submits
        """
        session = await self.session_repository.get_active_by_code(code.strip())
        if not session:
            raise InvalidCheckInCodeException()

        if await self.repository.get_member_checkin(session.id, member_id):
            raise AlreadyCheckedInException()

        checkin = CheckIn.for_member(session, member_id)

        try:
            await self.repository.add(checkin)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.info(f"Concurrent duplicate check-in for member {member_id} rejected")
            raise AlreadyCheckedInException()

        logger.info(f"Member {member_id} checked in to session {session.id}")
        self.publisher.checkin_created(checkin)
        return checkin

    async def check_in_guest(self, guest: GuestCheckInRequest) -> CheckIn:
        """
        Check a guest in, by code or against whatever event is live.

        Guests are not deduplicated: a repeat submission is recorded as
        another household attending.
        """
        if guest.code:
            session = await self.session_repository.get_active_by_code(guest.code.strip())
            if not session:
                raise InvalidCheckInCodeException()
        else:
            session = await self.session_repository.get_active()
            if not session:
                raise NoActiveSessionException()

        checkin = CheckIn.for_guest(session, guest)
        await self.repository.add(checkin)
        await self.db.commit()

        logger.info(f"Guest checked in to session {session.id} (first_time={guest.first_time})")
        self.publisher.checkin_created(checkin)
        return checkin
