import logging
from uuid import UUID
from typing import Dict, List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from checkin_service.exceptions import ValidationException
from checkin_service.messaging.publisher import CheckInEventPublisher
from checkin_service.programs.eligibility import (
    CHILD_PROGRAMS,
    PROGRAMS,
    calculate_age,
    is_teen_age,
)
from checkin_service.programs.exceptions import (
    BirthdayMissingException,
    ChildNotFoundException,
    InvalidPickupCodeException,
    NoActiveProgramSessionException,
    TeenAgeOutOfRangeException,
    TeenAlreadyCheckedInException,
    UnknownProgramException,
    UserNotFoundException,
)
from checkin_service.programs.models import Child, ChildSubject, ProgramCheckIn, ProgramSession
from checkin_service.programs.repository import (
    ChildRepository,
    ProgramCheckInRepository,
    ProgramSessionRepository,
)
from checkin_service.programs.schemas import (
    ChildCheckInRequest,
    ChildCheckInResult,
    ChildCreateRequest,
    ChildSubjectResponse,
    ChildUpdateRequest,
    PickupResult,
    ProgramCheckInResponse,
    SkippedChild,
    TeenSubjectResponse,
)
from checkin_service.utils.codes import generate_code
from checkin_service.utils.timezone import local_today, utcnow

logger = logging.getLogger(__name__)


def to_checkin_response(checkin: ProgramCheckIn, name: str | None = None) -> ProgramCheckInResponse:
    """Convert a program check-in row to its response, tagging the subject"""
    subject = checkin.subject
    if isinstance(subject, ChildSubject):
        subject_response = ChildSubjectResponse(child_id=subject.child_id)
    else:
        subject_response = TeenSubjectResponse(teen_user_id=subject.teen_user_id)

    return ProgramCheckInResponse(
        id=checkin.id,
        session_id=checkin.session_id,
        program=checkin.program,
        subject=subject_response,
        name=name,
        pickup_code=checkin.pickup_code,
        checked_in_at=checkin.checked_in_at,
        picked_up_at=checkin.picked_up_at,
        picked_up_by=checkin.picked_up_by,
    )


class ProgramSessionService:
    """Opens and closes the per-day daycare, youth and teen sessions"""

    def __init__(self, db: AsyncSession, publisher: CheckInEventPublisher | None = None):
        self.db = db
        self.repository = ProgramSessionRepository(db)
        self.publisher = publisher or CheckInEventPublisher()

    async def open_session(self, program: str, actor_id: UUID) -> ProgramSession:
        """
        Open today's session for a program.

        Idempotent: opening an open session refreshes opened_by, opening a
        closed one reactivates the same row.
        """
        if program not in PROGRAMS:
            raise UnknownProgramException(program)

        session = await self.repository.upsert_open(program, local_today(), actor_id, utcnow())
        await self.db.commit()

        logger.info(f"{program} session {session.id} opened for {session.service_date} by {actor_id}")
        self.publisher.program_session_changed(session)
        return session

    async def close_session(self, program: str, actor_id: UUID) -> ProgramSession:
        """Close today's session; NotFound if it is not open."""
        if program not in PROGRAMS:
            raise UnknownProgramException(program)

        today = local_today()
        closed = await self.repository.close_active(program, today, actor_id, utcnow())
        if not closed:
            raise NoActiveProgramSessionException(program)
        await self.db.commit()

        session = await self.repository.get_for_date(program, today)
        logger.info(f"{program} session {session.id} closed by {actor_id}")
        self.publisher.program_session_changed(session)
        return session

    async def get_active_for_today(self) -> Dict[str, Optional[ProgramSession]]:
        today = local_today()
        return {
            program: await self.repository.get_active(program, today)
            for program in PROGRAMS
        }


class ProgramCheckInService:
    """Child and teen check-in plus pickup-code redemption"""

    def __init__(self, db: AsyncSession, publisher: CheckInEventPublisher | None = None):
        self.db = db
        self.repository = ProgramCheckInRepository(db)
        self.session_repository = ProgramSessionRepository(db)
        self.child_repository = ChildRepository(db)
        self.publisher = publisher or CheckInEventPublisher()

    async def check_in_children(
        self,
        program: str,
        parent_id: UUID,
        request: ChildCheckInRequest,
    ) -> ChildCheckInResult:
        """
        Check a parent's children into today's daycare or youth session.

        Business rules:
        - Children not owned by the parent are skipped (not_authorized)
        - A child already in today's session is skipped (already_checked_in)
        - Daycare check-ins always get a pickup code; youth only on request
        - Each child commits on its own, so one conflict does not undo the others
        """
        if program not in CHILD_PROGRAMS:
            raise UnknownProgramException(program)
        if not request.child_ids:
            raise ValidationException("Select at least one child")

        today = local_today()
        session = await self.session_repository.get_active(program, today)
        if not session:
            raise NoActiveProgramSessionException(program)

        # A rollback below expires loaded rows
        session_id = session.id
        issue_codes = program == "daycare" or request.generate_pickup_code
        created: List[ProgramCheckInResponse] = []
        skipped: List[SkippedChild] = []

        for child_id in dict.fromkeys(request.child_ids):
            child = await self.child_repository.get_owned(child_id, parent_id)
            if not child:
                logger.warning(f"Parent {parent_id} tried to check in child {child_id} they do not own")
                skipped.append(SkippedChild(child_id=child_id, reason="not_authorized"))
                continue
            child_name = child.full_name

            if await self.repository.get_for_child(session_id, child_id):
                skipped.append(SkippedChild(child_id=child_id, reason="already_checked_in"))
                continue

            pickup_code = None
            if issue_codes:
                pickup_code = await generate_code(
                    lambda code: self.repository.pickup_code_in_use(code, today)
                )

            checkin = ProgramCheckIn.for_child(
                session_id,
                program,
                child_id=child_id,
                parent_id=parent_id,
                pickup_code=pickup_code,
                emergency_contact_name=request.emergency_contact_name,
                emergency_contact_phone=request.emergency_contact_phone,
                notes=request.notes,
            )

            try:
                await self.repository.add(checkin)
                await self.db.commit()
            except IntegrityError:
                await self.db.rollback()
                logger.info(f"Concurrent check-in for child {child_id} lost the race")
                skipped.append(SkippedChild(child_id=child_id, reason="already_checked_in"))
                continue

            created.append(to_checkin_response(checkin, child_name))
            self.publisher.program_checkin_created(checkin)

        logger.info(
            f"{program} check-in by parent {parent_id}: {len(created)} created, {len(skipped)} skipped"
        )
        return ChildCheckInResult(checkins=created, skipped=skipped)

    async def check_in_teen(self, teen_user_id: UUID) -> ProgramCheckInResponse:
        """Self check-in to today's teen session for ages 16 through 21."""
        profile = await self.repository.get_profile(teen_user_id)
        if not profile:
            raise UserNotFoundException()
        if not profile.birthday:
            raise BirthdayMissingException()

        age = calculate_age(profile.birthday)
        if not is_teen_age(age):
            raise TeenAgeOutOfRangeException(age)
        name = profile.full_name

        session = await self.session_repository.get_active("teen", local_today())
        if not session:
            raise NoActiveProgramSessionException("teen")

        if await self.repository.get_for_teen(session.id, teen_user_id):
            raise TeenAlreadyCheckedInException()

        checkin = ProgramCheckIn.for_teen(session.id, teen_user_id)
        try:
            await self.repository.add(checkin)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise TeenAlreadyCheckedInException()

        logger.info(f"Teen {teen_user_id} checked in to session {checkin.session_id}")
        self.publisher.program_checkin_created(checkin)
        return to_checkin_response(checkin, name)

    async def redeem_pickup_code(self, code: str, picked_up_by: str | None = None) -> PickupResult:
        """
        Release a child against the code issued at check-in.

        Only codes issued today and not yet redeemed match. The final update is
        conditional on picked_up_at still being empty, so two staff redeeming
        the same code at once cannot both succeed.
        """
        code = (code or "").strip()
        if not code:
            raise ValidationException("Pickup code is required")

        candidates = await self.repository.find_pickup_candidates(code, local_today())
        if len(candidates) > 1:
            logger.error(f"Pickup code {code} matches more than one outstanding check-in")
            raise InvalidPickupCodeException()
        if not candidates:
            raise InvalidPickupCodeException()

        checkin, child = candidates[0]
        picked_up_by = picked_up_by or "Staff"
        checkin_id = checkin.id
        child_name = child.full_name
        picked_up_at = utcnow()

        if not await self.repository.mark_picked_up(checkin_id, picked_up_by, picked_up_at):
            await self.db.rollback()
            raise InvalidPickupCodeException()
        await self.db.commit()

        logger.info(f"Check-in {checkin_id} picked up by {picked_up_by}")
        self.publisher.program_checkin_picked_up(checkin_id, picked_up_by, picked_up_at)
        return PickupResult(checkin_id=checkin_id, child_name=child_name, picked_up_at=picked_up_at)


class ChildService:
    """Parent-managed child profiles"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repository = ChildRepository(db)

    def _check_birth_date(self, date_of_birth):
        if date_of_birth > local_today():
            raise ValidationException("Date of birth cannot be in the future")

    async def list_children(self, parent_id: UUID) -> List[Child]:
        return await self.repository.list_for_parent(parent_id)

    async def create_child(self, parent_id: UUID, request: ChildCreateRequest) -> Child:
        self._check_birth_date(request.date_of_birth)
        now = utcnow()
        child = Child(
            parent_id=parent_id,
            first_name=request.first_name.strip(),
            last_name=request.last_name.strip(),
            date_of_birth=request.date_of_birth,
            allergies=request.allergies,
            notes=request.notes,
            authorized_pickup_names=list(request.authorized_pickup_names),
            created_at=now,
            updated_at=now,
        )
        await self.repository.add(child)
        await self.db.commit()
        logger.info(f"Child {child.id} registered by parent {parent_id}")
        return child

    async def update_child(self, parent_id: UUID, child_id: UUID, request: ChildUpdateRequest) -> Child:
        child = await self.repository.get_owned(child_id, parent_id)
        if not child:
            raise ChildNotFoundException(child_id)

        changes = request.model_dump(exclude_unset=True)
        if changes.get("date_of_birth"):
            self._check_birth_date(changes["date_of_birth"])
        for field, value in changes.items():
            if value is None and field in ("first_name", "last_name", "date_of_birth", "authorized_pickup_names"):
                continue
            setattr(child, field, value.strip() if field in ("first_name", "last_name") else value)
        child.updated_at = utcnow()

        await self.db.commit()
        return child
