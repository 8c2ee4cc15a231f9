"""Program Session, Child and Program Check-In Repository Layer"""
from uuid import UUID, uuid4
from datetime import date, datetime
from typing import Optional, List, Tuple
from sqlalchemy import select, update, and_

from checkin_service.db.models import UserProfile
from checkin_service.db.repository import BaseRepository
from checkin_service.programs.models import Child, ProgramCheckIn, ProgramSession


class ProgramSessionRepository(BaseRepository):
    """Repository for per-day program sessions"""

    async def get_for_date(self, program: str, service_date: date) -> Optional[ProgramSession]:
        """Get the program's session for a service date, open or closed"""
        stmt = (
            select(ProgramSession)
            .where(
                and_(
                    ProgramSession.program == program,
                    ProgramSession.service_date == service_date,
                )
            )
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_active(self, program: str, service_date: date) -> Optional[ProgramSession]:
        """Get the program's open session for a service date"""
        session = await self.get_for_date(program, service_date)
        if session and session.status == "active":
            return session
        return None

    async def upsert_open(
        self,
        program: str,
        service_date: date,
        opened_by: UUID,
        opened_at: datetime,
    ) -> ProgramSession:
        """
        Open the (program, service_date) session in one statement.

        A closed row is reactivated in place, so concurrent opens converge
        on the same row.
        """
        stmt = self._insert(ProgramSession).values(
            id=uuid4(),
            program=program,
            service_date=service_date,
            status="active",
            opened_at=opened_at,
            opened_by=opened_by,
            closed_at=None,
            closed_by=None,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[ProgramSession.program, ProgramSession.service_date],
            set_={
                "status": "active",
                "opened_by": stmt.excluded.opened_by,
                "opened_at": stmt.excluded.opened_at,
                "closed_at": None,
                "closed_by": None,
            },
        )
        await self.db.execute(stmt)
        return await self.get_for_date(program, service_date)

    async def close_active(
        self,
        program: str,
        service_date: date,
        closed_by: UUID,
        closed_at: datetime,
    ) -> bool:
        """Close the session only if it is still open; False when nothing changed"""
        result = await self.db.execute(
            update(ProgramSession)
            .where(
                and_(
                    ProgramSession.program == program,
                    ProgramSession.service_date == service_date,
                    ProgramSession.status == "active",
                )
            )
            .values(status="closed", closed_at=closed_at, closed_by=closed_by)
        )
        return result.rowcount == 1


class ChildRepository(BaseRepository):
    """Repository for child profiles"""

    async def list_for_parent(self, parent_id: UUID) -> List[Child]:
        stmt = (
            select(Child)
            .where(Child.parent_id == parent_id)
            .order_by(Child.first_name, Child.last_name)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_owned(self, child_id: UUID, parent_id: UUID) -> Optional[Child]:
        """Get a child only if it belongs to the parent"""
        stmt = select(Child).where(
            and_(Child.id == child_id, Child.parent_id == parent_id)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()


class ProgramCheckInRepository(BaseRepository):
    """Repository for child and teen check-ins"""

    async def get_for_child(self, session_id: UUID, child_id: UUID) -> Optional[ProgramCheckIn]:
        stmt = select(ProgramCheckIn).where(
            and_(
                ProgramCheckIn.session_id == session_id,
                ProgramCheckIn.child_id == child_id,
            )
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_for_teen(self, session_id: UUID, teen_user_id: UUID) -> Optional[ProgramCheckIn]:
        stmt = select(ProgramCheckIn).where(
            and_(
                ProgramCheckIn.session_id == session_id,
                ProgramCheckIn.teen_user_id == teen_user_id,
            )
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_profile(self, user_id: UUID) -> Optional[UserProfile]:
        result = await self.db.execute(select(UserProfile).where(UserProfile.id == user_id))
        return result.scalar_one_or_none()

    def _outstanding_code(self, code: str, service_date: date):
        return and_(
            ProgramCheckIn.pickup_code == code,
            ProgramCheckIn.picked_up_at.is_(None),
            ProgramSession.service_date == service_date,
        )

    async def pickup_code_in_use(self, code: str, service_date: date) -> bool:
        """Whether an unredeemed check-in from the same day already holds this code"""
        stmt = (
            select(ProgramCheckIn.id)
            .join(ProgramSession, ProgramCheckIn.session_id == ProgramSession.id)
            .where(self._outstanding_code(code, service_date))
            .limit(1)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def find_pickup_candidates(
        self,
        code: str,
        service_date: date,
    ) -> List[Tuple[ProgramCheckIn, Child]]:
        """
        Unredeemed check-ins holding this code today, with their child.

        At most two rows are returned; more than one means the code is ambiguous.
        """
        stmt = (
            select(ProgramCheckIn, Child)
            .join(ProgramSession, ProgramCheckIn.session_id == ProgramSession.id)
            .join(Child, ProgramCheckIn.child_id == Child.id)
            .where(self._outstanding_code(code, service_date))
            .limit(2)
        )
        result = await self.db.execute(stmt)
        return [(row[0], row[1]) for row in result.all()]

    async def mark_picked_up(self, checkin_id: UUID, picked_up_by: str | None, picked_up_at: datetime) -> bool:
        """Redeem a pickup code; only the first caller sees True"""
        result = await self.db.execute(
            update(ProgramCheckIn)
            .where(
                and_(
                    ProgramCheckIn.id == checkin_id,
                    ProgramCheckIn.picked_up_at.is_(None),
                )
            )
            .values(picked_up_at=picked_up_at, picked_up_by=picked_up_by)
        )
        return result.rowcount == 1
