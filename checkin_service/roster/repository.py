"""Read-only roster queries across event and program check-ins."""
from uuid import UUID
from typing import List, Optional, Tuple
from sqlalchemy import select
from sqlalchemy.orm import aliased

from checkin_service.checkins.models import CheckIn
from checkin_service.db.models import UserProfile
from checkin_service.event_sessions.repository import EventSessionRepository
from checkin_service.programs.models import Child, ProgramCheckIn


class RosterRepository(EventSessionRepository):
    """Repository for roster projections"""

    async def get_event_checkins(
        self,
        session_id: UUID,
        type_filter: str | None = None,
    ) -> List[Tuple[CheckIn, Optional[UserProfile]]]:
        """Check-ins of one session, newest first, with the member profile when there is one"""
        stmt = (
            select(CheckIn, UserProfile)
            .outerjoin(UserProfile, CheckIn.member_id == UserProfile.id)
            .where(CheckIn.session_id == session_id)
        )
        if type_filter:
            stmt = stmt.where(CheckIn.type == type_filter)
        stmt = stmt.order_by(CheckIn.created_at.desc()).execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return [(row[0], row[1]) for row in result.all()]

    async def get_program_checkins(self, session_id: UUID, status_filter: str = "all"):
        """
        Program check-ins with child, parent and teen profiles joined.

        Rows are (ProgramCheckIn, Child | None, parent UserProfile | None,
        teen UserProfile | None).
        """
        parent = aliased(UserProfile)
        teen = aliased(UserProfile)
        stmt = (
            select(ProgramCheckIn, Child, parent, teen)
            .outerjoin(Child, ProgramCheckIn.child_id == Child.id)
            .outerjoin(parent, ProgramCheckIn.parent_id == parent.id)
            .outerjoin(teen, ProgramCheckIn.teen_user_id == teen.id)
            .where(ProgramCheckIn.session_id == session_id)
        )
        if status_filter == "checked_in":
            stmt = stmt.where(ProgramCheckIn.picked_up_at.is_(None))
        elif status_filter == "picked_up":
            stmt = stmt.where(ProgramCheckIn.picked_up_at.is_not(None))
        stmt = stmt.order_by(ProgramCheckIn.checked_in_at.desc()).execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return [tuple(row) for row in result.all()]
