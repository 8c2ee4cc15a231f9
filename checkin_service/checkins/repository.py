"""Check-In Repository Layer"""
from uuid import UUID
from typing import Optional
from sqlalchemy import select, and_

from checkin_service.checkins.models import CheckIn
from checkin_service.db.repository import BaseRepository


class CheckInRepository(BaseRepository):
    """Repository for attendance records"""

    async def get_member_checkin(self, session_id: UUID, member_id: UUID) -> Optional[CheckIn]:
        """Get a member's check-in for a session"""
        stmt = select(CheckIn).where(
            and_(
                CheckIn.session_id == session_id,
                CheckIn.member_id == member_id,
            )
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()
