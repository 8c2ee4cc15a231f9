from checkin_service.roster.repository import RosterRepository
from checkin_service.roster.service import RosterService

__all__ = ["RosterRepository", "RosterService"]
