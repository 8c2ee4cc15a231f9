from checkin_service.checkins.models import CheckIn
from checkin_service.checkins.repository import CheckInRepository
from checkin_service.checkins.service import CheckInService

__all__ = ["CheckIn", "CheckInRepository", "CheckInService"]
