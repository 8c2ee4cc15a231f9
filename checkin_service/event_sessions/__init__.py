from checkin_service.event_sessions.models import EventSession
from checkin_service.event_sessions.repository import EventSessionRepository
from checkin_service.event_sessions.service import EventSessionService

__all__ = ["EventSession", "EventSessionRepository", "EventSessionService"]
