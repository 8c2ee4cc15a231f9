"""Custom exceptions for event check-in sessions"""
from checkin_service.exceptions import ConflictException, NotFoundException


class EventNotFoundException(NotFoundException):
    """Raised when the event to open a session for does not exist"""
    def __init__(self, event_id=None):
        detail = "Event not found"
        if event_id:
            detail = f"Event {event_id} not found"
        super().__init__(detail)


class AnotherEventLiveException(ConflictException):
    """Raised when a different event already has an active session"""
    def __init__(self, event_title: str | None = None):
        title = f'"{event_title}"' if event_title else "Another event"
        super().__init__(f"{title} is already live. Please stop that session first.")
