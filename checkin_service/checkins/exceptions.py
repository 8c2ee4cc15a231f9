"""Custom exceptions for event check-in"""
from checkin_service.exceptions import DuplicateCheckInException, NotFoundException


class InvalidCheckInCodeException(NotFoundException):
    """Raised when a code does not match any active session"""
    def __init__(self):
        super().__init__("Invalid or expired check-in code")


class NoActiveSessionException(NotFoundException):
    """Raised when a guest checks in without a code and nothing is live"""
    def __init__(self):
        super().__init__("No active check-in session available")


class AlreadyCheckedInException(DuplicateCheckInException):
    """Raised when a member checks in twice to the same session"""
    def __init__(self):
        super().__init__("You have already checked in for this event")
