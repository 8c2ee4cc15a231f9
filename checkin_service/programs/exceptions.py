"""Custom exceptions for program sessions, child check-in and pickup"""
from checkin_service.exceptions import (
    DuplicateCheckInException,
    NotFoundException,
    ValidationException,
)


class NoActiveProgramSessionException(NotFoundException):
    """Raised when the program has no open session today"""
    def __init__(self, program: str):
        super().__init__(f"No active {program} session today")


class UnknownProgramException(ValidationException):
    """Raised for a program name outside daycare, youth and teen"""
    def __init__(self, program: str):
        super().__init__(f"Unknown program: {program}")


class ChildNotFoundException(NotFoundException):
    """Raised when a child does not exist or belongs to another parent"""
    def __init__(self, child_id=None):
        detail = "Child not found"
        if child_id:
            detail = f"Child {child_id} not found"
        super().__init__(detail)


class UserNotFoundException(NotFoundException):
    def __init__(self):
        super().__init__("User profile not found")


class BirthdayMissingException(ValidationException):
    def __init__(self):
        super().__init__("Birthday must be set on your profile for teen check-in")


class TeenAgeOutOfRangeException(ValidationException):
    """Raised when a teen check-in comes from someone outside ages 16-21"""
    def __init__(self, age: float):
        super().__init__(f"Teen check-in is for ages 16-21 (age {int(age)})")


class TeenAlreadyCheckedInException(DuplicateCheckInException):
    def __init__(self):
        super().__init__("You have already checked in to teen church today")


class InvalidPickupCodeException(NotFoundException):
    """Raised when a pickup code matches no outstanding check-in today"""
    def __init__(self):
        super().__init__("Invalid or already used pickup code")
