from checkin_service.programs.models import Child, ProgramCheckIn, ProgramSession
from checkin_service.programs.service import (
    ChildService,
    ProgramCheckInService,
    ProgramSessionService,
)

__all__ = [
    "Child",
    "ChildService",
    "ProgramCheckIn",
    "ProgramCheckInService",
    "ProgramSession",
    "ProgramSessionService",
]
