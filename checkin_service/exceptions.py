"""Error kinds shared by every check-in component"""
from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse


class CheckInServiceException(HTTPException):
    """Base class; `error` tells clients which kind of failure occurred"""
    error = "error"

    def __init__(self, status_code: int, detail: str):
        super().__init__(status_code=status_code, detail=detail)


class NotFoundException(CheckInServiceException):
    """No matching session, code or record"""
    error = "not_found"

    def __init__(self, detail: str = "Not found"):
        super().__init__(status.HTTP_404_NOT_FOUND, detail)


class ConflictException(CheckInServiceException):
    """Another event is already live"""
    error = "conflict"

    def __init__(self, detail: str = "Conflict"):
        super().__init__(status.HTTP_409_CONFLICT, detail)


class DuplicateCheckInException(CheckInServiceException):
    """Person already checked in to this session"""
    error = "duplicate"

    def __init__(self, detail: str = "Already checked in"):
        super().__init__(status.HTTP_409_CONFLICT, detail)


class ValidationException(CheckInServiceException):
    """Input is well-formed but violates a business rule"""
    error = "validation_error"

    def __init__(self, detail: str = "Invalid request"):
        super().__init__(status.HTTP_400_BAD_REQUEST, detail)


class CodeSpaceExhaustedException(CheckInServiceException):
    """Code generator ran out of retries"""
    error = "code_space_exhausted"

    def __init__(self, attempts: int):
        super().__init__(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            f"Could not allocate a free code after {attempts} attempts",
        )


async def checkin_exception_handler(request: Request, exc: CheckInServiceException) -> JSONResponse:
    """Render domain errors with their machine-readable kind."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "error": exc.error},
    )
