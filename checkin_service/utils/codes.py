"""Short numeric codes for event check-in and child pickup"""
import logging
import secrets
from typing import Awaitable, Callable

from checkin_service.exceptions import CodeSpaceExhaustedException

logger = logging.getLogger(__name__)

CODE_MIN = 1000
CODE_MAX = 9999
MAX_ATTEMPTS = 20


def draw_code() -> str:
    """Uniform random 4-digit code without a leading zero."""
    return str(CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1))


async def generate_code(
    is_taken: Callable[[str], Awaitable[bool]],
    max_attempts: int = MAX_ATTEMPTS,
) -> str:
    """
    Draw codes until one is not in use within the caller's scope.

    Args:
        is_taken: Async predicate answering whether a code is currently live in the scope
        max_attempts: Retry budget before giving up

    Raises:
        CodeSpaceExhaustedException: No free code found within the budget
    """
    for _ in range(max_attempts):
        code = draw_code()
        if not await is_taken(code):
            return code
    logger.error(f"Code generation exhausted after {max_attempts} attempts")
    raise CodeSpaceExhaustedException(max_attempts)
