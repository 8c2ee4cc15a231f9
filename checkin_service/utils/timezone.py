"""Timezone utilities for the church-local service day"""
import os
from datetime import date, datetime
import pytz

# Local timezone of the congregation; decides what "today" means for program sessions
CHURCH_TZ = pytz.timezone(os.getenv("CHURCH_TIMEZONE", "UTC"))


def utcnow() -> datetime:
    """Naive UTC timestamp, the storage convention for every DateTime column."""
    return datetime.now(pytz.utc).replace(tzinfo=None)


def local_today() -> date:
    """Current service date in the church timezone."""
    return datetime.now(CHURCH_TZ).date()


def convert_to_local(dt: datetime | None) -> datetime | None:
    """
    Convert UTC naive datetime to the church timezone for display.

    Args:
        dt: Naive datetime assumed to be in UTC, or None

    Returns:
        Naive datetime in the church timezone, or None if input is None
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        utc_dt = pytz.utc.localize(dt)
        return utc_dt.astimezone(CHURCH_TZ).replace(tzinfo=None)
    return dt
