from datetime import datetime, timezone
from typing import Optional, Tuple

from pytz import (
    timezone as pytz_timezone,
    AmbiguousTimeError,
    NonExistentTimeError,
    UnknownTimeZoneError,
)


def is_valid_tz(tzname: str) -> bool:
    if not tzname:
        return False
    try:
        pytz_timezone(tzname)
        return True
    except UnknownTimeZoneError:
        return False


def _utc_now(now: Optional[datetime] = None) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc)


def local_now(tzname: str, now: Optional[datetime] = None) -> Tuple[int, int, int, int, int]:
    """Current wall-clock fields (y, m, d, h, min) in ``tzname``."""
    local = _utc_now(now).astimezone(pytz_timezone(tzname))
    return local.year, local.month, local.day, local.hour, local.minute


def resolve_absolute(tzname: str, hours: int, minutes: int, now: Optional[datetime] = None) -> datetime:
    """
    Return the UTC instant at which the clock in ``tzname`` shows HH:MM today.

    "Today" is the current calendar date in that zone. A time that has already
    passed stays on today's date; it is never moved to tomorrow.

    On DST change days a repeated wall time resolves to its first (summer
    time) occurrence, and a skipped one to the instant the clock shows after
    jumping forward (02:30 becomes 03:30).
    """
    tz = pytz_timezone(tzname)
    local = _utc_now(now).astimezone(tz)
    wall = local.replace(tzinfo=None, hour=hours, minute=minutes, second=0, microsecond=0)
    try:
        resolved = tz.localize(wall, is_dst=None)
    except AmbiguousTimeError:
        resolved = tz.localize(wall, is_dst=True)
    except NonExistentTimeError:
        # Standard-time offset: the instant lands after the gap
        resolved = tz.localize(wall, is_dst=False)
    return resolved.astimezone(timezone.utc)


def format_local(instant: datetime, tzname: str) -> str:
    return _utc_now(instant).astimezone(pytz_timezone(tzname)).strftime("%H:%M")


def local_calendar_date(instant: datetime, tzname: str) -> str:
    return _utc_now(instant).astimezone(pytz_timezone(tzname)).strftime("%Y-%m-%d")

