"""
Date and time utility functions used across the project.

Notes:
- All "UTC" helpers use timezone-aware datetimes with `timezone.utc`.
- Stay ranges are half-open: the check-out day is free for the next guest.
"""

import math
from datetime import date, datetime, timedelta, timezone
from typing import Union

UTC = timezone.utc

DateLike = Union[date, datetime]


def now_utc() -> datetime:
    """Return current UTC datetime (timezone-aware)."""
    return datetime.now(UTC)


def today_utc() -> date:
    """Return today's date in UTC."""
    return now_utc().date()


def nights_between(check_in: DateLike, check_out: DateLike) -> int:
    """
    Number of nights between two instants, rounding partial days up.

    Plain dates give the whole-day difference; datetimes are measured
    in seconds and ceiled, so a 25 hour stay counts as two nights.
    """
    if isinstance(check_in, datetime) or isinstance(check_out, datetime):
        start = check_in if isinstance(check_in, datetime) else datetime.combine(check_in, datetime.min.time())
        end = check_out if isinstance(check_out, datetime) else datetime.combine(check_out, datetime.min.time())
        if (start.tzinfo is None) != (end.tzinfo is None):
            start = start.replace(tzinfo=None)
            end = end.replace(tzinfo=None)
        return math.ceil((end - start).total_seconds() / 86400)
    return (check_out - check_in).days


def is_valid_range(check_in: DateLike, check_out: DateLike) -> bool:
    """A stay range is valid when check-out falls strictly after check-in."""
    return check_out > check_in


def days_from_today(days: int) -> date:
    return today_utc() + timedelta(days=days)
