"""Time utilities for consistent timestamp handling."""

from datetime import date, datetime, timezone
from typing import Callable
from zoneinfo import ZoneInfo

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Return current UTC timestamp (timezone-aware)."""
    return datetime.now(timezone.utc)


def local_today(clock: Clock, tz: ZoneInfo) -> date:
    """Return the calendar date of clock() in the given timezone."""
    return clock().astimezone(tz).date()


def fixed_clock(moment: datetime) -> Clock:
    """Return a clock frozen at moment (naive values are taken as UTC)."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return lambda: moment
