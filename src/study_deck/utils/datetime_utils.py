"""
Timezone-aware datetime helpers and the injectable review clock.

All scheduling timestamps are aware UTC datetimes. MongoDB returns naive
UTC values unless the client is created with ``tz_aware=True``, so values
read back from storage pass through `ensure_timezone_aware` before they are
compared with the clock.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Get current UTC datetime with timezone awareness."""
    return datetime.now(timezone.utc)


def add_days(dt: datetime, days: int) -> datetime:
    """Add whole days to a datetime while preserving its timezone."""
    return dt + timedelta(days=days)


def ensure_timezone_aware(dt: datetime, default_tz: Optional[timezone] = None) -> datetime:
    """
    Ensure datetime is timezone-aware.

    Args:
        dt: Datetime object to check
        default_tz: Timezone to assume if datetime is naive (defaults to UTC)

    Returns:
        datetime: Timezone-aware datetime object
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=default_tz or timezone.utc)
    return dt


class FixedClock:
    """Clock that always returns the same instant until moved with `advance`."""

    def __init__(self, now: datetime):
        self.now = ensure_timezone_aware(now)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now
