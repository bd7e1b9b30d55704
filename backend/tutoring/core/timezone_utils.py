"""
Timezone utilities for the tutoring platform.

Lessons and invitations are stored as UTC instants; the weekly availability
grid is expressed in the tutor's local wall-clock time.
"""

from datetime import datetime, timezone
from typing import Optional

import pytz

from .config import settings


def get_tutor_timezone(tz_name: Optional[str] = None) -> pytz.BaseTzInfo:
    """
    Get the timezone used for the weekly availability grid.

    Args:
        tz_name: Optional explicit timezone name, defaults to settings

    Returns:
        pytz timezone object
    """
    return pytz.timezone(tz_name or settings.tutor_timezone)


def ensure_utc(dt: datetime) -> datetime:
    """Treat naive datetimes as UTC and normalize aware ones to UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_tutor_local(dt: datetime, tz: Optional[pytz.BaseTzInfo] = None) -> datetime:
    """Convert an instant to the tutor's local time."""
    return ensure_utc(dt).astimezone(tz or get_tutor_timezone())


def localize_tutor_time(naive_local: datetime, tz: Optional[pytz.BaseTzInfo] = None) -> datetime:
    """
    Attach the tutor's timezone to a naive local datetime and return it in UTC.

    Uses pytz ``localize`` so DST transitions resolve correctly.
    """
    tutor_tz = tz or get_tutor_timezone()
    return tutor_tz.localize(naive_local).astimezone(timezone.utc)
