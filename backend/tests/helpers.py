# backend/tests/helpers.py
"""Shared test constants and small utilities."""

from datetime import datetime, timedelta
from typing import Optional

from tutoring.core.timezone_utils import localize_tutor_time

TUTOR_ID = "tutor-anna"
STUDENT_ID = "student-jan"
OTHER_TUTOR_ID = "tutor-piotr"
OTHER_STUDENT_ID = "student-ola"

MONDAY = 1
TUESDAY = 2


def warsaw(year: int, month: int, day: int, hour: int, minute: int = 0) -> datetime:
    """UTC instant of a Warsaw wall-clock time."""
    return localize_tutor_time(datetime(year, month, day, hour, minute))


# Monday, 2026-10-19 10:00 Europe/Warsaw (08:00 UTC)
NOW = warsaw(2026, 10, 19, 10)


class FrozenClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


def auth(user_id: str, role: Optional[str] = None) -> dict:
    headers = {"X-User-Id": user_id}
    if role:
        headers["X-User-Role"] = role
    return headers
