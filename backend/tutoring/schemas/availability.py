"""
Availability schemas for the tutor's weekly grid and conflict checks.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from .base import StandardizedModel, StrictRequestModel

HOUR_PATTERN = r"^([01]\d|2[0-3]):00$"


class WeeklySlot(StandardizedModel):
    day_of_week: int = Field(..., ge=0, le=6, description="0 = Sunday")
    hour: str = Field(..., pattern=HOUR_PATTERN, examples=["17:00"])
    is_available: bool = True


class WeeklyAvailabilityResponse(StandardizedModel):
    tutor_id: str
    slots: List[WeeklySlot]
    booked_slots: List[WeeklySlot] = Field(default_factory=list)


class WeeklyAvailabilityUpdate(StrictRequestModel):
    """Full grid replacement: every listed slot becomes available."""

    slots: List[WeeklySlot]


class ToggleSlotRequest(StrictRequestModel):
    day_of_week: int = Field(..., ge=0, le=6)
    hour: str = Field(..., pattern=HOUR_PATTERN)


class ToggleDayRequest(StrictRequestModel):
    day_of_week: int = Field(..., ge=0, le=6)
    enabled: bool


class CheckAvailabilityRequest(StrictRequestModel):
    tutor_id: str = Field(..., min_length=1)
    proposed_time: datetime


class ConflictResultResponse(StandardizedModel):
    ok: bool
    day_of_week: int
    hour: str
    message: Optional[str] = None
    is_available: bool = False
    is_booked: bool = False
    suggested_times: List[str] = Field(default_factory=list)
