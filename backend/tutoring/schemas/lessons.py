"""
Lesson schemas: cancel and reschedule requests, fee previews and lesson details.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from ..core.constants import MAX_REASON_LENGTH
from ..services.lesson_policy_engine import CancellationDecision, RescheduleDecision
from .base import Money, StandardizedModel, StrictRequestModel


def _clean_reason(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class LessonCancelRequest(StrictRequestModel):
    reason: Optional[str] = Field(None, max_length=MAX_REASON_LENGTH, description="Cancellation reason")

    @field_validator("reason")
    @classmethod
    def clean_reason(cls, v: Optional[str]) -> Optional[str]:
        return _clean_reason(v)


class LessonRescheduleRequest(StrictRequestModel):
    """New start time for a lesson; naive datetimes are read as UTC."""

    new_scheduled_at: datetime = Field(..., description="New lesson start (ISO 8601)")
    reason: Optional[str] = Field(None, max_length=MAX_REASON_LENGTH)

    @field_validator("reason")
    @classmethod
    def clean_reason(cls, v: Optional[str]) -> Optional[str]:
        return _clean_reason(v)


class LessonResponse(StandardizedModel):
    id: str
    student_id: str
    tutor_id: str
    title: str
    scheduled_at: datetime
    original_scheduled_at: Optional[datetime] = None
    duration_minutes: int
    price: Money
    status: str
    payment_status: str
    reschedule_count: int
    cancelled_by: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    completed_at: Optional[datetime] = None


class CancellationDecisionResponse(StandardizedModel):
    allowed: bool
    actor_role: str
    hours_until: int
    fee_amount: Money
    payout_reduction: Money
    tier_label: str
    block_reason: Optional[str] = None
    warning: Optional[str] = None

    @classmethod
    def from_decision(cls, decision: CancellationDecision) -> "CancellationDecisionResponse":
        return cls(**decision.to_payload())


class RescheduleDecisionResponse(CancellationDecisionResponse):
    reschedule_count: int
    reschedules_left: int

    @classmethod
    def from_decision(cls, decision: RescheduleDecision) -> "RescheduleDecisionResponse":  # type: ignore[override]
        return cls(**decision.to_payload())


class LessonActionResponse(StandardizedModel):
    """Lesson after an action, with the fee decision that was applied."""

    lesson: LessonResponse
    decision: CancellationDecisionResponse


class LessonRescheduleResponse(StandardizedModel):
    lesson: LessonResponse
    decision: RescheduleDecisionResponse
