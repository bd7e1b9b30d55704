"""Cancellation and reschedule policy evaluation for scheduled lessons."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
import logging
import math
from typing import Any, Optional

from ..core.config import Settings, settings as default_settings
from ..core.constants import MAX_RESCHEDULES
from ..core.enums import ActorRole, FeeTier, LessonStatus
from ..core.exceptions import InvalidStateError, PolicyViolationError
from ..core.timezone_utils import ensure_utc

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

BLOCK_LESSON_STARTED = "lesson already started"
BLOCK_MAX_RESCHEDULES = "max reschedules reached"

WARNING_CANCEL_WITHIN_2H = "Odwołanie na mniej niż 2 godziny przed lekcją"
WARNING_CANCEL_WITHIN_24H = "Odwołanie na mniej niż 24 godziny przed lekcją"
WARNING_RESCHEDULE_WITHIN_2H = "Przełożenie na mniej niż 2 godziny przed lekcją"
WARNING_MAX_RESCHEDULES = f"Maksymalna liczba przełożeń została osiągnięta ({MAX_RESCHEDULES})"
WARNING_LESSON_STARTED = "Lekcja już się rozpoczęła"


def hours_until(scheduled_at: datetime, now: datetime) -> int:
    """
    Whole hours from ``now`` to ``scheduled_at``, halves rounded up.

    Naive datetimes are taken to be UTC.
    """
    delta = ensure_utc(scheduled_at) - ensure_utc(now)
    return math.floor(delta.total_seconds() / 3600 + 0.5)


def _money(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        amount = value
    else:
        amount = Decimal(str(value))
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def _status_value(status: Any) -> str:
    return str(getattr(status, "value", status))


def _role(actor_role: ActorRole | str) -> ActorRole:
    return actor_role if isinstance(actor_role, ActorRole) else ActorRole(actor_role)


@dataclass(frozen=True)
class CancellationDecision:
    allowed: bool
    actor_role: ActorRole
    hours_until: int
    fee_amount: Decimal = Decimal("0.00")
    payout_reduction: Decimal = Decimal("0.00")
    tier_label: FeeTier = FeeTier.NONE
    block_reason: Optional[str] = None
    warning: Optional[str] = None

    def to_payload(self) -> dict[str, object]:
        return {
            "allowed": self.allowed,
            "actor_role": self.actor_role.value,
            "hours_until": self.hours_until,
            "fee_amount": str(self.fee_amount),
            "payout_reduction": str(self.payout_reduction),
            "tier_label": self.tier_label.value,
            "block_reason": self.block_reason,
            "warning": self.warning,
        }


@dataclass(frozen=True)
class RescheduleDecision:
    allowed: bool
    actor_role: ActorRole
    hours_until: int
    reschedule_count: int
    fee_amount: Decimal = Decimal("0.00")
    payout_reduction: Decimal = Decimal("0.00")
    tier_label: FeeTier = FeeTier.NONE
    block_reason: Optional[str] = None
    warning: Optional[str] = None

    @property
    def reschedules_left(self) -> int:
        return max(0, MAX_RESCHEDULES - self.reschedule_count)

    def to_payload(self) -> dict[str, object]:
        return {
            "allowed": self.allowed,
            "actor_role": self.actor_role.value,
            "hours_until": self.hours_until,
            "reschedule_count": self.reschedule_count,
            "reschedules_left": self.reschedules_left,
            "fee_amount": str(self.fee_amount),
            "payout_reduction": str(self.payout_reduction),
            "tier_label": self.tier_label.value,
            "block_reason": self.block_reason,
            "warning": self.warning,
        }


class LessonPolicyEngine:
    """
    Decides whether a lesson may be cancelled or rescheduled and at what cost.

    Decisions are pure functions of the lesson snapshot, the actor's role and
    ``now``. Students pay fees, tutors lose part of their payout, admins act
    free of charge. Works with ORM lessons or any object exposing ``id``,
    ``scheduled_at``, ``price``, ``status`` and ``reschedule_count``.
    """

    def __init__(self, config: Optional[Settings] = None):
        self.config = config or default_settings

    def _ensure_scheduled(self, lesson: Any) -> None:
        status = _status_value(lesson.status)
        if status != LessonStatus.SCHEDULED.value:
            raise InvalidStateError("Lesson", getattr(lesson, "id", None), status)

    def _charges(
        self,
        role: ActorRole,
        price: Decimal,
        student_rate: Decimal,
        tutor_rate: Decimal,
    ) -> tuple[Decimal, Decimal]:
        fee = _money(price * student_rate) if role == ActorRole.STUDENT else _money(0)
        reduction = _money(price * tutor_rate) if role == ActorRole.TUTOR else _money(0)
        return fee, reduction

    def compute_cancellation(
        self, lesson: Any, actor_role: ActorRole | str, now: datetime
    ) -> CancellationDecision:
        self._ensure_scheduled(lesson)
        role = _role(actor_role)
        hours = hours_until(lesson.scheduled_at, now)
        price = _money(lesson.price)
        cfg = self.config

        if hours <= 0:
            return CancellationDecision(
                allowed=False,
                actor_role=role,
                hours_until=hours,
                block_reason=BLOCK_LESSON_STARTED,
                warning=WARNING_LESSON_STARTED,
            )

        if hours <= cfg.cancellation_late_hours:
            fee, reduction = self._charges(
                role,
                price,
                cfg.cancellation_late_student_fee_rate,
                cfg.cancellation_late_tutor_reduction_rate,
            )
            return CancellationDecision(
                allowed=True,
                actor_role=role,
                hours_until=hours,
                fee_amount=fee,
                payout_reduction=reduction,
                tier_label=FeeTier.WITHIN_2H,
                warning=WARNING_CANCEL_WITHIN_2H,
            )

        if hours <= cfg.cancellation_notice_hours:
            fee, reduction = self._charges(
                role,
                price,
                cfg.cancellation_notice_student_fee_rate,
                cfg.cancellation_notice_tutor_reduction_rate,
            )
            return CancellationDecision(
                allowed=True,
                actor_role=role,
                hours_until=hours,
                fee_amount=fee,
                payout_reduction=reduction,
                tier_label=FeeTier.WITHIN_24H,
                warning=WARNING_CANCEL_WITHIN_24H,
            )

        return CancellationDecision(allowed=True, actor_role=role, hours_until=hours)

    def compute_reschedule(
        self, lesson: Any, actor_role: ActorRole | str, now: datetime
    ) -> RescheduleDecision:
        self._ensure_scheduled(lesson)
        role = _role(actor_role)
        hours = hours_until(lesson.scheduled_at, now)
        count = int(lesson.reschedule_count or 0)
        cfg = self.config

        # The cap wins over timing
        if count >= MAX_RESCHEDULES:
            return RescheduleDecision(
                allowed=False,
                actor_role=role,
                hours_until=hours,
                reschedule_count=count,
                block_reason=BLOCK_MAX_RESCHEDULES,
                warning=WARNING_MAX_RESCHEDULES,
            )

        if hours <= 0:
            return RescheduleDecision(
                allowed=False,
                actor_role=role,
                hours_until=hours,
                reschedule_count=count,
                block_reason=BLOCK_LESSON_STARTED,
                warning=WARNING_LESSON_STARTED,
            )

        if hours <= cfg.reschedule_late_hours:
            fee, reduction = self._charges(
                role,
                _money(lesson.price),
                cfg.reschedule_late_student_fee_rate,
                cfg.reschedule_late_tutor_reduction_rate,
            )
            return RescheduleDecision(
                allowed=True,
                actor_role=role,
                hours_until=hours,
                reschedule_count=count,
                fee_amount=fee,
                payout_reduction=reduction,
                tier_label=FeeTier.WITHIN_2H,
                warning=WARNING_RESCHEDULE_WITHIN_2H,
            )

        return RescheduleDecision(
            allowed=True, actor_role=role, hours_until=hours, reschedule_count=count
        )

    def apply_cancellation(self, lesson: Any, decision: CancellationDecision, now: datetime) -> Any:
        """Mark the lesson cancelled according to an allowed decision."""
        if not decision.allowed:
            raise PolicyViolationError("cancellation", decision.block_reason)
        self._ensure_scheduled(lesson)

        lesson.status = LessonStatus.CANCELLED.value
        if hasattr(lesson, "cancelled_at"):
            lesson.cancelled_at = ensure_utc(now)
        if hasattr(lesson, "cancelled_by"):
            lesson.cancelled_by = decision.actor_role.value
        logger.info(
            f"Lesson {getattr(lesson, 'id', None)} cancelled by {decision.actor_role.value} "
            f"({decision.tier_label.value}, {decision.hours_until}h notice)"
        )
        return lesson

    def apply_reschedule(
        self, lesson: Any, decision: RescheduleDecision, new_scheduled_at: datetime
    ) -> Any:
        """Move the lesson according to an allowed decision, counting the move."""
        if not decision.allowed:
            raise PolicyViolationError("reschedule", decision.block_reason)
        self._ensure_scheduled(lesson)

        count = int(lesson.reschedule_count or 0)
        if count >= MAX_RESCHEDULES:
            raise PolicyViolationError("reschedule", BLOCK_MAX_RESCHEDULES)

        if hasattr(lesson, "original_scheduled_at") and lesson.original_scheduled_at is None:
            lesson.original_scheduled_at = lesson.scheduled_at
        lesson.scheduled_at = ensure_utc(new_scheduled_at)
        lesson.reschedule_count = count + 1
        logger.info(
            f"Lesson {getattr(lesson, 'id', None)} rescheduled by {decision.actor_role.value} "
            f"to {lesson.scheduled_at.isoformat()} ({lesson.reschedule_count}/{MAX_RESCHEDULES})"
        )
        return lesson
