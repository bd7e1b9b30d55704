from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest

from tutoring.core.enums import ActorRole, FeeTier, LessonStatus
from tutoring.core.exceptions import InvalidStateError, PolicyViolationError
from tutoring.services.lesson_policy_engine import (
    BLOCK_LESSON_STARTED,
    BLOCK_MAX_RESCHEDULES,
    LessonPolicyEngine,
    hours_until,
)

NOW = datetime(2026, 10, 19, 8, 0, tzinfo=timezone.utc)


def _lesson(
    offset: timedelta,
    price: str = "200.00",
    reschedule_count: int = 0,
    status: str = LessonStatus.SCHEDULED.value,
) -> SimpleNamespace:
    return SimpleNamespace(
        id="lesson-1",
        scheduled_at=NOW + offset,
        original_scheduled_at=None,
        price=Decimal(price),
        status=status,
        reschedule_count=reschedule_count,
        cancelled_at=None,
        cancelled_by=None,
    )


@pytest.fixture
def engine() -> LessonPolicyEngine:
    return LessonPolicyEngine()


class TestHoursUntil:
    def test_rounds_half_hours_up(self) -> None:
        assert hours_until(NOW + timedelta(hours=2, minutes=30), NOW) == 3
        assert hours_until(NOW + timedelta(hours=2, minutes=29), NOW) == 2
        assert hours_until(NOW + timedelta(minutes=30), NOW) == 1
        assert hours_until(NOW + timedelta(minutes=29), NOW) == 0

    def test_negative_half_hour_rounds_toward_positive(self) -> None:
        assert hours_until(NOW - timedelta(minutes=30), NOW) == 0
        assert hours_until(NOW - timedelta(minutes=31), NOW) == -1

    def test_naive_datetimes_are_utc(self) -> None:
        naive_now = NOW.replace(tzinfo=None)
        assert hours_until(naive_now + timedelta(hours=5), NOW) == 5


class TestCancellation:
    def test_student_within_two_hours_pays_half(self, engine: LessonPolicyEngine) -> None:
        decision = engine.compute_cancellation(_lesson(timedelta(hours=1)), ActorRole.STUDENT, NOW)

        assert decision.allowed is True
        assert decision.tier_label == FeeTier.WITHIN_2H
        assert decision.hours_until == 1
        assert decision.fee_amount == Decimal("100.00")
        assert decision.payout_reduction == Decimal("0.00")
        assert decision.warning

    def test_tutor_within_two_hours_loses_thirty_percent(self, engine: LessonPolicyEngine) -> None:
        decision = engine.compute_cancellation(_lesson(timedelta(hours=1)), ActorRole.TUTOR, NOW)

        assert decision.tier_label == FeeTier.WITHIN_2H
        assert decision.fee_amount == Decimal("0.00")
        assert decision.payout_reduction == Decimal("60.00")

    def test_student_within_day_pays_quarter(self, engine: LessonPolicyEngine) -> None:
        decision = engine.compute_cancellation(_lesson(timedelta(hours=20)), "student", NOW)

        assert decision.tier_label == FeeTier.WITHIN_24H
        assert decision.fee_amount == Decimal("50.00")
        assert decision.payout_reduction == Decimal("0.00")

    def test_tutor_within_day_loses_fifteen_percent(self, engine: LessonPolicyEngine) -> None:
        decision = engine.compute_cancellation(_lesson(timedelta(hours=20)), ActorRole.TUTOR, NOW)

        assert decision.tier_label == FeeTier.WITHIN_24H
        assert decision.payout_reduction == Decimal("30.00")

    def test_tier_boundaries_are_inclusive(self, engine: LessonPolicyEngine) -> None:
        at_two = engine.compute_cancellation(_lesson(timedelta(hours=2)), ActorRole.STUDENT, NOW)
        at_day = engine.compute_cancellation(_lesson(timedelta(hours=24)), ActorRole.STUDENT, NOW)
        past_day = engine.compute_cancellation(
            _lesson(timedelta(hours=24, minutes=30)), ActorRole.STUDENT, NOW
        )

        assert at_two.tier_label == FeeTier.WITHIN_2H
        assert at_day.tier_label == FeeTier.WITHIN_24H
        assert past_day.tier_label == FeeTier.NONE
        assert past_day.hours_until == 25

    def test_more_than_a_day_ahead_is_free(self, engine: LessonPolicyEngine) -> None:
        decision = engine.compute_cancellation(_lesson(timedelta(days=3)), ActorRole.STUDENT, NOW)

        assert decision.allowed is True
        assert decision.tier_label == FeeTier.NONE
        assert decision.fee_amount == Decimal("0.00")
        assert decision.payout_reduction == Decimal("0.00")
        assert decision.warning is None

    def test_admin_is_never_charged(self, engine: LessonPolicyEngine) -> None:
        decision = engine.compute_cancellation(_lesson(timedelta(hours=1)), ActorRole.ADMIN, NOW)

        assert decision.tier_label == FeeTier.WITHIN_2H
        assert decision.fee_amount == Decimal("0.00")
        assert decision.payout_reduction == Decimal("0.00")

    @pytest.mark.parametrize("offset", [timedelta(0), timedelta(minutes=20), timedelta(hours=-3)])
    def test_started_lesson_cannot_be_cancelled(
        self, engine: LessonPolicyEngine, offset: timedelta
    ) -> None:
        decision = engine.compute_cancellation(_lesson(offset), ActorRole.STUDENT, NOW)

        assert decision.allowed is False
        assert decision.block_reason == BLOCK_LESSON_STARTED
        assert decision.fee_amount == Decimal("0.00")

    def test_fee_is_rounded_to_cents(self, engine: LessonPolicyEngine) -> None:
        decision = engine.compute_cancellation(
            _lesson(timedelta(hours=10), price="99.99"), ActorRole.STUDENT, NOW
        )
        assert decision.fee_amount == Decimal("25.00")

    def test_non_scheduled_lesson_is_rejected(self, engine: LessonPolicyEngine) -> None:
        lesson = _lesson(timedelta(hours=5), status=LessonStatus.CANCELLED.value)

        with pytest.raises(InvalidStateError) as exc_info:
            engine.compute_cancellation(lesson, ActorRole.STUDENT, NOW)
        assert exc_info.value.details["status"] == "cancelled"

    def test_apply_marks_lesson_cancelled(self, engine: LessonPolicyEngine) -> None:
        lesson = _lesson(timedelta(hours=1))
        decision = engine.compute_cancellation(lesson, ActorRole.TUTOR, NOW)

        engine.apply_cancellation(lesson, decision, NOW)

        assert lesson.status == LessonStatus.CANCELLED.value
        assert lesson.cancelled_at == NOW
        assert lesson.cancelled_by == "tutor"

    def test_apply_twice_raises_invalid_state(self, engine: LessonPolicyEngine) -> None:
        lesson = _lesson(timedelta(hours=30))
        decision = engine.compute_cancellation(lesson, ActorRole.STUDENT, NOW)
        engine.apply_cancellation(lesson, decision, NOW)

        with pytest.raises(InvalidStateError):
            engine.apply_cancellation(lesson, decision, NOW)

    def test_apply_disallowed_decision_raises(self, engine: LessonPolicyEngine) -> None:
        lesson = _lesson(timedelta(hours=-1))
        decision = engine.compute_cancellation(lesson, ActorRole.STUDENT, NOW)

        with pytest.raises(PolicyViolationError):
            engine.apply_cancellation(lesson, decision, NOW)
        assert lesson.status == LessonStatus.SCHEDULED.value


class TestReschedule:
    def test_student_within_two_hours_pays_quarter(self, engine: LessonPolicyEngine) -> None:
        decision = engine.compute_reschedule(_lesson(timedelta(hours=1)), ActorRole.STUDENT, NOW)

        assert decision.allowed is True
        assert decision.tier_label == FeeTier.WITHIN_2H
        assert decision.fee_amount == Decimal("50.00")
        assert decision.payout_reduction == Decimal("0.00")

    def test_tutor_within_two_hours_loses_fifteen_percent(self, engine: LessonPolicyEngine) -> None:
        decision = engine.compute_reschedule(_lesson(timedelta(hours=1)), ActorRole.TUTOR, NOW)

        assert decision.fee_amount == Decimal("0.00")
        assert decision.payout_reduction == Decimal("30.00")

    def test_no_day_tier_for_reschedules(self, engine: LessonPolicyEngine) -> None:
        decision = engine.compute_reschedule(_lesson(timedelta(hours=20)), ActorRole.STUDENT, NOW)

        assert decision.allowed is True
        assert decision.tier_label == FeeTier.NONE
        assert decision.fee_amount == Decimal("0.00")

    def test_cap_reached_blocks_before_timing(self, engine: LessonPolicyEngine) -> None:
        decision = engine.compute_reschedule(
            _lesson(timedelta(hours=1), reschedule_count=2), ActorRole.STUDENT, NOW
        )

        assert decision.allowed is False
        assert decision.block_reason == BLOCK_MAX_RESCHEDULES
        assert decision.reschedules_left == 0
        assert decision.fee_amount == Decimal("0.00")

    def test_started_lesson_cannot_be_rescheduled(self, engine: LessonPolicyEngine) -> None:
        decision = engine.compute_reschedule(_lesson(timedelta(minutes=-10)), ActorRole.TUTOR, NOW)

        assert decision.allowed is False
        assert decision.block_reason == BLOCK_LESSON_STARTED

    def test_apply_counts_moves_and_keeps_original_time(self, engine: LessonPolicyEngine) -> None:
        lesson = _lesson(timedelta(days=2))
        first_time = lesson.scheduled_at

        decision = engine.compute_reschedule(lesson, ActorRole.STUDENT, NOW)
        engine.apply_reschedule(lesson, decision, NOW + timedelta(days=3))
        assert lesson.reschedule_count == 1
        assert decision.reschedules_left == 2

        decision = engine.compute_reschedule(lesson, ActorRole.TUTOR, NOW)
        engine.apply_reschedule(lesson, decision, NOW + timedelta(days=4))

        assert lesson.reschedule_count == 2
        assert lesson.original_scheduled_at == first_time
        assert lesson.scheduled_at == NOW + timedelta(days=4)
        assert engine.compute_reschedule(lesson, ActorRole.STUDENT, NOW).allowed is False

    def test_apply_blocked_decision_raises(self, engine: LessonPolicyEngine) -> None:
        lesson = _lesson(timedelta(days=2), reschedule_count=2)
        decision = engine.compute_reschedule(lesson, ActorRole.STUDENT, NOW)

        with pytest.raises(PolicyViolationError):
            engine.apply_reschedule(lesson, decision, NOW + timedelta(days=3))
        assert lesson.reschedule_count == 2

    def test_completed_lesson_is_rejected(self, engine: LessonPolicyEngine) -> None:
        lesson = _lesson(timedelta(days=2), status=LessonStatus.COMPLETED.value)

        with pytest.raises(InvalidStateError):
            engine.compute_reschedule(lesson, ActorRole.STUDENT, NOW)

    def test_payload_is_json_ready(self, engine: LessonPolicyEngine) -> None:
        payload = engine.compute_reschedule(
            _lesson(timedelta(hours=1), reschedule_count=1), ActorRole.STUDENT, NOW
        ).to_payload()

        assert payload["fee_amount"] == "50.00"
        assert payload["tier_label"] == "within2h"
        assert payload["actor_role"] == "student"
        assert payload["reschedules_left"] == 1
