"""LessonActionService on a real session: state changes plus ledger settlement."""
from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest

from tutoring.core.enums import LessonStatus, PaymentStatus, TransactionType
from tutoring.core.exceptions import (
    BusinessRuleException,
    ForbiddenException,
    InsufficientNoticeException,
    InvalidStateError,
    NotFoundException,
    PolicyViolationError,
)
from tutoring.services.balance_ledger_service import BalanceLedgerService
from tutoring.services.lesson_action_service import LessonActionService

from helpers import NOW, OTHER_STUDENT_ID, STUDENT_ID, TUTOR_ID


@pytest.fixture
def service(db, clock) -> LessonActionService:
    return LessonActionService(db, clock=clock)


@pytest.fixture
def ledger(db) -> BalanceLedgerService:
    return BalanceLedgerService(db)


def _types(ledger: BalanceLedgerService, user_id: str) -> list[str]:
    return sorted(entry.type for entry in ledger.get_transactions(user_id))


class TestCancel:
    def test_student_late_cancel_pays_fee_and_gets_refund(self, service, ledger, make_lesson) -> None:
        lesson = make_lesson(NOW + timedelta(hours=1))

        cancelled, decision = service.cancel_lesson(lesson.id, STUDENT_ID, "Choroba")

        assert cancelled.status == LessonStatus.CANCELLED.value
        assert cancelled.cancelled_by == "student"
        assert cancelled.cancelled_at == NOW
        assert cancelled.cancellation_reason == "Choroba"
        assert decision.fee_amount == Decimal("100.00")
        assert ledger.get_balance(STUDENT_ID) == Decimal("100.00")
        assert _types(ledger, STUDENT_ID) == ["cancellation_fee", "refund"]
        assert ledger.get_balance(TUTOR_ID) == Decimal("0.00")

    def test_tutor_cancel_within_day_reduces_payout(self, service, ledger, make_lesson) -> None:
        lesson = make_lesson(NOW + timedelta(hours=20))

        _, decision = service.cancel_lesson(lesson.id, TUTOR_ID)

        assert decision.payout_reduction == Decimal("30.00")
        assert ledger.get_balance(TUTOR_ID) == Decimal("-30.00")
        assert ledger.get_balance(STUDENT_ID) == Decimal("200.00")
        [entry] = ledger.get_transactions(TUTOR_ID)
        assert entry.type == TransactionType.PAYOUT_REDUCTION.value
        assert entry.related_entity_id == lesson.id
        assert entry.balance_before == Decimal("0.00")
        assert entry.balance_after == Decimal("-30.00")

    def test_early_cancel_of_unpaid_lesson_touches_no_ledger(self, service, ledger, make_lesson) -> None:
        lesson = make_lesson(NOW + timedelta(days=3), payment_status=PaymentStatus.PENDING.value)

        service.cancel_lesson(lesson.id, STUDENT_ID)

        assert ledger.get_transactions(STUDENT_ID) == []
        assert ledger.get_transactions(TUTOR_ID) == []

    def test_started_lesson_stays_scheduled(self, service, ledger, make_lesson) -> None:
        lesson = make_lesson(NOW - timedelta(minutes=45))

        with pytest.raises(PolicyViolationError):
            service.cancel_lesson(lesson.id, STUDENT_ID)

        assert service.repository.get_by_id(lesson.id).status == LessonStatus.SCHEDULED.value
        assert ledger.get_transactions(STUDENT_ID) == []

    def test_second_cancel_is_invalid_state(self, service, ledger, make_lesson) -> None:
        lesson = make_lesson(NOW + timedelta(hours=1))
        service.cancel_lesson(lesson.id, STUDENT_ID)

        with pytest.raises(InvalidStateError):
            service.cancel_lesson(lesson.id, TUTOR_ID)

        assert len(ledger.get_transactions(STUDENT_ID)) == 2
        assert ledger.get_transactions(TUTOR_ID) == []

    def test_outsider_is_forbidden(self, service, make_lesson) -> None:
        lesson = make_lesson(NOW + timedelta(hours=5))

        with pytest.raises(ForbiddenException):
            service.cancel_lesson(lesson.id, OTHER_STUDENT_ID)

    def test_missing_lesson(self, service) -> None:
        with pytest.raises(NotFoundException):
            service.cancel_lesson("01HF4G12ABCDEF3456789XYZAB", STUDENT_ID)


class TestReschedule:
    def test_student_late_reschedule_pays_fee(self, service, ledger, make_lesson) -> None:
        lesson = make_lesson(NOW + timedelta(hours=1))
        original = lesson.scheduled_at

        moved, decision = service.reschedule_lesson(lesson.id, STUDENT_ID, NOW + timedelta(days=2))

        assert moved.reschedule_count == 1
        assert moved.scheduled_at == NOW + timedelta(days=2)
        assert moved.original_scheduled_at == original
        assert decision.fee_amount == Decimal("50.00")
        assert ledger.get_balance(STUDENT_ID) == Decimal("-50.00")
        assert _types(ledger, STUDENT_ID) == ["reschedule_fee"]

    def test_earlier_time_is_allowed(self, service, make_lesson) -> None:
        lesson = make_lesson(NOW + timedelta(days=5))

        moved, decision = service.reschedule_lesson(lesson.id, TUTOR_ID, NOW + timedelta(days=1))

        assert moved.scheduled_at == NOW + timedelta(days=1)
        assert decision.payout_reduction == Decimal("0.00")

    def test_new_time_needs_two_hours_notice(self, service, make_lesson) -> None:
        lesson = make_lesson(NOW + timedelta(days=2))

        with pytest.raises(InsufficientNoticeException) as exc_info:
            service.reschedule_lesson(lesson.id, STUDENT_ID, NOW + timedelta(hours=1))

        assert exc_info.value.details["required_hours"] == 2
        assert service.repository.get_by_id(lesson.id).reschedule_count == 0

    def test_cap_blocks_third_move(self, service, make_lesson) -> None:
        lesson = make_lesson(NOW + timedelta(days=2))
        service.reschedule_lesson(lesson.id, STUDENT_ID, NOW + timedelta(days=3))
        service.reschedule_lesson(lesson.id, TUTOR_ID, NOW + timedelta(days=4))

        with pytest.raises(PolicyViolationError) as exc_info:
            service.reschedule_lesson(lesson.id, STUDENT_ID, NOW + timedelta(days=5))

        assert exc_info.value.details["reason"] == "max reschedules reached"
        assert service.repository.get_by_id(lesson.id).reschedule_count == 2

    def test_preview_does_not_change_lesson(self, service, make_lesson) -> None:
        lesson = make_lesson(NOW + timedelta(hours=1), reschedule_count=1)

        decision = service.preview_reschedule(lesson.id, STUDENT_ID)

        assert decision.reschedules_left == 1
        assert decision.fee_amount == Decimal("50.00")
        assert service.repository.get_by_id(lesson.id).reschedule_count == 1


class TestComplete:
    def test_tutor_completes_started_lesson(self, service, make_lesson, clock) -> None:
        lesson = make_lesson(NOW + timedelta(hours=1))
        clock.advance(hours=2)

        completed = service.complete_lesson(lesson.id, TUTOR_ID)

        assert completed.status == LessonStatus.COMPLETED.value
        assert completed.completed_at == NOW + timedelta(hours=2)

    def test_future_lesson_cannot_be_completed(self, service, make_lesson) -> None:
        lesson = make_lesson(NOW + timedelta(hours=1))

        with pytest.raises(BusinessRuleException) as exc_info:
            service.complete_lesson(lesson.id, TUTOR_ID)
        assert exc_info.value.code == "LESSON_NOT_STARTED"

    def test_student_cannot_complete(self, service, make_lesson) -> None:
        lesson = make_lesson(NOW - timedelta(hours=1))

        with pytest.raises(ForbiddenException):
            service.complete_lesson(lesson.id, STUDENT_ID)

    def test_completed_lesson_cannot_be_cancelled(self, service, make_lesson, clock) -> None:
        lesson = make_lesson(NOW - timedelta(hours=2))
        service.complete_lesson(lesson.id, TUTOR_ID)

        with pytest.raises(InvalidStateError):
            service.cancel_lesson(lesson.id, STUDENT_ID)
