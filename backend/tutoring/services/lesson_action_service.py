# backend/tutoring/services/lesson_action_service.py
"""
Lesson Action Service

Runs cancel, reschedule and complete actions for a lesson inside a single
transaction:
- Loads and locks the lesson
- Derives the actor's role from the lesson's participants
- Asks the LessonPolicyEngine for a decision and applies it
- Posts the resulting fees, refunds and payout reductions to the ledger

The engine's state checks make a second concurrent action on the same
lesson fail with InvalidStateError instead of being applied twice.
"""

from datetime import datetime, timedelta
from decimal import Decimal
import logging
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ..core.config import Settings, settings as default_settings
from ..core.constants import (
    CANCELLATION_FEE_DESCRIPTION,
    CANCELLATION_REFUND_DESCRIPTION,
    PAYOUT_REDUCTION_DESCRIPTION,
    RESCHEDULE_FEE_DESCRIPTION,
    RESCHEDULE_PAYOUT_REDUCTION_DESCRIPTION,
)
from ..core.enums import ActorRole, LessonStatus, PaymentStatus, TransactionType
from ..core.exceptions import (
    BusinessRuleException,
    ForbiddenException,
    InsufficientNoticeException,
    InvalidStateError,
    NotFoundException,
)
from ..core.timezone_utils import ensure_utc, utc_now
from ..models.lesson import Lesson
from ..repositories.factory import RepositoryFactory
from ..repositories.lesson_repository import LessonRepository
from .balance_ledger_service import BalanceLedgerService
from .base import BaseService
from .lesson_policy_engine import CancellationDecision, LessonPolicyEngine, RescheduleDecision

logger = logging.getLogger(__name__)


class LessonActionService(BaseService):
    """
    Service for lesson lifecycle actions requested by students and tutors.
    """

    def __init__(
        self,
        db: Session,
        repository: Optional[LessonRepository] = None,
        ledger: Optional[BalanceLedgerService] = None,
        engine: Optional[LessonPolicyEngine] = None,
        config: Optional[Settings] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        super().__init__(db)
        self.config = config or default_settings
        self.repository = repository or RepositoryFactory.create_lesson_repository(db)
        self.ledger = ledger or BalanceLedgerService(db)
        self.engine = engine or LessonPolicyEngine(self.config)
        self.clock = clock

    def _load_lesson(self, lesson_id: str, for_update: bool = False) -> Lesson:
        lesson = (
            self.repository.get_for_update(lesson_id)
            if for_update
            else self.repository.get_by_id(lesson_id)
        )
        if not lesson:
            raise NotFoundException("Lesson not found", details={"lesson_id": lesson_id})
        return lesson

    @staticmethod
    def resolve_actor_role(lesson: Lesson, user_id: str) -> ActorRole:
        """Student or tutor of the lesson; anyone else may not act on it."""
        if lesson.student_id == user_id:
            return ActorRole.STUDENT
        if lesson.tutor_id == user_id:
            return ActorRole.TUTOR
        raise ForbiddenException(
            "Unauthorized to manage this lesson",
            details={"lesson_id": lesson.id},
        )

    def preview_cancellation(self, lesson_id: str, user_id: str) -> CancellationDecision:
        lesson = self._load_lesson(lesson_id)
        role = self.resolve_actor_role(lesson, user_id)
        return self.engine.compute_cancellation(lesson, role, self.clock())

    def preview_reschedule(self, lesson_id: str, user_id: str) -> RescheduleDecision:
        lesson = self._load_lesson(lesson_id)
        role = self.resolve_actor_role(lesson, user_id)
        return self.engine.compute_reschedule(lesson, role, self.clock())

    @BaseService.measure_operation("cancel_lesson")
    def cancel_lesson(
        self, lesson_id: str, user_id: str, reason: Optional[str] = None
    ) -> tuple[Lesson, CancellationDecision]:
        """
        Cancel a scheduled lesson and settle the fee tier.

        Raises:
            NotFoundException: lesson does not exist
            ForbiddenException: user is not a participant
            InvalidStateError: lesson is not scheduled
            PolicyViolationError: lesson already started
        """
        with self.transaction():
            lesson = self._load_lesson(lesson_id, for_update=True)
            role = self.resolve_actor_role(lesson, user_id)
            now = self.clock()
            decision = self.engine.compute_cancellation(lesson, role, now)
            self.engine.apply_cancellation(lesson, decision, now)
            lesson.cancellation_reason = reason
            self._settle_cancellation(lesson, decision)
            self.repository.flush()

        self.log_operation(
            "cancel_lesson",
            lesson_id=lesson.id,
            actor_role=role.value,
            tier=decision.tier_label.value,
        )
        return lesson, decision

    def _settle_cancellation(self, lesson: Lesson, decision: CancellationDecision) -> None:
        price = Decimal(lesson.price)
        paid = lesson.payment_status == PaymentStatus.PAID.value

        if decision.fee_amount > 0:
            self.ledger.apply_adjustment(
                lesson.student_id,
                -decision.fee_amount,
                TransactionType.CANCELLATION_FEE,
                f"{CANCELLATION_FEE_DESCRIPTION} - {lesson.title}",
                related_entity_id=lesson.id,
            )
        if decision.payout_reduction > 0:
            self.ledger.apply_adjustment(
                lesson.tutor_id,
                -decision.payout_reduction,
                TransactionType.PAYOUT_REDUCTION,
                f"{PAYOUT_REDUCTION_DESCRIPTION} - {lesson.title}",
                related_entity_id=lesson.id,
            )
        if paid:
            self.ledger.apply_adjustment(
                lesson.student_id,
                price,
                TransactionType.REFUND,
                f"{CANCELLATION_REFUND_DESCRIPTION} - {lesson.title}",
                related_entity_id=lesson.id,
            )

    @BaseService.measure_operation("reschedule_lesson")
    def reschedule_lesson(
        self,
        lesson_id: str,
        user_id: str,
        new_scheduled_at: datetime,
        reason: Optional[str] = None,
    ) -> tuple[Lesson, RescheduleDecision]:
        """
        Move a scheduled lesson to ``new_scheduled_at``.

        The new time may be earlier or later than the current one but must be
        at least ``min_reschedule_lead_hours`` away from now.

        Raises:
            InsufficientNoticeException: new time is too close
            PolicyViolationError: cap reached or lesson already started
        """
        new_scheduled_at = ensure_utc(new_scheduled_at)
        with self.transaction():
            lesson = self._load_lesson(lesson_id, for_update=True)
            role = self.resolve_actor_role(lesson, user_id)
            now = ensure_utc(self.clock())
            decision = self.engine.compute_reschedule(lesson, role, now)

            required = self.config.min_reschedule_lead_hours
            if decision.allowed and new_scheduled_at < now + timedelta(hours=required):
                provided = (new_scheduled_at - now).total_seconds() / 3600
                raise InsufficientNoticeException(required, round(provided, 2))

            self.engine.apply_reschedule(lesson, decision, new_scheduled_at)
            self._settle_reschedule(lesson, decision)
            self.repository.flush()

        self.log_operation(
            "reschedule_lesson",
            lesson_id=lesson.id,
            actor_role=role.value,
            reason=reason,
            reschedule_count=lesson.reschedule_count,
        )
        return lesson, decision

    def _settle_reschedule(self, lesson: Lesson, decision: RescheduleDecision) -> None:
        if decision.fee_amount > 0:
            self.ledger.apply_adjustment(
                lesson.student_id,
                -decision.fee_amount,
                TransactionType.RESCHEDULE_FEE,
                f"{RESCHEDULE_FEE_DESCRIPTION} - {lesson.title}",
                related_entity_id=lesson.id,
            )
        if decision.payout_reduction > 0:
            self.ledger.apply_adjustment(
                lesson.tutor_id,
                -decision.payout_reduction,
                TransactionType.PAYOUT_REDUCTION,
                f"{RESCHEDULE_PAYOUT_REDUCTION_DESCRIPTION} - {lesson.title}",
                related_entity_id=lesson.id,
            )

    @BaseService.measure_operation("complete_lesson")
    def complete_lesson(self, lesson_id: str, user_id: str) -> Lesson:
        """Tutor marks a lesson that has already started as completed."""
        with self.transaction():
            lesson = self._load_lesson(lesson_id, for_update=True)
            if self.resolve_actor_role(lesson, user_id) != ActorRole.TUTOR:
                raise ForbiddenException(
                    "Only the tutor can complete a lesson", details={"lesson_id": lesson.id}
                )
            if lesson.status != LessonStatus.SCHEDULED.value:
                raise InvalidStateError("Lesson", lesson.id, lesson.status)
            now = ensure_utc(self.clock())
            if ensure_utc(lesson.scheduled_at) > now:
                raise BusinessRuleException(
                    "Lesson has not started yet",
                    code="LESSON_NOT_STARTED",
                    details={"lesson_id": lesson.id},
                )
            lesson.status = LessonStatus.COMPLETED.value
            lesson.completed_at = now
            self.repository.flush()

        self.logger.info(f"Lesson {lesson.id} completed by tutor {user_id}")
        return lesson
