# backend/tutoring/services/invitation_service.py
"""
Invitation Service

Handles the lesson invitation lifecycle:
- Students invite a tutor with one or more proposed times
- Tutors accept (possibly forcing past a conflict) or reject
- Accepting creates the lesson and auto-rejects the student's other
  pending invitations
- Unanswered invitations expire and their amount is refunded
"""

from datetime import datetime, timedelta
from decimal import Decimal
import logging
from typing import Callable, List, Optional, Sequence

from sqlalchemy.orm import Session

from ..core.config import Settings, settings as default_settings
from ..core.constants import (
    AUTO_REJECT_RESPONSE,
    INVITATION_CANCELLED_REFUND_DESCRIPTION,
    INVITATION_EXPIRED_REFUND_DESCRIPTION,
    INVITATION_REJECTED_REFUND_DESCRIPTION,
    STUDENT_CANCELLED_RESPONSE,
)
from ..core.enums import InvitationStatus, LessonStatus, PaymentStatus, TransactionType
from ..core.exceptions import (
    ExpiredError,
    ForbiddenException,
    InvalidStateError,
    NotFoundException,
    ValidationException,
)
from ..core.timezone_utils import ensure_utc, utc_now
from ..models.invitation import LessonInvitation
from ..models.lesson import Lesson
from ..repositories.factory import RepositoryFactory
from ..repositories.invitation_repository import InvitationRepository
from ..repositories.lesson_repository import LessonRepository
from .availability_checker import InvitationResult
from .availability_service import AvailabilityService
from .balance_ledger_service import BalanceLedgerService
from .base import BaseService

logger = logging.getLogger(__name__)


class InvitationService(BaseService):
    def __init__(
        self,
        db: Session,
        repository: Optional[InvitationRepository] = None,
        lesson_repository: Optional[LessonRepository] = None,
        availability: Optional[AvailabilityService] = None,
        ledger: Optional[BalanceLedgerService] = None,
        config: Optional[Settings] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        super().__init__(db)
        self.config = config or default_settings
        self.repository = repository or RepositoryFactory.create_invitation_repository(db)
        self.lesson_repository = lesson_repository or RepositoryFactory.create_lesson_repository(db)
        self.availability = availability or AvailabilityService(db, config=self.config, clock=clock)
        self.ledger = ledger or BalanceLedgerService(db)
        self.clock = clock

    def get_invitation(self, invitation_id: str) -> LessonInvitation:
        invitation = self.repository.get_by_id(invitation_id)
        if not invitation:
            raise NotFoundException("Invitation not found", details={"invitation_id": invitation_id})
        return invitation

    def get_pending_for_tutor(self, tutor_id: str) -> List[LessonInvitation]:
        return self.repository.get_pending_for_tutor(tutor_id)

    @BaseService.measure_operation("create_invitation")
    def create_invitation(
        self,
        student_id: str,
        tutor_id: str,
        proposed_times: Sequence[datetime],
        amount: Optional[Decimal] = None,
    ) -> LessonInvitation:
        if student_id == tutor_id:
            raise ValidationException("Cannot invite yourself", details={"tutor_id": tutor_id})
        if amount is not None and amount < 0:
            raise ValidationException("Invitation amount cannot be negative", details={"amount": str(amount)})

        now = ensure_utc(self.clock())
        times = sorted(ensure_utc(item) for item in proposed_times)
        past = [item for item in times if item <= now]
        if past:
            raise ValidationException(
                "Proposed times must be in the future",
                details={"proposed_times": [item.isoformat() for item in past]},
            )

        with self.transaction():
            invitation = self.repository.create(
                student_id=student_id,
                tutor_id=tutor_id,
                proposed_times=times,
                amount=amount if amount is not None else self.config.default_lesson_price,
                status=InvitationStatus.PENDING.value,
                expires_at=now + timedelta(hours=self.config.invitation_ttl_hours),
            )

        self.logger.info(
            f"Invitation {invitation.id} created: student {student_id} -> tutor {tutor_id}, "
            f"{len(invitation.proposed_times)} proposed times"
        )
        return invitation

    @BaseService.measure_operation("respond_to_invitation")
    def respond(
        self,
        invitation_id: str,
        tutor_id: str,
        accept: bool,
        force_accept: bool = False,
        response: Optional[str] = None,
    ) -> tuple[LessonInvitation, InvitationResult, Optional[Lesson]]:
        """
        Record the tutor's answer to an invitation.

        A conflicting accept without ``force_accept`` changes nothing and
        returns a result with ``conflict=True``.

        Raises:
            NotFoundException: invitation does not exist
            ForbiddenException: invitation belongs to another tutor
            InvalidStateError: invitation already answered
            ExpiredError: invitation expired; it is marked expired and refunded
        """
        try:
            with self.transaction():
                invitation = self.repository.get_for_update(invitation_id)
                if not invitation:
                    raise NotFoundException("Invitation not found", details={"invitation_id": invitation_id})
                if invitation.tutor_id != tutor_id:
                    raise ForbiddenException(
                        "Invitation addressed to another tutor",
                        details={"invitation_id": invitation_id},
                    )

                now = ensure_utc(self.clock())
                weekly = self.availability.get_weekly_slots(tutor_id)
                booked = self.availability.get_booked_slots(tutor_id, now)
                result = self.availability.checker.respond_to_invitation(
                    invitation, accept, force_accept, weekly, booked, now
                )

                if result.conflict and not result.forced:
                    self.logger.info(f"Invitation {invitation.id} accept blocked by conflict: {result.details}")
                    return invitation, result, None

                invitation.tutor_response = response
                lesson = None
                if result.status == InvitationStatus.ACCEPTED:
                    lesson = self._create_lesson(invitation, result)
                    self._auto_reject_others(invitation, now)
                else:
                    self._refund(invitation, INVITATION_REJECTED_REFUND_DESCRIPTION)
                self.repository.flush()
        except ExpiredError:
            self._mark_expired(invitation_id)
            raise

        self.log_operation(
            "respond_to_invitation",
            invitation_id=invitation.id,
            status=result.status.value,
            forced=result.forced,
        )
        return invitation, result, lesson

    def _create_lesson(self, invitation: LessonInvitation, result: InvitationResult) -> Lesson:
        scheduled_at = result.chosen_time
        if scheduled_at is None:
            raise ValidationException(
                "No time available for the lesson; add availability or propose a time",
                details={"invitation_id": invitation.id},
            )

        lesson = self.lesson_repository.create(
            student_id=invitation.student_id,
            tutor_id=invitation.tutor_id,
            scheduled_at=scheduled_at,
            duration_minutes=self.config.default_lesson_duration_minutes,
            price=invitation.amount,
            status=LessonStatus.SCHEDULED.value,
            payment_status=PaymentStatus.PAID.value,
        )
        invitation.lesson_id = lesson.id
        self.logger.info(f"Lesson {lesson.id} created from invitation {invitation.id} at {scheduled_at.isoformat()}")
        return lesson

    def _auto_reject_others(self, invitation: LessonInvitation, now: datetime) -> None:
        for other in self.repository.get_other_pending_for_student(invitation.student_id, invitation.id):
            other.status = InvitationStatus.REJECTED.value
            other.tutor_response = AUTO_REJECT_RESPONSE
            other.responded_at = now
            self._refund(other, INVITATION_REJECTED_REFUND_DESCRIPTION)
            self.logger.info(f"Invitation {other.id} auto-rejected after student matched")

    def _refund(self, invitation: LessonInvitation, description: str) -> None:
        self.ledger.apply_adjustment(
            invitation.student_id,
            Decimal(invitation.amount),
            TransactionType.REFUND,
            description,
            related_entity_id=invitation.id,
        )

    def _mark_expired(self, invitation_id: str) -> None:
        with self.transaction():
            invitation = self.repository.get_for_update(invitation_id)
            if invitation and invitation.is_pending():
                invitation.status = InvitationStatus.EXPIRED.value
                self._refund(invitation, INVITATION_EXPIRED_REFUND_DESCRIPTION)
                self.repository.flush()
                self.logger.info(f"Invitation {invitation_id} expired on response")

    @BaseService.measure_operation("cancel_invitation")
    def cancel_invitation(self, invitation_id: str, student_id: str) -> LessonInvitation:
        """Student withdraws a pending invitation and gets the amount back."""
        with self.transaction():
            invitation = self.repository.get_for_update(invitation_id)
            if not invitation:
                raise NotFoundException("Invitation not found", details={"invitation_id": invitation_id})
            if invitation.student_id != student_id:
                raise ForbiddenException(
                    "Unauthorized to cancel this invitation",
                    details={"invitation_id": invitation_id},
                )
            if not invitation.is_pending():
                raise InvalidStateError("Invitation", invitation.id, invitation.status)

            invitation.status = InvitationStatus.CANCELLED.value
            invitation.tutor_response = STUDENT_CANCELLED_RESPONSE
            invitation.responded_at = ensure_utc(self.clock())
            self._refund(invitation, INVITATION_CANCELLED_REFUND_DESCRIPTION)
            self.repository.flush()

        self.logger.info(f"Invitation {invitation.id} cancelled by student {student_id}")
        return invitation

    @BaseService.measure_operation("expire_overdue_invitations")
    def expire_overdue(self, now: Optional[datetime] = None) -> int:
        """Expire every pending invitation past its deadline. Returns how many."""
        now = ensure_utc(now or self.clock())
        with self.transaction():
            overdue = self.repository.get_overdue_pending(now)
            for invitation in overdue:
                invitation.status = InvitationStatus.EXPIRED.value
                self._refund(invitation, INVITATION_EXPIRED_REFUND_DESCRIPTION)
            self.repository.flush()

        if overdue:
            self.logger.info(f"Expired {len(overdue)} overdue invitations")
        return len(overdue)
