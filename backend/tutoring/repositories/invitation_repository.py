# backend/tutoring/repositories/invitation_repository.py
"""
Invitation Repository

Data access for lesson invitations, including the queries behind the
expiry sweep and the auto-rejection of a matched student's other invitations.
"""

from datetime import datetime
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import InvitationStatus
from ..core.exceptions import RepositoryException
from ..models.invitation import LessonInvitation
from .base_repository import BaseRepository


class InvitationRepository(BaseRepository[LessonInvitation]):
    def __init__(self, db: Session):
        super().__init__(db, LessonInvitation)

    def get_overdue_pending(self, now: datetime) -> List[LessonInvitation]:
        """Pending invitations whose expiry has passed."""
        try:
            return (
                self.db.query(LessonInvitation)
                .filter(
                    LessonInvitation.status == InvitationStatus.PENDING.value,
                    LessonInvitation.expires_at <= now,
                )
                .order_by(LessonInvitation.expires_at)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading overdue invitations: {str(e)}")
            raise RepositoryException(f"Failed to load overdue invitations: {str(e)}")

    def get_other_pending_for_student(self, student_id: str, exclude_id: str) -> List[LessonInvitation]:
        try:
            return (
                self.db.query(LessonInvitation)
                .filter(
                    LessonInvitation.student_id == student_id,
                    LessonInvitation.status == InvitationStatus.PENDING.value,
                    LessonInvitation.id != exclude_id,
                )
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading pending invitations for student {student_id}: {str(e)}")
            raise RepositoryException(f"Failed to load pending invitations: {str(e)}")

    def get_pending_for_tutor(self, tutor_id: str) -> List[LessonInvitation]:
        try:
            return (
                self.db.query(LessonInvitation)
                .filter(
                    LessonInvitation.tutor_id == tutor_id,
                    LessonInvitation.status == InvitationStatus.PENDING.value,
                )
                .order_by(LessonInvitation.expires_at)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading pending invitations for tutor {tutor_id}: {str(e)}")
            raise RepositoryException(f"Failed to load pending invitations: {str(e)}")
