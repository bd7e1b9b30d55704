# backend/tutoring/repositories/lesson_repository.py
"""
Lesson Repository

Data access for lessons: loading a lesson for an action and listing the
tutor's upcoming scheduled lessons from which booked slots are derived.
"""

from datetime import datetime
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import LessonStatus
from ..core.exceptions import RepositoryException
from ..models.lesson import Lesson
from .base_repository import BaseRepository


class LessonRepository(BaseRepository[Lesson]):
    def __init__(self, db: Session):
        super().__init__(db, Lesson)

    def get_upcoming_scheduled_for_tutor(self, tutor_id: str, now: datetime) -> List[Lesson]:
        """Scheduled lessons of a tutor that have not started yet, soonest first."""
        try:
            return (
                self.db.query(Lesson)
                .filter(
                    Lesson.tutor_id == tutor_id,
                    Lesson.status == LessonStatus.SCHEDULED.value,
                    Lesson.scheduled_at >= now,
                )
                .order_by(Lesson.scheduled_at)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading upcoming lessons for tutor {tutor_id}: {str(e)}")
            raise RepositoryException(f"Failed to load upcoming lessons: {str(e)}")
