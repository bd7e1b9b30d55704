# backend/tutoring/repositories/availability_repository.py
"""
Availability Repository

Reads and writes a tutor's weekly availability grid. Saving a grid is an
upsert keyed by (tutor_id, day_of_week, hour).
"""

from typing import Iterable, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.availability import TutorWeeklyAvailability
from .base_repository import BaseRepository


class AvailabilityRepository(BaseRepository[TutorWeeklyAvailability]):
    def __init__(self, db: Session):
        super().__init__(db, TutorWeeklyAvailability)

    def get_weekly_slots(self, tutor_id: str) -> List[TutorWeeklyAvailability]:
        try:
            return (
                self.db.query(TutorWeeklyAvailability)
                .filter(TutorWeeklyAvailability.tutor_id == tutor_id)
                .order_by(TutorWeeklyAvailability.day_of_week, TutorWeeklyAvailability.hour)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading weekly availability for tutor {tutor_id}: {str(e)}")
            raise RepositoryException(f"Failed to load weekly availability: {str(e)}")

    def save_weekly_slots(self, tutor_id: str, slots: Iterable) -> List[TutorWeeklyAvailability]:
        """
        Upsert the given slots for a tutor.

        Args:
            tutor_id: Owner of the grid
            slots: Objects with day_of_week, hour and is_available

        Returns:
            The tutor's full grid after the save
        """
        existing = {(row.day_of_week, row.hour): row for row in self.get_weekly_slots(tutor_id)}
        try:
            for slot in slots:
                key = (slot.day_of_week, slot.hour)
                row = existing.get(key)
                if row is None:
                    row = TutorWeeklyAvailability(
                        tutor_id=tutor_id,
                        day_of_week=slot.day_of_week,
                        hour=slot.hour,
                        is_available=slot.is_available,
                    )
                    self.db.add(row)
                    existing[key] = row
                elif row.is_available != slot.is_available:
                    row.is_available = slot.is_available
            self.db.flush()
        except SQLAlchemyError as e:
            self.logger.error(f"Error saving weekly availability for tutor {tutor_id}: {str(e)}")
            raise RepositoryException(f"Failed to save weekly availability: {str(e)}")
        return self.get_weekly_slots(tutor_id)
