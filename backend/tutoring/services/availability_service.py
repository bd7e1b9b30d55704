# backend/tutoring/services/availability_service.py
"""
Availability Service

Persists a tutor's weekly availability grid and derives the booked slots
from upcoming scheduled lessons. Grid edits go through the
AvailabilityChecker so booked slots can never be freed.
"""

from datetime import datetime
import logging
from typing import Callable, Iterable, List, Optional, Set

from sqlalchemy.orm import Session

from ..core.config import Settings, settings as default_settings
from ..repositories.availability_repository import AvailabilityRepository
from ..repositories.factory import RepositoryFactory
from ..repositories.lesson_repository import LessonRepository
from ..core.timezone_utils import utc_now
from .availability_checker import (
    AvailabilityChecker,
    ConflictResult,
    SlotKey,
    WeeklyAvailabilitySlot,
    validate_slot_key,
)
from .base import BaseService

logger = logging.getLogger(__name__)


class AvailabilityService(BaseService):
    def __init__(
        self,
        db: Session,
        repository: Optional[AvailabilityRepository] = None,
        lesson_repository: Optional[LessonRepository] = None,
        checker: Optional[AvailabilityChecker] = None,
        config: Optional[Settings] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        super().__init__(db)
        self.config = config or default_settings
        self.repository = repository or RepositoryFactory.create_availability_repository(db)
        self.lesson_repository = lesson_repository or RepositoryFactory.create_lesson_repository(db)
        self.checker = checker or AvailabilityChecker(self.config)
        self.clock = clock

    def get_weekly_slots(self, tutor_id: str) -> List[WeeklyAvailabilitySlot]:
        return [WeeklyAvailabilitySlot.from_row(row) for row in self.repository.get_weekly_slots(tutor_id)]

    def get_booked_slots(self, tutor_id: str, now: Optional[datetime] = None) -> Set[SlotKey]:
        """Grid cells occupied by the tutor's upcoming scheduled lessons."""
        lessons = self.lesson_repository.get_upcoming_scheduled_for_tutor(tutor_id, now or self.clock())
        return {self.checker.slot_key_for(lesson.scheduled_at) for lesson in lessons}

    def check_availability(self, tutor_id: str, proposed_instant: datetime) -> ConflictResult:
        return self.checker.check_availability(
            self.get_weekly_slots(tutor_id),
            self.get_booked_slots(tutor_id),
            proposed_instant,
        )

    @BaseService.measure_operation("toggle_slot")
    def toggle_slot(self, tutor_id: str, day_of_week: int, hour: str) -> List[WeeklyAvailabilitySlot]:
        with self.transaction():
            slots = self.checker.toggle_slot(
                self.repository.get_weekly_slots(tutor_id),
                day_of_week,
                hour,
                self.get_booked_slots(tutor_id),
            )
            self.repository.save_weekly_slots(tutor_id, slots)
        self.logger.info(f"Tutor {tutor_id} toggled slot day={day_of_week} hour={hour}")
        return self.get_weekly_slots(tutor_id)

    @BaseService.measure_operation("toggle_day")
    def toggle_day(self, tutor_id: str, day_of_week: int, enabled: bool) -> List[WeeklyAvailabilitySlot]:
        with self.transaction():
            slots = self.checker.toggle_day(
                self.repository.get_weekly_slots(tutor_id),
                day_of_week,
                enabled,
                self.get_booked_slots(tutor_id),
            )
            self.repository.save_weekly_slots(tutor_id, slots)
        self.logger.info(f"Tutor {tutor_id} set day={day_of_week} available={enabled}")
        return self.get_weekly_slots(tutor_id)

    @BaseService.measure_operation("replace_weekly_slots")
    def replace_weekly_slots(
        self, tutor_id: str, available: Iterable[SlotKey]
    ) -> List[WeeklyAvailabilitySlot]:
        """
        Save a whole grid: listed cells become available, every other known
        cell unavailable. Booked cells are left as they are.
        """
        wanted = {validate_slot_key(day, hour) for day, hour in available}
        with self.transaction():
            booked = self.get_booked_slots(tutor_id)
            current = {slot.key for slot in self.get_weekly_slots(tutor_id)}
            slots = [
                WeeklyAvailabilitySlot(day_of_week=day, hour=hour, is_available=(day, hour) in wanted)
                for day, hour in sorted(current | wanted)
                if (day, hour) not in booked
            ]
            self.repository.save_weekly_slots(tutor_id, slots)
        self.logger.info(f"Tutor {tutor_id} saved weekly availability ({len(wanted)} slots)")
        return self.get_weekly_slots(tutor_id)
