# backend/tutoring/models/availability.py
"""
Tutor weekly availability template.

One row per (tutor, day of week, hour). There is no date: the set of rows
is the tutor's recurring weekly grid. Whether a slot is booked is derived
from upcoming lessons, never stored here.
"""

from sqlalchemy import Boolean, CheckConstraint, Column, Integer, String, UniqueConstraint
from sqlalchemy.sql import func

from ..core.ulid_helper import generate_ulid
from ..database import Base
from .types import UTCDateTime


class TutorWeeklyAvailability(Base):
    __tablename__ = "tutor_weekly_availability"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    tutor_id = Column(String(64), nullable=False, index=True)
    day_of_week = Column(Integer, nullable=False)  # 0 = Sunday
    hour = Column(String(5), nullable=False)  # "HH:00"
    is_available = Column(Boolean, nullable=False, default=True)

    updated_at = Column(UTCDateTime(), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("tutor_id", "day_of_week", "hour", name="uq_tutor_weekly_slot"),
        CheckConstraint("day_of_week >= 0 AND day_of_week <= 6", name="ck_weekly_slot_day_range"),
    )

    def __repr__(self) -> str:
        return (
            f"<TutorWeeklyAvailability {self.tutor_id} day={self.day_of_week} "
            f"hour={self.hour} available={self.is_available}>"
        )
