# backend/tutoring/models/lesson.py
"""
Lesson model for the tutoring platform.

A lesson is created when a tutor accepts an invitation (or on direct
booking). Its status and reschedule count change only through the lesson
policy engine; completed and cancelled lessons are frozen.
"""

from decimal import Decimal

from sqlalchemy import CheckConstraint, Column, Index, Integer, Numeric, String, Text
from sqlalchemy.sql import func

from ..core.constants import MAX_RESCHEDULES
from ..core.enums import LessonStatus, PaymentStatus
from ..core.ulid_helper import generate_ulid
from ..database import Base
from .types import UTCDateTime


class Lesson(Base):
    """Scheduled one-to-one lesson between a student and a tutor."""

    __tablename__ = "lessons"

    id = Column(String(26), primary_key=True, index=True, default=generate_ulid)

    student_id = Column(String(64), nullable=False, index=True)
    tutor_id = Column(String(64), nullable=False, index=True)

    title = Column(String(255), nullable=False, default="Lekcja")
    scheduled_at = Column(UTCDateTime(), nullable=False, index=True)
    original_scheduled_at = Column(UTCDateTime(), nullable=True)
    duration_minutes = Column(Integer, nullable=False, default=60)
    price = Column(Numeric(10, 2), nullable=False, default=Decimal("100.00"))

    status = Column(String(20), nullable=False, default=LessonStatus.SCHEDULED.value, index=True)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)
    reschedule_count = Column(Integer, nullable=False, default=0)

    cancelled_by = Column(String(20), nullable=True)
    cancelled_at = Column(UTCDateTime(), nullable=True)
    cancellation_reason = Column(Text, nullable=True)
    completed_at = Column(UTCDateTime(), nullable=True)

    created_at = Column(UTCDateTime(), server_default=func.now())
    updated_at = Column(UTCDateTime(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint(
            f"reschedule_count >= 0 AND reschedule_count <= {MAX_RESCHEDULES}",
            name="ck_lessons_reschedule_cap",
        ),
        CheckConstraint("price >= 0", name="ck_lessons_price_non_negative"),
        Index("ix_lessons_tutor_status_scheduled", "tutor_id", "status", "scheduled_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Lesson {self.id} tutor={self.tutor_id} student={self.student_id} "
            f"at={self.scheduled_at} status={self.status}>"
        )
