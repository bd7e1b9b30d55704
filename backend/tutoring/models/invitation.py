# backend/tutoring/models/invitation.py
"""
Lesson invitation model.

A student (or the matching flow) invites a tutor to teach at one of the
proposed times. The tutor accepts or rejects before ``expires_at``; an
accepted invitation produces a Lesson.
"""

from decimal import Decimal

from sqlalchemy import Column, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.sql import func

from ..core.enums import InvitationStatus
from ..core.ulid_helper import generate_ulid
from ..database import Base
from .types import DateTimeListType, UTCDateTime


class LessonInvitation(Base):
    __tablename__ = "lesson_invitations"

    id = Column(String(26), primary_key=True, index=True, default=generate_ulid)
    tutor_id = Column(String(64), nullable=False, index=True)
    student_id = Column(String(64), nullable=False, index=True)

    proposed_times = Column(DateTimeListType(), nullable=False, default=list)
    amount = Column(Numeric(10, 2), nullable=False, default=Decimal("100.00"))

    status = Column(String(20), nullable=False, default=InvitationStatus.PENDING.value, index=True)
    expires_at = Column(UTCDateTime(), nullable=False)
    responded_at = Column(UTCDateTime(), nullable=True)
    tutor_response = Column(Text, nullable=True)

    lesson_id = Column(String(26), ForeignKey("lessons.id"), nullable=True)

    created_at = Column(UTCDateTime(), server_default=func.now())

    __table_args__ = (Index("ix_lesson_invitations_status_expires", "status", "expires_at"),)

    def is_pending(self) -> bool:
        return self.status == InvitationStatus.PENDING.value

    def __repr__(self) -> str:
        return f"<LessonInvitation {self.id} tutor={self.tutor_id} status={self.status}>"
