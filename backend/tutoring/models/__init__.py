"""
Database models for the tutoring platform.

- Lesson: scheduled lessons and their lifecycle fields
- LessonInvitation: tutor invitations with proposed times and expiry
- TutorWeeklyAvailability: recurring weekly availability grid
- BalanceTransaction: signed balance ledger entries
"""

from .availability import TutorWeeklyAvailability
from .balance import BalanceTransaction
from .invitation import LessonInvitation
from .lesson import Lesson

__all__ = [
    "BalanceTransaction",
    "Lesson",
    "LessonInvitation",
    "TutorWeeklyAvailability",
]
