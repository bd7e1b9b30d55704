# backend/tutoring/services/__init__.py
"""
Service layer for the tutoring platform.

Business logic lives here; routes stay thin and repositories handle data access.
"""

from .availability_checker import AvailabilityChecker, ConflictResult, InvitationResult, WeeklyAvailabilitySlot
from .availability_service import AvailabilityService
from .balance_ledger_service import BalanceLedgerService
from .base import BaseService
from .invitation_service import InvitationService
from .lesson_action_service import LessonActionService
from .lesson_policy_engine import CancellationDecision, LessonPolicyEngine, RescheduleDecision

__all__ = [
    "AvailabilityChecker",
    "AvailabilityService",
    "BalanceLedgerService",
    "BaseService",
    "CancellationDecision",
    "ConflictResult",
    "InvitationResult",
    "InvitationService",
    "LessonActionService",
    "LessonPolicyEngine",
    "RescheduleDecision",
    "WeeklyAvailabilitySlot",
]
