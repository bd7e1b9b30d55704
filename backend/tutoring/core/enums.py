# backend/tutoring/core/enums.py
"""
Core enums for the tutoring platform.

Statuses and labels used by the lesson policy engine, the availability
checker and the persistence layer.
"""

from enum import Enum


class ActorRole(str, Enum):
    """Who initiates a lesson action."""

    STUDENT = "student"
    TUTOR = "tutor"
    ADMIN = "admin"


class LessonStatus(str, Enum):
    """Lesson lifecycle statuses. COMPLETED and CANCELLED are terminal."""

    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


class InvitationStatus(str, Enum):
    """Lesson invitation statuses. Everything except PENDING is terminal."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class FeeTier(str, Enum):
    """Time-window bucket deciding the fee and payout reduction percentages."""

    NONE = "none"
    WITHIN_24H = "within24h"
    WITHIN_2H = "within2h"


class TransactionType(str, Enum):
    """Balance ledger entry types."""

    REFUND = "refund"
    CANCELLATION_FEE = "cancellation_fee"
    RESCHEDULE_FEE = "reschedule_fee"
    PAYOUT_REDUCTION = "payout_reduction"
