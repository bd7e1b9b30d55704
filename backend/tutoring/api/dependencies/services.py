# backend/tutoring/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected. Tests override
``get_clock`` to pin "now".
"""

from datetime import datetime
import logging
from typing import Callable

from fastapi import Depends
from sqlalchemy.orm import Session

from ...core.config import settings
from ...core.timezone_utils import utc_now
from ...services.availability_service import AvailabilityService
from ...services.balance_ledger_service import BalanceLedgerService
from ...services.invitation_service import InvitationService
from ...services.lesson_action_service import LessonActionService
from .database import get_db

logger = logging.getLogger(__name__)


def get_clock() -> Callable[[], datetime]:
    return utc_now


def get_balance_ledger_service(db: Session = Depends(get_db)) -> BalanceLedgerService:
    return BalanceLedgerService(db)


def get_lesson_action_service(
    db: Session = Depends(get_db),
    ledger: BalanceLedgerService = Depends(get_balance_ledger_service),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> LessonActionService:
    return LessonActionService(db, ledger=ledger, config=settings, clock=clock)


def get_availability_service(
    db: Session = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> AvailabilityService:
    return AvailabilityService(db, config=settings, clock=clock)


def get_invitation_service(
    db: Session = Depends(get_db),
    availability: AvailabilityService = Depends(get_availability_service),
    ledger: BalanceLedgerService = Depends(get_balance_ledger_service),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> InvitationService:
    return InvitationService(db, availability=availability, ledger=ledger, config=settings, clock=clock)
