# backend/tutoring/repositories/factory.py
"""
Repository Factory for the tutoring platform

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from sqlalchemy.orm import Session

from .availability_repository import AvailabilityRepository
from .balance_repository import BalanceRepository
from .invitation_repository import InvitationRepository
from .lesson_repository import LessonRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Centralizes repository creation to ensure consistent initialization
    and makes it easy to swap implementations in tests.
    """

    @staticmethod
    def create_lesson_repository(db: Session) -> LessonRepository:
        return LessonRepository(db)

    @staticmethod
    def create_invitation_repository(db: Session) -> InvitationRepository:
        return InvitationRepository(db)

    @staticmethod
    def create_availability_repository(db: Session) -> AvailabilityRepository:
        return AvailabilityRepository(db)

    @staticmethod
    def create_balance_repository(db: Session) -> BalanceRepository:
        return BalanceRepository(db)
