# backend/tutoring/repositories/__init__.py
"""
Repository Pattern Implementation for the tutoring platform

This package provides the repository layer for data access,
separating business logic from database queries.

Usage:
    from tutoring.repositories import RepositoryFactory

    # In a service:
    repository = RepositoryFactory.create_lesson_repository(db)
    lesson = repository.get_by_id(lesson_id)
"""

from .availability_repository import AvailabilityRepository
from .balance_repository import BalanceRepository
from .base_repository import BaseRepository
from .factory import RepositoryFactory
from .invitation_repository import InvitationRepository
from .lesson_repository import LessonRepository

__all__ = [
    "AvailabilityRepository",
    "BalanceRepository",
    "BaseRepository",
    "InvitationRepository",
    "LessonRepository",
    "RepositoryFactory",
]
