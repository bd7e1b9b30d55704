# backend/tutoring/api/dependencies/__init__.py
"""
Central export point for all dependencies.

This module re-exports all dependencies from submodules
for convenient access throughout the application.
"""

from .auth import get_current_user_id, require_admin
from .database import get_db
from .services import (
    get_availability_service,
    get_balance_ledger_service,
    get_clock,
    get_invitation_service,
    get_lesson_action_service,
)

__all__ = [
    # Auth
    "get_current_user_id",
    "require_admin",
    # Database
    "get_db",
    # Services
    "get_availability_service",
    "get_balance_ledger_service",
    "get_clock",
    "get_invitation_service",
    "get_lesson_action_service",
]
