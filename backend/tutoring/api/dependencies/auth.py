# backend/tutoring/api/dependencies/auth.py
"""
Caller identity dependencies.

Authentication happens upstream (gateway or the main platform); requests
reach this service with the authenticated user's id in ``X-User-Id`` and,
for staff tools, their role in ``X-User-Role``.
"""

import logging
from typing import Optional

from fastapi import Header

from ...core.enums import ActorRole
from ...core.exceptions import ForbiddenException, UnauthorizedException

logger = logging.getLogger(__name__)


def get_current_user_id(x_user_id: Optional[str] = Header(None, alias="X-User-Id")) -> str:
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise UnauthorizedException("Missing caller identity", code="NOT_AUTHENTICATED").to_http_exception()
    return user_id


def require_admin(
    x_user_role: Optional[str] = Header(None, alias="X-User-Role"),
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
) -> str:
    user_id = get_current_user_id(x_user_id)
    if (x_user_role or "").strip().lower() != ActorRole.ADMIN.value:
        logger.warning(f"Non-admin user {user_id} attempted an admin operation")
        raise ForbiddenException("Admin access required", code="ADMIN_REQUIRED").to_http_exception()
    return user_id
