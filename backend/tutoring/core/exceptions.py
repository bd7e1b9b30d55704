# backend/tutoring/core/exceptions.py
"""
Domain-specific exceptions for the tutoring platform.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
None of them is fatal: fee tiers and conflict details are meant to be
shown to the user.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when business validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


class UnauthorizedException(DomainException):
    """Raised when user is not authenticated."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenException(DomainException):
    """Raised when user lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Lesson policy and availability exceptions


class InvalidStateError(BusinessRuleException):
    """Raised when an action targets an entity that is no longer actionable."""

    def __init__(self, entity: str, entity_id: Optional[str], current_status: str):
        super().__init__(
            message=f"{entity} is {current_status} and cannot be changed",
            code="INVALID_STATE",
            details={
                "entity": entity,
                "entity_id": entity_id,
                "status": current_status,
            },
        )


class PolicyViolationError(BusinessRuleException):
    """Raised when applying a decision that the policy engine disallowed."""

    def __init__(self, action: str, reason: Optional[str] = None):
        super().__init__(
            message=f"Lesson {action} is not allowed: {reason or 'policy violation'}",
            code="POLICY_VIOLATION",
            details={"action": action, "reason": reason},
        )


class ConflictError(ConflictException):
    """Raised when an availability change collides with a booked lesson."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "This slot is booked by an existing lesson",
            code="AVAILABILITY_CONFLICT",
            details=details or {},
        )


class ExpiredError(BusinessRuleException):
    """Raised when responding to an invitation after it expired."""

    status_code = status.HTTP_410_GONE

    def __init__(self, invitation_id: Optional[str], expires_at: Any):
        super().__init__(
            message="Invitation has expired",
            code="INVITATION_EXPIRED",
            details={
                "invitation_id": invitation_id,
                "expires_at": expires_at.isoformat() if hasattr(expires_at, "isoformat") else expires_at,
            },
        )


class InsufficientNoticeException(BusinessRuleException):
    """Raised when a reschedule target doesn't meet minimum advance notice."""

    def __init__(self, required_hours: int, provided_hours: float):
        super().__init__(
            message=f"Lessons must be rescheduled at least {required_hours} hours in advance",
            code="INSUFFICIENT_NOTICE",
            details={
                "required_hours": required_hours,
                "provided_hours": provided_hours,
            },
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
