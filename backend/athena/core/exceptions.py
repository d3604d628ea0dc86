# backend/athena/core/exceptions.py
"""
Domain-specific exceptions for the Athena session engine.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
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
        """Convert to an HTTPException carrying the structured detail payload."""
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


class ForbiddenException(DomainException):
    """Raised when user lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Specific session exceptions


class SessionNotFoundException(NotFoundException):
    """Raised when a referenced session does not exist."""

    def __init__(self, session_id: str):
        super().__init__(
            message=f"Session {session_id} not found",
            code="SESSION_NOT_FOUND",
            details={"session_id": session_id},
        )


class SessionConflictException(ConflictException):
    """Raised when a session window overlaps an active booking for the creator."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "Creator has a conflicting session at this time",
            code="SESSION_CONFLICT",
            details=details or {},
        )


class SessionAuthorizationException(ForbiddenException):
    """Raised when the acting user is neither participant of the session."""

    def __init__(self, session_id: str, acting_user_id: str):
        super().__init__(
            message="Not authorized to update this session",
            code="SESSION_FORBIDDEN",
            details={"session_id": session_id, "acting_user_id": acting_user_id},
        )


class InvalidTransitionException(BusinessRuleException):
    """Raised when a status change is not reachable from the current status."""

    def __init__(self, session_id: str, current_status: str, requested_status: str):
        super().__init__(
            message=f"Cannot move session from {current_status} to {requested_status}",
            code="INVALID_SESSION_TRANSITION",
            details={
                "session_id": session_id,
                "current_status": current_status,
                "requested_status": requested_status,
            },
        )


class ProvisioningException(ServiceException):
    """Raised when no video backend could produce a room for a confirmation."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, session_id: str, provider: str, reason: str):
        super().__init__(
            message=f"Video room could not be provisioned: {reason}",
            code="ROOM_PROVISIONING_FAILED",
            details={"session_id": session_id, "provider": provider},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
