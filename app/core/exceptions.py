"""Custom application exceptions.

Every exception carries an explicit ``ErrorKind`` so the HTTP boundary can
classify it without inspecting the message text.
"""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Error category carried by every application exception."""

    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INFRASTRUCTURE = "infrastructure"


class AppException(Exception):
    """Base application exception."""

    kind: ErrorKind = ErrorKind.INFRASTRUCTURE
    status_code: int = 500

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        """Initialize exception with message, status code and optional details."""
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationException(AppException):
    """Malformed value object input or a violated creation bound."""

    kind = ErrorKind.VALIDATION
    status_code = 422

    def __init__(self, message: str = "Validation error", details: dict[str, Any] | None = None):
        """Initialize with 422 status code."""
        super().__init__(message, details=details)


class BusinessRuleViolation(AppException):
    """State transition not allowed from the current status."""

    kind = ErrorKind.BUSINESS_RULE
    status_code = 400

    def __init__(self, message: str = "Business rule violation", details: dict[str, Any] | None = None):
        """Initialize with 400 status code."""
        super().__init__(message, details=details)


class NotFoundException(AppException):
    """Resource not found exception."""

    kind = ErrorKind.NOT_FOUND
    status_code = 404

    def __init__(self, message: str = "Resource not found"):
        """Initialize with 404 status code."""
        super().__init__(message)


class ConflictException(AppException):
    """Stale write detected by the optimistic version check."""

    kind = ErrorKind.CONFLICT
    status_code = 409

    def __init__(self, message: str = "Conflict", details: dict[str, Any] | None = None):
        """Initialize with 409 status code."""
        super().__init__(message, details=details)


class InfrastructureException(AppException):
    """Store or broker unavailable, not connected, or rejecting requests."""

    kind = ErrorKind.INFRASTRUCTURE
    status_code = 503

    def __init__(self, message: str = "Service unavailable", details: dict[str, Any] | None = None):
        """Initialize with 503 status code."""
        super().__init__(message, details=details)


class EventPublishError(InfrastructureException):
    """Broker rejected or could not accept a domain event."""

    def __init__(self, event_type: str, event_id: str, reason: str):
        """Initialize with the event that failed to publish."""
        self.event_type = event_type
        self.event_id = event_id
        super().__init__(
            f"Failed to publish event: {event_type}",
            details={"eventId": event_id, "reason": reason},
        )
