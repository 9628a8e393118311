"""Domain exceptions for the StallSync application.

Defines domain-level exceptions that represent business rule violations.
These exceptions are independent of infrastructure concerns. Presentation
layer maps them to HTTP responses in exception handlers.
"""

from typing import Any


class StallSyncException(Exception):
    """Base exception for all StallSync application errors.

    All custom exceptions inherit from this class so the API boundary can
    translate them uniformly into ``{"error", "message", "details"}``.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field, resource_id).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON error body for this exception."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(StallSyncException):
    """Raised when input validation fails (e.g. invalid format or range)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Description of the validation failure.
            field: Optional field or attribute that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class ConfirmationMismatchException(StallSyncException):
    """Raised when a destructive operation's typed confirmation phrase does not match."""

    def __init__(self, expected: str) -> None:
        super().__init__(
            f'Invalid confirmation phrase. Type "{expected}" to confirm.',
            "CONFIRMATION_MISMATCH",
            {"expected": expected},
        )


class AuthenticationException(StallSyncException):
    """Raised when authentication fails (missing, invalid or expired ID token)."""

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message, "AUTHENTICATION_ERROR")


class AuthorizationException(StallSyncException):
    """Raised when the caller lacks the role or scope required for the operation."""

    def __init__(
        self,
        resource: str | None = None,
        action: str | None = None,
        message: str = "Permission denied",
    ) -> None:
        """Initialize with optional resource, action, and message.

        Args:
            resource: Optional resource type (e.g. 'stock_item', 'site').
            action: Optional action that was attempted (e.g. 'create', 'read').
            message: Human-readable message; default used when resource/action omitted.
        """
        if resource and action:
            message = f"Permission denied: {action} on {resource}"
        details: dict[str, Any] = {}
        if resource:
            details["resource"] = resource
        if action:
            details["action"] = action
        super().__init__(message, "PERMISSION_DENIED", details)


class InactiveUserException(StallSyncException):
    """Raised when an authenticated user's profile is marked inactive."""

    def __init__(self, uid: str) -> None:
        super().__init__(
            "User account is inactive", "INACTIVE_USER", {"uid": uid}
        )


class SelfDeletionForbiddenException(StallSyncException):
    """Raised when an admin tries to delete their own account."""

    def __init__(self) -> None:
        super().__init__(
            "Admins cannot delete their own account",
            "SELF_DELETION_FORBIDDEN",
        )


class ResourceNotFoundException(StallSyncException):
    """Raised when a requested resource is not found."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        """Initialize with resource type and id.

        Args:
            resource_type: Type of resource (e.g. 'site', 'stock_item').
            resource_id: The ID that was not found.
        """
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class ResourceConflictException(StallSyncException):
    """Raised when an operation conflicts with existing data (e.g. references still present)."""

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message, "RESOURCE_CONFLICT", details)


class UserAlreadyExistsException(StallSyncException):
    """Raised when creating a user whose email is already registered."""

    def __init__(self, email: str | None = None) -> None:
        super().__init__(
            "The email address is already in use by another account.",
            "USER_ALREADY_EXISTS",
            {"email": email} if email else {},
        )


class InsufficientStockException(StallSyncException):
    """Raised when a stock change would drive an item's quantity below zero."""

    def __init__(self, item_id: str, available: int, requested: int) -> None:
        super().__init__(
            f"Insufficient stock for item {item_id}: available {available}, requested {requested}",
            "INSUFFICIENT_STOCK",
            {"item_id": item_id, "available": available, "requested": requested},
        )


class ServiceUnavailableException(StallSyncException):
    """Raised when an operation needs an integration that is not configured."""

    def __init__(self, service: str, message: str | None = None) -> None:
        super().__init__(
            message or f"{service} is not configured on the server.",
            "SERVICE_UNAVAILABLE",
            {"service": service},
        )
