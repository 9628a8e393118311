"""Domain layer: enums, exceptions and stock rules. No infrastructure imports."""

from stallsync.domain.enums import (
    StockMovementType,
    StockStatus,
    UserRole,
    UserStatus,
)
from stallsync.domain.exceptions import (
    AuthenticationException,
    AuthorizationException,
    ConfirmationMismatchException,
    InactiveUserException,
    InsufficientStockException,
    ResourceConflictException,
    ResourceNotFoundException,
    SelfDeletionForbiddenException,
    ServiceUnavailableException,
    StallSyncException,
    UserAlreadyExistsException,
    ValidationException,
)
from stallsync.domain.stock import derive_stock_status

__all__ = [
    "AuthenticationException",
    "AuthorizationException",
    "ConfirmationMismatchException",
    "InactiveUserException",
    "InsufficientStockException",
    "ResourceConflictException",
    "ResourceNotFoundException",
    "SelfDeletionForbiddenException",
    "ServiceUnavailableException",
    "StallSyncException",
    "StockMovementType",
    "StockStatus",
    "UserAlreadyExistsException",
    "UserRole",
    "UserStatus",
    "ValidationException",
    "derive_stock_status",
]
