"""Pydantic request/response schemas for the API (camelCase on the wire)."""

from stallsync.schemas.admin import CreateUserRequest, CreateUserResponse, ResetRequest, ResetResponse
from stallsync.schemas.common import CamelModel, MessageResponse
from stallsync.schemas.health import HealthResponse
from stallsync.schemas.site import SiteResponse, StallResponse
from stallsync.schemas.stock import StockItemResponse, StockMovementResponse
from stallsync.schemas.user import UserProfileResponse

__all__ = [
    "CamelModel",
    "CreateUserRequest",
    "CreateUserResponse",
    "HealthResponse",
    "MessageResponse",
    "ResetRequest",
    "ResetResponse",
    "SiteResponse",
    "StallResponse",
    "StockItemResponse",
    "StockMovementResponse",
    "UserProfileResponse",
]
