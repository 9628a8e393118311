"""User profile API schemas."""

from datetime import datetime

from pydantic import Field

from stallsync.domain.enums import UserRole, UserStatus
from stallsync.schemas.common import CamelModel, PartialUpdateModel


class UserProfileResponse(CamelModel):
    uid: str
    email: str
    display_name: str
    role: UserRole
    status: UserStatus
    default_site_id: str | None = None
    default_stall_id: str | None = None
    managed_site_ids: list[str] = Field(default_factory=list)
    created_at: datetime | None = None


class UserUpdateRequest(PartialUpdateModel):
    """Partial profile update (admin); only fields that are sent are changed."""

    nullable_fields = frozenset({"default_site_id", "default_stall_id"})

    display_name: str | None = Field(default=None, min_length=2, max_length=100)
    role: UserRole | None = None
    default_site_id: str | None = None
    default_stall_id: str | None = None
    managed_site_ids: list[str] | None = None


class UserStatusRequest(CamelModel):
    status: UserStatus
