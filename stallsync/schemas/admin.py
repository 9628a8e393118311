"""Admin API schemas: user provisioning and data reset."""

from pydantic import EmailStr, Field

from stallsync.domain.enums import UserRole
from stallsync.schemas.common import CamelModel


class CreateUserRequest(CamelModel):
    """Body of POST /admin/create-user."""

    email: EmailStr
    password: str = Field(..., min_length=6)
    display_name: str = Field(..., min_length=2, max_length=100)
    role: UserRole = UserRole.STAFF
    default_site_id: str | None = None
    default_stall_id: str | None = None
    managed_site_ids: list[str] = Field(default_factory=list)


class CreateUserResponse(CamelModel):
    uid: str
    email: str
    display_name: str


class ResetRequest(CamelModel):
    """The typed confirmation phrase, e.g. ``RESET DATA``."""

    confirmation: str = Field(..., max_length=64)


class CollectionResetResponse(CamelModel):
    collection: str
    documents_deleted: int
    batches_committed: int
    error: str | None = None


class ResetResponse(CamelModel):
    message: str
    successes: int
    errors: int
    documents_deleted: int
    outcomes: list[CollectionResetResponse]
