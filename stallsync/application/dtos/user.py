"""DTOs for users and the authenticated caller."""

from dataclasses import dataclass, field
from datetime import datetime

from stallsync.domain.enums import UserRole, UserStatus


@dataclass(frozen=True)
class IdentityUser:
    """Firebase Authentication account (no profile data)."""

    uid: str
    email: str
    display_name: str


@dataclass(frozen=True)
class UserProfile:
    """Profile stored at users/{uid}; role and scope drive authorization."""

    uid: str
    email: str
    display_name: str
    role: UserRole
    status: UserStatus = UserStatus.ACTIVE
    default_site_id: str | None = None
    default_stall_id: str | None = None
    managed_site_ids: tuple[str, ...] = field(default_factory=tuple)
    created_at: datetime | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


@dataclass(frozen=True)
class Actor:
    """Who performed a write; copied onto logs and records."""

    uid: str
    name: str

    @classmethod
    def from_profile(cls, user: UserProfile) -> "Actor":
        return cls(uid=user.uid, name=user.display_name or user.email)
