"""DTOs for the Google OAuth connection."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class GoogleTokens:
    access_token: str
    refresh_token: str | None
    token_type: str
    scope: str
    expires_at: datetime


@dataclass(frozen=True)
class GoogleConnectionStatus:
    connected: bool
    scope: str | None = None
    expires_at: datetime | None = None
    updated_at: datetime | None = None
