"""Google connection API schemas."""

from datetime import datetime

from stallsync.schemas.common import CamelModel


class GoogleConnectionStatusResponse(CamelModel):
    connected: bool
    scope: str | None = None
    expires_at: datetime | None = None
    updated_at: datetime | None = None
