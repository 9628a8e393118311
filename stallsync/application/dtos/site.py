"""DTOs for sites and stalls."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class SiteResult:
    id: str
    name: str
    location: str | None
    created_at: datetime | None
    updated_at: datetime | None


@dataclass(frozen=True)
class StallResult:
    id: str
    site_id: str
    name: str
    stall_type: str
    created_at: datetime | None
    updated_at: datetime | None
