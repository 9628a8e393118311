"""Site and stall API schemas."""

from datetime import datetime

from pydantic import Field

from stallsync.domain.enums import StallType
from stallsync.schemas.common import CamelModel, PartialUpdateModel


class SiteCreateRequest(CamelModel):
    name: str = Field(..., min_length=2, max_length=100)
    location: str | None = Field(default=None, max_length=200)


class SiteUpdateRequest(PartialUpdateModel):
    nullable_fields = frozenset({"location"})

    name: str | None = Field(default=None, min_length=2, max_length=100)
    location: str | None = Field(default=None, max_length=200)


class SiteResponse(CamelModel):
    id: str
    name: str
    location: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class StallCreateRequest(CamelModel):
    site_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=2, max_length=100)
    stall_type: StallType


class StallUpdateRequest(PartialUpdateModel):
    name: str | None = Field(default=None, min_length=2, max_length=100)
    stall_type: StallType | None = None


class StallResponse(CamelModel):
    id: str
    site_id: str
    name: str
    stall_type: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
