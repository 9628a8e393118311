"""Retail sale API schemas."""

from datetime import datetime

from pydantic import Field

from stallsync.schemas.common import CamelModel


class SaleLineRequest(CamelModel):
    item_id: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0)


class SaleCreateRequest(CamelModel):
    """Prices are taken from the stored stock items."""

    site_id: str = Field(..., min_length=1)
    stall_id: str = Field(..., min_length=1)
    items: list[SaleLineRequest] = Field(..., min_length=1, max_length=100)


class SoldItemResponse(CamelModel):
    item_id: str
    name: str
    quantity: int
    price_per_unit: float
    total_price: float


class SaleResponse(CamelModel):
    id: str
    site_id: str
    stall_id: str
    items: list[SoldItemResponse]
    total_amount: float
    transaction_date: datetime
    staff_id: str
    staff_name: str
    is_deleted: bool = False
    deleted_by: str | None = None
    deleted_at: datetime | None = None
    deletion_justification: str | None = None


class SaleDeleteRequest(CamelModel):
    justification: str = Field(..., min_length=10, max_length=500)
