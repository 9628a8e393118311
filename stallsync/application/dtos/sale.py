"""DTOs for retail sale transactions."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class SaleLine:
    """Requested line: which stall item and how many."""

    item_id: str
    quantity: int


@dataclass(frozen=True)
class SoldItem:
    item_id: str
    name: str
    quantity: int
    price_per_unit: float
    total_price: float


@dataclass(frozen=True)
class SaleResult:
    id: str
    site_id: str
    stall_id: str
    items: list[SoldItem]
    total_amount: float
    transaction_date: datetime
    staff_id: str
    staff_name: str
    is_deleted: bool = False
    deleted_by: str | None = None
    deleted_at: datetime | None = None
    deletion_justification: str | None = None
