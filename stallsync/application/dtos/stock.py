"""DTOs for stock items and the movement ledger."""

from dataclasses import dataclass, field
from datetime import datetime

from stallsync.domain.enums import StockMovementType, StockStatus
from stallsync.domain.stock import derive_stock_status


@dataclass(frozen=True)
class StockItemResult:
    id: str
    site_id: str
    stall_id: str | None
    name: str
    category: str
    quantity: int
    unit: str
    price: float
    cost_price: float
    low_stock_threshold: int
    description: str | None = None
    image_url: str | None = None
    original_master_item_id: str | None = None
    last_updated: datetime | None = None

    @property
    def status(self) -> StockStatus:
        return derive_stock_status(self.quantity, self.low_stock_threshold)

    @property
    def is_master(self) -> bool:
        return self.stall_id is None


@dataclass(frozen=True)
class StockItemDraft:
    """Fields for a new stock item; quantity is logged as the opening movement."""

    site_id: str
    stall_id: str | None
    name: str
    category: str
    quantity: int
    unit: str
    price: float
    cost_price: float = 0.0
    low_stock_threshold: int = 0
    description: str | None = None
    image_url: str | None = None


@dataclass(frozen=True)
class StockChange:
    """One quantity change to apply atomically with its movement log."""

    item_id: str
    delta: int
    movement_type: StockMovementType
    notes: str | None = None
    linked_item_id: str | None = None
    master_item_id_for_context: str | None = None
    related_transaction_id: str | None = None
    # Clamp at zero instead of failing (sales reducing linked master stock).
    floor_at_zero: bool = False


@dataclass(frozen=True)
class StockMovementResult:
    id: str
    stock_item_id: str
    site_id: str
    stall_id: str | None
    type: StockMovementType
    quantity_change: int
    quantity_before: int
    quantity_after: int
    user_id: str
    user_name: str
    timestamp: datetime
    notes: str | None = None
    linked_stock_item_id: str | None = None
    master_stock_item_id_for_context: str | None = None
    related_transaction_id: str | None = None


@dataclass(frozen=True)
class StockOperationResult:
    """Items as written plus the log entries committed with them."""

    items: list[StockItemResult] = field(default_factory=list)
    movements: list[StockMovementResult] = field(default_factory=list)


@dataclass(frozen=True)
class BatchItemOutcome:
    """Result for one item of a batch operation (each item has its own transaction)."""

    item_id: str
    error: str | None = None
    error_code: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
