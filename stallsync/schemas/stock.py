"""Stock item, movement and ledger-operation API schemas."""

from datetime import datetime

from pydantic import Field, model_validator

from stallsync.domain.enums import StockMovementType, StockStatus
from stallsync.schemas.common import CamelModel, PartialUpdateModel


class StockItemCreateRequest(CamelModel):
    """New item; ``stallId`` null creates master stock for the site."""

    site_id: str = Field(..., min_length=1)
    stall_id: str | None = None
    name: str = Field(..., min_length=2, max_length=100)
    category: str = Field(..., min_length=1, max_length=100)
    quantity: int = Field(..., ge=0)
    unit: str = Field(..., min_length=1, max_length=20)
    price: float = Field(..., ge=0)
    cost_price: float = Field(default=0.0, ge=0)
    low_stock_threshold: int = Field(default=0, ge=0)
    description: str | None = Field(default=None, max_length=1000)
    image_url: str | None = None
    notes: str | None = Field(default=None, max_length=500)


class StockItemUpdateRequest(PartialUpdateModel):
    """Metadata edit; quantity changes go through /adjust."""

    nullable_fields = frozenset({"description", "image_url"})

    name: str | None = Field(default=None, min_length=2, max_length=100)
    category: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=1000)
    unit: str | None = Field(default=None, min_length=1, max_length=20)
    price: float | None = Field(default=None, ge=0)
    cost_price: float | None = Field(default=None, ge=0)
    low_stock_threshold: int | None = Field(default=None, ge=0)
    image_url: str | None = None


class StockItemResponse(CamelModel):
    id: str
    site_id: str
    stall_id: str | None = None
    name: str
    category: str
    quantity: int
    unit: str
    price: float
    cost_price: float
    low_stock_threshold: int
    status: StockStatus
    description: str | None = None
    image_url: str | None = None
    original_master_item_id: str | None = None
    last_updated: datetime | None = None


class AdjustQuantityRequest(CamelModel):
    """Exactly one of newQuantity (absolute) or delta (relative)."""

    new_quantity: int | None = Field(default=None, ge=0)
    delta: int | None = None
    notes: str | None = Field(default=None, max_length=500)

    @model_validator(mode="after")
    def _one_of(self) -> "AdjustQuantityRequest":
        if (self.new_quantity is None) == (self.delta is None):
            raise ValueError("Provide exactly one of newQuantity or delta")
        return self


class AllocateRequest(CamelModel):
    stall_id: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0)
    notes: str | None = Field(default=None, max_length=500)


class ReturnToMasterRequest(CamelModel):
    quantity: int = Field(..., gt=0)
    notes: str | None = Field(default=None, max_length=500)


class TransferRequest(CamelModel):
    destination_stall_id: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0)
    notes: str | None = Field(default=None, max_length=500)


class BatchSetQuantityRequest(CamelModel):
    item_ids: list[str] = Field(..., min_length=1, max_length=200)
    new_quantity: int = Field(..., ge=0)


class BatchDeleteRequest(CamelModel):
    item_ids: list[str] = Field(..., min_length=1, max_length=200)


class BatchItemOutcomeResponse(CamelModel):
    item_id: str
    ok: bool
    error: str | None = None
    error_code: str | None = None


class BatchOperationResponse(CamelModel):
    succeeded: int
    failed: int
    results: list[BatchItemOutcomeResponse]


class StockMovementResponse(CamelModel):
    id: str
    stock_item_id: str
    site_id: str
    stall_id: str | None = None
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


class StockOperationResponse(CamelModel):
    """Items as written plus the movement log entries committed with them."""

    items: list[StockItemResponse]
    movements: list[StockMovementResponse]
