"""Stock movement log API (read only)."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from stallsync.api.v1.dependencies import Scope
from stallsync.api.v1.dependencies.repositories import get_stock_movement_repo
from stallsync.domain.enums import StockMovementType
from stallsync.infrastructure.firebase.repositories import FirestoreStockMovementRepository
from stallsync.schemas.stock import StockMovementResponse

router = APIRouter()


@router.get("", response_model=list[StockMovementResponse])
async def list_stock_movements(
    scope: Scope,
    movements: Annotated[FirestoreStockMovementRepository, Depends(get_stock_movement_repo)],
    site_id: str | None = None,
    stall: str | None = None,
    stock_item_id: str | None = None,
    movement_type: StockMovementType | None = Query(default=None, alias="type"),
    limit: int = Query(default=200, ge=1, le=1000),
) -> list[StockMovementResponse]:
    filters = scope.query_filters(site_id, stall)
    if filters is None:
        return []
    found = await movements.list(filters, stock_item_id, movement_type, limit)
    return [StockMovementResponse.model_validate(m) for m in found]
