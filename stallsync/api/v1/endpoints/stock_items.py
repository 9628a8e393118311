"""Stock item API.

Quantity changes all go through the stock ledger so every change is logged;
PATCH only edits descriptive fields.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from stallsync.api.v1.dependencies import CurrentActor, Scope
from stallsync.api.v1.dependencies.repositories import get_stock_repo
from stallsync.api.v1.dependencies.services import get_stock_ledger
from stallsync.application.dtos.stock import BatchItemOutcome, StockItemDraft
from stallsync.core.limiter import limit_writes
from stallsync.domain.exceptions import ResourceNotFoundException
from stallsync.infrastructure.firebase.repositories import FirestoreStockRepository
from stallsync.infrastructure.firebase.services import FirestoreStockLedger
from stallsync.schemas.stock import (
    AdjustQuantityRequest,
    AllocateRequest,
    BatchDeleteRequest,
    BatchItemOutcomeResponse,
    BatchOperationResponse,
    BatchSetQuantityRequest,
    ReturnToMasterRequest,
    StockItemCreateRequest,
    StockItemResponse,
    StockItemUpdateRequest,
    StockOperationResponse,
    TransferRequest,
)

router = APIRouter()

Items = Annotated[FirestoreStockRepository, Depends(get_stock_repo)]
Ledger = Annotated[FirestoreStockLedger, Depends(get_stock_ledger)]


def _batch_response(outcomes: list[BatchItemOutcome]) -> JSONResponse:
    """200 when every item succeeded, 207 otherwise."""
    body = BatchOperationResponse(
        succeeded=sum(1 for o in outcomes if o.ok),
        failed=sum(1 for o in outcomes if not o.ok),
        results=[BatchItemOutcomeResponse.model_validate(o) for o in outcomes],
    )
    return JSONResponse(
        status_code=200 if body.failed == 0 else 207,
        content=body.model_dump(mode="json", by_alias=True),
    )


@router.get("", response_model=list[StockItemResponse])
async def list_stock_items(
    scope: Scope,
    items: Items,
    site_id: str | None = None,
    stall: str | None = None,
    category: str | None = None,
) -> list[StockItemResponse]:
    """Items visible to the caller.

    ``stall`` is ``all`` (default), ``master`` for the site's master stock,
    or a stall id.
    """
    filters = scope.query_filters(site_id, stall)
    if filters is None:
        return []
    return [StockItemResponse.model_validate(i) for i in await items.list(filters, category)]


@router.post("", response_model=StockOperationResponse, status_code=201)
@limit_writes
async def create_stock_item(
    request: Request,
    body: StockItemCreateRequest,
    scope: Scope,
    actor: CurrentActor,
    ledger: Ledger,
) -> StockOperationResponse:
    draft = StockItemDraft(**body.model_dump(exclude={"notes"}))
    result = await ledger.create_item(scope, actor, draft, notes=body.notes)
    return StockOperationResponse.model_validate(result)


@router.post("/batch/set-quantity", response_model=BatchOperationResponse)
@limit_writes
async def batch_set_quantity(
    request: Request,
    body: BatchSetQuantityRequest,
    scope: Scope,
    actor: CurrentActor,
    ledger: Ledger,
) -> JSONResponse:
    outcomes = await ledger.batch_set_quantity(scope, actor, body.item_ids, body.new_quantity)
    return _batch_response(outcomes)


@router.post("/batch/delete", response_model=BatchOperationResponse)
@limit_writes
async def batch_delete(
    request: Request,
    body: BatchDeleteRequest,
    scope: Scope,
    actor: CurrentActor,
    ledger: Ledger,
) -> JSONResponse:
    return _batch_response(await ledger.batch_delete(scope, actor, body.item_ids))


@router.get("/{item_id}", response_model=StockItemResponse)
async def get_stock_item(item_id: str, scope: Scope, items: Items) -> StockItemResponse:
    item = await items.get(item_id)
    if item is None:
        raise ResourceNotFoundException("stock item", item_id)
    scope.require(item.site_id, item.stall_id, resource="stock item")
    return StockItemResponse.model_validate(item)


@router.patch("/{item_id}", response_model=StockItemResponse)
@limit_writes
async def update_stock_item(
    request: Request,
    item_id: str,
    body: StockItemUpdateRequest,
    scope: Scope,
    items: Items,
) -> StockItemResponse:
    item = await items.get(item_id)
    if item is None:
        raise ResourceNotFoundException("stock item", item_id)
    scope.require(item.site_id, item.stall_id, resource="stock item", action="update")
    changes = body.model_dump(mode="json", by_alias=True, exclude_unset=True)
    return StockItemResponse.model_validate(await items.update_metadata(item_id, changes))


@router.delete("/{item_id}", response_model=StockOperationResponse)
@limit_writes
async def delete_stock_item(
    request: Request, item_id: str, scope: Scope, actor: CurrentActor, ledger: Ledger
) -> StockOperationResponse:
    return StockOperationResponse.model_validate(await ledger.delete_item(scope, actor, item_id))


@router.post("/{item_id}/adjust", response_model=StockOperationResponse)
@limit_writes
async def adjust_quantity(
    request: Request,
    item_id: str,
    body: AdjustQuantityRequest,
    scope: Scope,
    actor: CurrentActor,
    ledger: Ledger,
) -> StockOperationResponse:
    result = await ledger.adjust_quantity(
        scope, actor, item_id,
        new_quantity=body.new_quantity, delta=body.delta, notes=body.notes,
    )
    return StockOperationResponse.model_validate(result)


@router.post("/{item_id}/allocate", response_model=StockOperationResponse)
@limit_writes
async def allocate_to_stall(
    request: Request,
    item_id: str,
    body: AllocateRequest,
    scope: Scope,
    actor: CurrentActor,
    ledger: Ledger,
) -> StockOperationResponse:
    """Move units of master item ``item_id`` to a stall."""
    result = await ledger.allocate(scope, actor, item_id, body.stall_id, body.quantity, body.notes)
    return StockOperationResponse.model_validate(result)


@router.post("/{item_id}/return", response_model=StockOperationResponse)
@limit_writes
async def return_to_master(
    request: Request,
    item_id: str,
    body: ReturnToMasterRequest,
    scope: Scope,
    actor: CurrentActor,
    ledger: Ledger,
) -> StockOperationResponse:
    result = await ledger.return_to_master(scope, actor, item_id, body.quantity, body.notes)
    return StockOperationResponse.model_validate(result)


@router.post("/{item_id}/transfer", response_model=StockOperationResponse)
@limit_writes
async def transfer_between_stalls(
    request: Request,
    item_id: str,
    body: TransferRequest,
    scope: Scope,
    actor: CurrentActor,
    ledger: Ledger,
) -> StockOperationResponse:
    result = await ledger.transfer(
        scope, actor, item_id, body.destination_stall_id, body.quantity, body.notes
    )
    return StockOperationResponse.model_validate(result)
