"""Retail sale API."""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from stallsync.api.v1.dependencies import AdminUser, CurrentActor, Scope
from stallsync.api.v1.dependencies.repositories import get_sale_repo
from stallsync.api.v1.dependencies.services import get_stock_ledger
from stallsync.application.dtos.sale import SaleLine
from stallsync.application.dtos.user import Actor
from stallsync.core.limiter import limit_admin, limit_writes
from stallsync.domain.exceptions import ResourceNotFoundException
from stallsync.infrastructure.firebase.repositories import FirestoreSaleRepository
from stallsync.infrastructure.firebase.services import FirestoreStockLedger
from stallsync.schemas.sale import SaleCreateRequest, SaleDeleteRequest, SaleResponse

router = APIRouter()

Sales = Annotated[FirestoreSaleRepository, Depends(get_sale_repo)]


@router.get("", response_model=list[SaleResponse])
async def list_sales(
    scope: Scope,
    sales: Sales,
    site_id: str | None = None,
    stall: str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    include_deleted: bool = False,
    limit: int = Query(default=200, ge=1, le=1000),
) -> list[SaleResponse]:
    filters = scope.query_filters(site_id, stall)
    if filters is None:
        return []
    found = await sales.list(filters, start, end, include_deleted, limit)
    return [SaleResponse.model_validate(s) for s in found]


@router.post("", response_model=SaleResponse, status_code=201)
@limit_writes
async def record_sale(
    request: Request,
    body: SaleCreateRequest,
    scope: Scope,
    actor: CurrentActor,
    ledger: Annotated[FirestoreStockLedger, Depends(get_stock_ledger)],
) -> SaleResponse:
    """Record a sale; stall stock (and linked master stock) is decremented atomically."""
    lines = [SaleLine(item_id=line.item_id, quantity=line.quantity) for line in body.items]
    sale = await ledger.record_sale(scope, actor, body.site_id, body.stall_id, lines)
    return SaleResponse.model_validate(sale)


@router.get("/{sale_id}", response_model=SaleResponse)
async def get_sale(sale_id: str, scope: Scope, sales: Sales) -> SaleResponse:
    sale = await sales.get(sale_id)
    if sale is None:
        raise ResourceNotFoundException("sale", sale_id)
    scope.require(sale.site_id, sale.stall_id, resource="sale")
    return SaleResponse.model_validate(sale)


@router.delete("/{sale_id}", response_model=SaleResponse)
@limit_admin
async def delete_sale(
    request: Request,
    sale_id: str,
    body: SaleDeleteRequest,
    admin: AdminUser,
    sales: Sales,
) -> SaleResponse:
    """Soft-delete a sale with a justification. Stock is not restored."""
    sale = await sales.soft_delete(sale_id, Actor.from_profile(admin), body.justification)
    return SaleResponse.model_validate(sale)
