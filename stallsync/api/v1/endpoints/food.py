"""Food-stall API: expenses, daily sales per meal and channel, activity log."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, Response

from stallsync.api.v1.dependencies import CurrentActor, Scope
from stallsync.api.v1.dependencies.repositories import get_food_repo
from stallsync.application.dtos.food import FoodExpenseResult
from stallsync.application.services.access_scope import AccessScope
from stallsync.application.services.food_sales_summary import summarize_food_sales
from stallsync.core.config import get_settings
from stallsync.core.limiter import limit_writes
from stallsync.domain.enums import FoodExpenseCategory
from stallsync.domain.exceptions import ResourceNotFoundException
from stallsync.infrastructure.firebase.repositories import FirestoreFoodRepository
from stallsync.schemas.food import (
    FoodActivityLogResponse,
    FoodDailySaleResponse,
    FoodDailySaleUpsertRequest,
    FoodExpenseCreateRequest,
    FoodExpenseResponse,
    FoodExpenseUpdateRequest,
    FoodSalesSummaryResponse,
)

router = APIRouter()

Food = Annotated[FirestoreFoodRepository, Depends(get_food_repo)]


def _iso(day: date | None) -> str | None:
    return day.isoformat() if day else None


async def _scoped_expense(
    food: FirestoreFoodRepository, scope: AccessScope, expense_id: str, action: str
) -> FoodExpenseResult:
    expense = await food.get_expense(expense_id)
    if expense is None:
        raise ResourceNotFoundException("food expense", expense_id)
    scope.require(expense.site_id, expense.stall_id, resource="food expense", action=action)
    return expense


# Expenses


@router.get("/expenses", response_model=list[FoodExpenseResponse])
async def list_expenses(
    scope: Scope,
    food: Food,
    site_id: str | None = None,
    stall: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    category: FoodExpenseCategory | None = None,
    limit: int = Query(default=500, ge=1, le=2000),
) -> list[FoodExpenseResponse]:
    filters = scope.query_filters(site_id, stall)
    if filters is None:
        return []
    found = await food.list_expenses(
        filters, _iso(start_date), _iso(end_date), category.value if category else None, limit
    )
    return [FoodExpenseResponse.model_validate(e) for e in found]


@router.post("/expenses", response_model=FoodExpenseResponse, status_code=201)
@limit_writes
async def create_expense(
    request: Request,
    body: FoodExpenseCreateRequest,
    scope: Scope,
    actor: CurrentActor,
    food: Food,
) -> FoodExpenseResponse:
    scope.require(body.site_id, body.stall_id, resource="food expense", action="create")
    fields = body.model_dump(mode="json", by_alias=True, exclude={"site_id", "stall_id"})
    expense = await food.create_expense(actor, body.site_id, body.stall_id, fields)
    return FoodExpenseResponse.model_validate(expense)


@router.get("/expenses/{expense_id}", response_model=FoodExpenseResponse)
async def get_expense(expense_id: str, scope: Scope, food: Food) -> FoodExpenseResponse:
    return FoodExpenseResponse.model_validate(await _scoped_expense(food, scope, expense_id, "read"))


@router.patch("/expenses/{expense_id}", response_model=FoodExpenseResponse)
@limit_writes
async def update_expense(
    request: Request,
    expense_id: str,
    body: FoodExpenseUpdateRequest,
    scope: Scope,
    actor: CurrentActor,
    food: Food,
) -> FoodExpenseResponse:
    await _scoped_expense(food, scope, expense_id, "update")
    changes = body.model_dump(mode="json", by_alias=True, exclude_unset=True)
    return FoodExpenseResponse.model_validate(await food.update_expense(actor, expense_id, changes))


@router.delete("/expenses/{expense_id}", status_code=204)
@limit_writes
async def delete_expense(
    request: Request, expense_id: str, scope: Scope, actor: CurrentActor, food: Food
) -> Response:
    await _scoped_expense(food, scope, expense_id, "delete")
    await food.delete_expense(actor, expense_id)
    return Response(status_code=204)


# Daily sales


@router.put("/sales", response_model=FoodDailySaleResponse)
@limit_writes
async def upsert_daily_sale(
    request: Request,
    body: FoodDailySaleUpsertRequest,
    scope: Scope,
    actor: CurrentActor,
    food: Food,
) -> FoodDailySaleResponse:
    """Create or merge the stall's record for ``saleDate``."""
    scope.require(body.site_id, body.stall_id, resource="food sale", action="write")
    sale = await food.upsert_daily_sale(
        actor,
        body.site_id,
        body.stall_id,
        body.sale_date.isoformat(),
        body.meals(),
        body.notes,
        max_attempts=get_settings().stock_transaction_max_attempts,
    )
    return FoodDailySaleResponse.from_result(sale)


@router.get("/sales", response_model=list[FoodDailySaleResponse])
async def list_daily_sales(
    scope: Scope,
    food: Food,
    site_id: str | None = None,
    stall: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    limit: int = Query(default=400, ge=1, le=2000),
) -> list[FoodDailySaleResponse]:
    filters = scope.query_filters(site_id, stall)
    if filters is None:
        return []
    found = await food.list_daily_sales(filters, _iso(start_date), _iso(end_date), limit)
    return [FoodDailySaleResponse.from_result(s) for s in found]


@router.get("/sales/summary", response_model=FoodSalesSummaryResponse)
async def daily_sales_summary(
    scope: Scope,
    food: Food,
    site_id: str | None = None,
    stall: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
) -> FoodSalesSummaryResponse:
    """Totals by payment channel and meal over the selected days."""
    filters = scope.query_filters(site_id, stall)
    sales = [] if filters is None else await food.list_daily_sales(
        filters, _iso(start_date), _iso(end_date), limit=5000
    )
    return FoodSalesSummaryResponse.model_validate(summarize_food_sales(sales))


@router.get("/sales/{sale_id}", response_model=FoodDailySaleResponse)
async def get_daily_sale(sale_id: str, scope: Scope, food: Food) -> FoodDailySaleResponse:
    sale = await food.get_daily_sale(sale_id)
    if sale is None:
        raise ResourceNotFoundException("food sale", sale_id)
    scope.require(sale.site_id, sale.stall_id, resource="food sale")
    return FoodDailySaleResponse.from_result(sale)


@router.get("/activity-logs", response_model=list[FoodActivityLogResponse])
async def list_food_activity(
    scope: Scope,
    food: Food,
    site_id: str | None = None,
    stall: str | None = None,
    limit: int = Query(default=200, ge=1, le=1000),
) -> list[FoodActivityLogResponse]:
    filters = scope.query_filters(site_id, stall)
    if filters is None:
        return []
    return [FoodActivityLogResponse.model_validate(a) for a in await food.list_activity(filters, limit)]
