"""Stock and sales export API: CSV downloads and Google Sheets."""

from datetime import datetime
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from stallsync.api.v1.dependencies import CurrentUser, Scope
from stallsync.api.v1.dependencies.repositories import get_sale_repo, get_stock_repo
from stallsync.api.v1.dependencies.services import get_google_sheets_use_case
from stallsync.application.services.tabular_export import sales_table, stock_table, to_csv
from stallsync.application.use_cases.google_sheets import GoogleSheetsUseCase
from stallsync.core.limiter import limit_imports
from stallsync.infrastructure.firebase.repositories import (
    FirestoreSaleRepository,
    FirestoreStockRepository,
)
from stallsync.schemas.imports import SheetExportRequest, SheetExportResponse
from stallsync.shared.utils.datetime import date_key, utc_now

router = APIRouter()


def _csv_download(table: list[list[Any]], stem: str) -> Response:
    filename = f"stallsync_{stem}_{date_key(utc_now())}.csv"
    return Response(
        content=to_csv(table),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.get("/stock-items.csv")
async def export_stock_csv(
    scope: Scope,
    stock: Annotated[FirestoreStockRepository, Depends(get_stock_repo)],
    site_id: str | None = None,
    stall: str | None = None,
) -> Response:
    """Stock items visible to the caller, one row per item."""
    filters = scope.query_filters(site_id, stall)
    items = [] if filters is None else await stock.list(filters)
    return _csv_download(stock_table(items), "stock_items")


@router.get("/sales.csv")
async def export_sales_csv(
    scope: Scope,
    sales: Annotated[FirestoreSaleRepository, Depends(get_sale_repo)],
    site_id: str | None = None,
    stall: str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
) -> Response:
    """Non-deleted sales visible to the caller, newest first."""
    filters = scope.query_filters(site_id, stall)
    found = [] if filters is None else await sales.list(filters, start, end, limit=None)
    return _csv_download(sales_table(found), "sales_data")


@router.post("/google-sheets", response_model=SheetExportResponse)
@limit_imports
async def export_google_sheet(
    request: Request,
    body: SheetExportRequest,
    user: CurrentUser,
    scope: Scope,
    use_case: Annotated[GoogleSheetsUseCase, Depends(get_google_sheets_use_case)],
) -> SheetExportResponse:
    """Write stock or sales into the caller's Google Sheets; a new spreadsheet when no id is given."""
    filters = scope.query_filters(body.site_id, body.stall)
    result = await use_case.export(
        user.uid, body.data_type, filters, body.spreadsheet_id, body.sheet_name
    )
    return SheetExportResponse.model_validate(result)
