"""Bulk import API: CSV files and Hungerbox sales emails."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from stallsync.api.v1.dependencies import AdminUser, CurrentUser
from stallsync.api.v1.dependencies.services import (
    get_csv_import_use_case,
    get_google_sheets_use_case,
    get_hungerbox_use_case,
)
from stallsync.application.dtos.imports import ImportReport
from stallsync.application.dtos.user import Actor
from stallsync.application.use_cases.google_sheets import GoogleSheetsUseCase
from stallsync.application.use_cases.imports import CsvImportUseCase, ListHungerboxEmailsUseCase
from stallsync.core.limiter import limit_imports
from stallsync.schemas.imports import (
    CsvImportRequest,
    HungerboxEmailsResponse,
    ImportReportResponse,
    MailMessageResponse,
    SheetImportRequest,
)

router = APIRouter()


def _report_response(report: ImportReport) -> JSONResponse:
    """200 when every row was written, 207 when some rows were rejected."""
    if report.errors:
        message = f"Imported {report.records_written} records with {len(report.errors)} row errors"
    else:
        message = f"Imported {report.records_written} records"
    response = ImportReportResponse(
        message=message,
        data_type=report.data_type,
        rows_processed=report.rows_processed,
        records_written=report.records_written,
        errors=report.errors,
    )
    return JSONResponse(
        status_code=207 if report.errors else 200,
        content=response.model_dump(mode="json", by_alias=True),
    )


@router.post("/csv", response_model=ImportReportResponse)
@limit_imports
async def import_csv(
    request: Request,
    body: CsvImportRequest,
    admin: AdminUser,
    use_case: Annotated[CsvImportUseCase, Depends(get_csv_import_use_case)],
) -> JSONResponse:
    """Import stock, sales history, food expenses or food sales; 207 when some rows were rejected."""
    report = await use_case.run(Actor.from_profile(admin), body.data_type, body.csv_data)
    return _report_response(report)


@router.post("/google-sheets", response_model=ImportReportResponse)
@limit_imports
async def import_google_sheet(
    request: Request,
    body: SheetImportRequest,
    admin: AdminUser,
    use_case: Annotated[GoogleSheetsUseCase, Depends(get_google_sheets_use_case)],
) -> JSONResponse:
    """Import one sheet of the admin's spreadsheet (same columns as the CSV import)."""
    report = await use_case.import_sheet(
        Actor.from_profile(admin), body.data_type, body.spreadsheet_id, body.sheet_name
    )
    return _report_response(report)


@router.post("/gmail/hungerbox", response_model=HungerboxEmailsResponse)
@limit_imports
async def list_hungerbox_emails(
    request: Request,
    user: CurrentUser,
    use_case: Annotated[ListHungerboxEmailsUseCase, Depends(get_hungerbox_use_case)],
    limit: int = Query(default=50, ge=1, le=200),
) -> HungerboxEmailsResponse:
    """Hungerbox emails in the caller's connected Gmail account."""
    messages = await use_case.execute(user.uid, limit=limit)
    return HungerboxEmailsResponse(
        query=use_case.query,
        count=len(messages),
        messages=[MailMessageResponse.model_validate(m) for m in messages],
    )
