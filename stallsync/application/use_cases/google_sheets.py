"""Stock and sales import/export through the caller's Google Sheets.

Exports write the same tables as the CSV downloads: into a new spreadsheet
when no id is given, otherwise replacing the named sheet of an existing one.
Imports read a sheet and hand its rows to the CSV import, so the columns,
row validation and ``Row N`` error numbering (sheet row numbers) are shared.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from stallsync.application.dtos.imports import ImportReport, SheetExportResult
from stallsync.application.services.tabular_export import sales_table, stock_table
from stallsync.application.use_cases.imports.csv_import import rows_from_table
from stallsync.domain.enums import ExportDataType, ImportDataType
from stallsync.domain.exceptions import ValidationException
from stallsync.shared.telemetry.tracing import traced
from stallsync.shared.utils.datetime import date_key, utc_now

if TYPE_CHECKING:
    from stallsync.application.dtos.user import Actor
    from stallsync.application.interfaces.repositories import ISaleReader, IStockItemReader
    from stallsync.application.interfaces.services import (
        ISpreadsheetClient,
        SpreadsheetClientFactory,
    )
    from stallsync.application.services.google_oauth_service import GoogleOAuthService
    from stallsync.application.use_cases.imports import CsvImportUseCase

logger = logging.getLogger(__name__)

_TITLES = {ExportDataType.STOCK: "Stock Items", ExportDataType.SALES: "Sales History"}


class GoogleSheetsUseCase:
    def __init__(
        self,
        oauth: GoogleOAuthService,
        client_factory: SpreadsheetClientFactory,
        stock: IStockItemReader,
        sales: ISaleReader,
        importer: CsvImportUseCase,
    ) -> None:
        self._oauth = oauth
        self._client_factory = client_factory
        self._stock = stock
        self._sales = sales
        self._importer = importer

    async def _client(self, uid: str) -> ISpreadsheetClient:
        return self._client_factory(await self._oauth.get_valid_tokens(uid))

    async def _table(
        self, data_type: ExportDataType, filters: list[tuple[str, str, Any]] | None
    ) -> list[list[Any]]:
        if data_type == ExportDataType.STOCK:
            return stock_table([] if filters is None else await self._stock.list(filters))
        return sales_table([] if filters is None else await self._sales.list(filters, limit=None))

    @traced("google_sheets.export")
    async def export(
        self,
        uid: str,
        data_type: ExportDataType,
        filters: list[tuple[str, str, Any]] | None,
        spreadsheet_id: str | None = None,
        sheet_name: str = "Sheet1",
    ) -> SheetExportResult:
        """Write the caller's visible stock or sales into a spreadsheet.

        filters is None when the caller's scope admits nothing; only the
        header row is written then.
        """
        client = await self._client(uid)
        table = await self._table(data_type, filters)
        created = not spreadsheet_id
        if created:
            title = f"StallSync {_TITLES[data_type]} Export {date_key(utc_now())}"
            spreadsheet_id = await client.create_spreadsheet(title, sheet_name)
        await client.write_values(spreadsheet_id, sheet_name, table, clear=not created)
        logger.info(
            "Exported %d %s rows for %s to spreadsheet %s",
            len(table) - 1, data_type.value, uid, spreadsheet_id,
        )
        return SheetExportResult(spreadsheet_id, sheet_name, len(table) - 1, created)

    @traced("google_sheets.import")
    async def import_sheet(
        self,
        actor: Actor,
        data_type: ImportDataType,
        spreadsheet_id: str,
        sheet_name: str = "Sheet1",
    ) -> ImportReport:
        """Import one sheet; its first row names the columns.

        Raises:
            ValidationException: The sheet has no header row.
        """
        client = await self._client(actor.uid)
        values = await client.read_values(spreadsheet_id, sheet_name)
        if not values or not any(str(h).strip() for h in values[0]):
            raise ValidationException(f"Sheet {sheet_name!r} has no header row", "sheetName")
        return await self._importer.import_rows(
            actor, data_type, rows_from_table(values), source="Google Sheets"
        )
