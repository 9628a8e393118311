"""CSV import of stock items, retail sales history, food expenses and food-stall
daily sales.

Sites and stalls are referenced by name (case-insensitive) or by a "Site ID"
/ "Stall ID" column; a stall name is resolved within its row's site. A stock
row with an "ID" updates that item instead of creating one: only the columns
present are written, and a quantity change is logged by the stock ledger.

Invalid rows are reported as ``Row N: <reason>`` (N is the line number in
the file, header = 1) and skipped; valid rows are still written.
"""

from __future__ import annotations

import csv
import io
import json
import logging
from collections.abc import Callable, Iterator
from datetime import datetime
from typing import TYPE_CHECKING, Any

from stallsync.application.dtos.food import FoodDailySaleDraft, PaymentBreakdown
from stallsync.application.dtos.imports import ImportReport
from stallsync.application.dtos.stock import StockItemDraft
from stallsync.application.services.access_scope import UNRESTRICTED
from stallsync.domain.enums import FoodExpenseCategory, ImportDataType, MealType
from stallsync.domain.exceptions import StallSyncException, ValidationException
from stallsync.shared.telemetry.tracing import add_span_attributes, traced
from stallsync.shared.utils.datetime import date_key, ensure_utc, parse_date_key

if TYPE_CHECKING:
    from stallsync.application.dtos.user import Actor
    from stallsync.application.interfaces.repositories import (
        IFoodImportRepository,
        ISaleImportRepository,
        ISiteRepository,
        IStallRepository,
    )
    from stallsync.application.interfaces.services import IStockLedger

logger = logging.getLogger(__name__)

_SITE = "Site Name"
_STALL = "Stall Name"
_SITE_ID = "Site ID"
_STALL_ID = "Stall ID"


class RowError(ValueError):
    """A row that cannot be imported; the message is shown to the user."""


def _cell(row: dict[str, Any], *names: str) -> str:
    """First non-empty value among the given column names, stripped."""
    for name in names:
        value = row.get(name)
        if value is not None and str(value).strip():
            return str(value).strip()
    return ""


def _number(row: dict[str, Any], *names: str, default: float | None = None) -> float:
    raw = _cell(row, *names)
    if not raw:
        if default is None:
            raise RowError(f"'{names[0]}' is required")
        return default
    try:
        value = float(raw.replace(",", ""))
    except ValueError as e:
        raise RowError(f"'{names[0]}' must be a number, got {raw!r}") from e
    if value < 0:
        raise RowError(f"'{names[0]}' must not be negative")
    return value


def _integer(row: dict[str, Any], *names: str, default: int | None = None) -> int:
    value = _number(row, *names, default=None if default is None else float(default))
    if not value.is_integer():
        raise RowError(f"'{names[0]}' must be a whole number")
    return int(value)


def _day(row: dict[str, Any], name: str) -> str:
    raw = _cell(row, name)
    if not raw:
        raise RowError(f"'{name}' is required")
    try:
        return date_key(parse_date_key(raw))
    except ValueError as e:
        raise RowError(f"'{name}' must be a date in YYYY-MM-DD format, got {raw!r}") from e


def _timestamp(row: dict[str, Any], name: str) -> datetime:
    raw = _cell(row, name)
    if not raw:
        raise RowError(f"'{name}' is required")
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError as e:
        raise RowError(f"'{name}' must be an ISO 8601 date and time, got {raw!r}") from e
    return ensure_utc(parsed)


def _sold_items(raw: str) -> list[dict[str, Any]]:
    """Parse the items column: a JSON list of sold lines."""
    try:
        lines = json.loads(raw)
    except json.JSONDecodeError as e:
        raise RowError(f"Items JSON is not valid JSON: {e.msg}") from e
    if not isinstance(lines, list) or not lines:
        raise RowError("Items JSON must be a non-empty list")
    sold = []
    for index, line in enumerate(lines):
        if not isinstance(line, dict):
            raise RowError(f"Items JSON entry {index} must be an object")
        item_id, name = line.get("itemId"), line.get("name")
        numbers = [line.get(k) for k in ("quantity", "pricePerUnit", "totalPrice")]
        if not isinstance(item_id, str) or not isinstance(name, str) or not all(
            isinstance(n, (int, float)) and not isinstance(n, bool) for n in numbers
        ):
            raise RowError(
                f"Items JSON entry {index} needs itemId, name, quantity, pricePerUnit and totalPrice"
            )
        quantity, price, total = numbers
        sold.append({
            "itemId": item_id,
            "name": name,
            "quantity": int(quantity),
            "pricePerUnit": float(price),
            "totalPrice": float(total),
        })
    return sold


def _expense_category(raw: str) -> str:
    for category in FoodExpenseCategory:
        if category.value.lower() == raw.lower():
            return category.value
    raise RowError(f"Unknown expense category {raw!r}")


def _meal(raw: str) -> MealType:
    try:
        return MealType(raw.lower())
    except ValueError as e:
        raise RowError(f"Unknown meal type {raw!r}") from e


def parse_csv(csv_data: str) -> Iterator[tuple[int, dict[str, Any]]]:
    """Yield (line number, row) pairs; header names are stripped.

    Raises:
        ValidationException: The data has no header row.
    """
    reader = csv.DictReader(io.StringIO(csv_data.lstrip("\ufeff")))
    if not reader.fieldnames:
        raise ValidationException("CSV data has no header row", "csvData")
    reader.fieldnames = [name.strip() for name in reader.fieldnames]
    for row in reader:
        if not any((v or "").strip() for v in row.values() if isinstance(v, str)):
            continue
        yield reader.line_num, row


def rows_from_table(values: list[list[Any]]) -> list[tuple[int, dict[str, Any]]]:
    """(row number, row) pairs from a grid whose first row is the header.

    Spreadsheet APIs drop trailing empty cells, so short rows are padded.
    """
    header = [str(h).strip() for h in values[0]]
    rows = []
    for number, cells in enumerate(values[1:], start=2):
        if not any(str(c).strip() for c in cells):
            continue
        padded = [str(c) for c in cells] + [""] * (len(header) - len(cells))
        rows.append((number, dict(zip(header, padded))))
    return rows


class _Directory:
    """Site and stall lookup (by name or id) for one import."""

    def __init__(self, sites: dict[str, str], stalls: dict[tuple[str, str], str]) -> None:
        self._sites = sites
        self._stalls = stalls
        self._site_ids = set(sites.values())
        self._stall_sites = {stall_id: site_id for (site_id, _), stall_id in stalls.items()}

    def site(self, row: dict[str, Any]) -> str:
        if site_id := _cell(row, _SITE_ID):
            if site_id not in self._site_ids:
                raise RowError(f"Unknown site ID {site_id!r}")
            return site_id
        name = _cell(row, _SITE)
        if not name:
            raise RowError(f"'{_SITE}' is required")
        site_id = self._sites.get(name.lower())
        if site_id is None:
            raise RowError(f"Unknown site {name!r}")
        return site_id

    def stall(self, row: dict[str, Any], site_id: str, *, required: bool) -> str | None:
        if stall_id := _cell(row, _STALL_ID):
            if self._stall_sites.get(stall_id) != site_id:
                raise RowError(f"Unknown stall ID {stall_id!r} at site {site_id!r}")
            return stall_id
        name = _cell(row, _STALL)
        if not name:
            if required:
                raise RowError(f"'{_STALL}' is required")
            return None
        stall_id = self._stalls.get((site_id, name.lower()))
        if stall_id is None:
            raise RowError(f"Unknown stall {name!r} at site {_cell(row, _SITE)!r}")
        return stall_id


def _required_name(row: dict[str, Any], columns: tuple[str, ...]) -> str:
    name = _cell(row, *columns)
    if not name:
        raise RowError("'Name' is required")
    return name


# (draft attribute, stored field, accepted columns, reader)
_STOCK_COLUMNS: tuple[tuple[str, str, tuple[str, ...], Callable[..., Any]], ...] = (
    ("name", "name", ("Name",), _required_name),
    ("category", "category", ("Category",), lambda row, cols: _cell(row, *cols) or "Uncategorized"),
    ("unit", "unit", ("Unit",), lambda row, cols: _cell(row, *cols) or "pcs"),
    ("price", "price", ("Selling Price", "Selling Price (₹)", "Price"),
     lambda row, cols: _number(row, *cols, default=0.0)),
    ("cost_price", "costPrice", ("Cost Price", "Cost Price (₹)"),
     lambda row, cols: _number(row, *cols, default=0.0)),
    ("low_stock_threshold", "lowStockThreshold", ("Low Stock Threshold",),
     lambda row, cols: _integer(row, *cols, default=0)),
    ("description", "description", ("Description",), lambda row, cols: _cell(row, *cols) or None),
    ("image_url", "imageUrl", ("Image URL",), lambda row, cols: _cell(row, *cols) or None),
)


def _stock_draft_fields(row: dict[str, Any]) -> dict[str, Any]:
    """Every stock field for a new item, defaults for missing columns."""
    return {attr: read(row, cols) for attr, _, cols, read in _STOCK_COLUMNS}


def _stock_changes(row: dict[str, Any]) -> dict[str, Any]:
    """Stored fields for the stock columns present in row (an update by ID)."""
    return {
        stored: read(row, cols)
        for _, stored, cols, read in _STOCK_COLUMNS
        if any(col in row for col in cols)
    }


class CsvImportUseCase:
    """Imports one CSV file of a given data type on behalf of an admin."""

    def __init__(
        self,
        sites: ISiteRepository,
        stalls: IStallRepository,
        ledger: IStockLedger,
        food: IFoodImportRepository,
        sales: ISaleImportRepository,
        batch_size: int = 400,
    ) -> None:
        self._sites = sites
        self._stalls = stalls
        self._ledger = ledger
        self._food = food
        self._sales = sales
        self._batch_size = batch_size

    async def _directory(self) -> _Directory:
        sites = {s.name.strip().lower(): s.id for s in await self._sites.list()}
        stalls = {(s.site_id, s.name.strip().lower()): s.id for s in await self._stalls.list([])}
        return _Directory(sites, stalls)

    @traced("csv_import.run")
    async def run(self, actor: Actor, data_type: ImportDataType, csv_data: str) -> ImportReport:
        """Import csv_data; per-row problems end up in ``report.errors``.

        Raises:
            ValidationException: The data is empty or has no header row.
        """
        if not csv_data.strip():
            raise ValidationException("CSV data is empty", "csvData")
        return await self.import_rows(actor, data_type, list(parse_csv(csv_data)), source="CSV")

    async def import_rows(
        self,
        actor: Actor,
        data_type: ImportDataType,
        rows: list[tuple[int, dict[str, Any]]],
        source: str = "CSV",
    ) -> ImportReport:
        """Import already-parsed (line number, row) pairs keyed by column header."""
        directory = await self._directory()
        report = ImportReport(data_type=data_type.value, rows_processed=len(rows))
        if data_type == ImportDataType.STOCK:
            await self._import_stock(actor, rows, directory, report, notes=f"{source} import")
        elif data_type == ImportDataType.SALES:
            await self._import_sales(rows, directory, report)
        elif data_type == ImportDataType.FOOD_EXPENSES:
            await self._import_food_expenses(actor, rows, directory, report)
        else:
            await self._import_food_sales(actor, rows, directory, report)
        add_span_attributes(
            import_rows=report.rows_processed,
            import_written=report.records_written,
            import_errors=len(report.errors),
        )
        logger.info(
            "%s import of %s by %s: %d rows, %d written, %d errors",
            source, data_type.value, actor.uid, report.rows_processed,
            report.records_written, len(report.errors),
        )
        return report

    async def _import_stock(
        self,
        actor: Actor,
        rows: list[tuple[int, dict[str, Any]]],
        directory: _Directory,
        report: ImportReport,
        notes: str,
    ) -> None:
        # Each row goes through the ledger so opening quantities and changes are logged.
        for line, row in rows:
            try:
                site_id = directory.site(row)
                stall_id = directory.stall(row, site_id, required=False)
                if item_id := _cell(row, "ID"):
                    quantity = _integer(row, "Quantity") if _cell(row, "Quantity") else None
                    changes = {**_stock_changes(row), "siteId": site_id}
                    if _STALL in row or _STALL_ID in row:
                        changes["stallId"] = stall_id
                    await self._ledger.update_item(
                        UNRESTRICTED, actor, item_id, changes, new_quantity=quantity, notes=notes
                    )
                else:
                    draft = StockItemDraft(
                        site_id=site_id,
                        stall_id=stall_id,
                        quantity=_integer(row, "Quantity", default=0),
                        **_stock_draft_fields(row),
                    )
                    await self._ledger.create_item(UNRESTRICTED, actor, draft, notes=notes)
            except RowError as e:
                report.add_error(line, str(e))
                continue
            except StallSyncException as e:
                report.add_error(line, e.message)
                continue
            report.records_written += 1

    async def _import_sales(
        self,
        rows: list[tuple[int, dict[str, Any]]],
        directory: _Directory,
        report: ImportReport,
    ) -> None:
        # A "Transaction ID" keeps an exported sale's id; ids already stored are rejected.
        records: list[tuple[str | None, dict[str, Any]]] = []
        seen: set[str] = set()
        for line, row in rows:
            try:
                site_id = directory.site(row)
                stall_id = directory.stall(row, site_id, required=True)
                staff_id = _cell(row, "Staff ID")
                if not staff_id:
                    raise RowError("'Staff ID' is required")
                raw_items = _cell(row, "Items (JSON)", "Items Sold (JSON)")
                if not raw_items:
                    raise RowError("'Items (JSON)' is required")
                fields = {
                    "transactionDate": _timestamp(row, "Date"),
                    "staffId": staff_id,
                    "staffName": _cell(row, "Staff Name") or "",
                    "totalAmount": _number(row, "Total Amount"),
                    "items": _sold_items(raw_items),
                    "siteId": site_id,
                    "stallId": stall_id,
                }
                sale_id = _cell(row, "Transaction ID") or None
                if sale_id and (sale_id in seen or await self._sales.get(sale_id) is not None):
                    raise RowError(f"Sale {sale_id!r} already exists")
            except RowError as e:
                report.add_error(line, str(e))
                continue
            if sale_id:
                seen.add(sale_id)
            records.append((sale_id, fields))
        if records:
            report.records_written = await self._sales.import_sales(records, self._batch_size)

    async def _import_food_expenses(
        self,
        actor: Actor,
        rows: list[tuple[int, dict[str, Any]]],
        directory: _Directory,
        report: ImportReport,
    ) -> None:
        records: list[tuple[str, str, dict[str, Any]]] = []
        for line, row in rows:
            try:
                site_id = directory.site(row)
                stall_id = directory.stall(row, site_id, required=True)
                quantity = _number(row, "Quantity", default=1.0)
                if quantity <= 0:
                    raise RowError("'Quantity' must be greater than zero")
                price_per_unit = _number(row, "Price Per Unit", default=0.0)
                total_cost = _number(row, "Total Cost", default=round(quantity * price_per_unit, 2))
                records.append((site_id, stall_id, {
                    "itemName": _cell(row, "Item Name") or _cell(row, "Category"),
                    "category": _expense_category(_cell(row, "Category") or "Miscellaneous"),
                    "quantity": quantity,
                    "unit": _cell(row, "Unit") or "unit",
                    "pricePerUnit": price_per_unit,
                    "totalCost": total_cost,
                    "purchaseDate": _day(row, "Purchase Date"),
                    "vendor": _cell(row, "Vendor") or None,
                    "notes": _cell(row, "Notes") or None,
                }))
            except RowError as e:
                report.add_error(line, str(e))
        if records:
            report.records_written = await self._food.import_expenses(actor, records, self._batch_size)

    async def _import_food_sales(
        self,
        actor: Actor,
        rows: list[tuple[int, dict[str, Any]]],
        directory: _Directory,
        report: ImportReport,
    ) -> None:
        # Rows for the same stall and day are combined into one document.
        grouped: dict[tuple[str, str], dict[str, Any]] = {}
        for line, row in rows:
            try:
                site_id = directory.site(row)
                stall_id = directory.stall(row, site_id, required=True)
                sale_date = _day(row, "Sale Date")
                meal = _meal(_cell(row, "Meal Type") or MealType.LUNCH.value)
                breakdown = PaymentBreakdown(
                    hungerbox=_number(row, "Hungerbox", "Hungerbox Sales", default=0.0),
                    upi=_number(row, "UPI", "UPI Sales", default=0.0),
                    other=_number(row, "Other", "Other Sales", default=0.0),
                )
            except RowError as e:
                report.add_error(line, str(e))
                continue
            entry = grouped.setdefault(
                (sale_date, stall_id),
                {"site_id": site_id, "meals": {}, "notes": []},
            )
            previous = entry["meals"].get(meal)
            if previous is not None:
                breakdown = PaymentBreakdown(
                    hungerbox=previous.hungerbox + breakdown.hungerbox,
                    upi=previous.upi + breakdown.upi,
                    other=previous.other + breakdown.other,
                )
            entry["meals"][meal] = breakdown
            if note := _cell(row, "Notes"):
                entry["notes"].append(note)
        drafts = [
            FoodDailySaleDraft(
                site_id=entry["site_id"],
                stall_id=stall_id,
                sale_date=sale_date,
                meals=entry["meals"],
                notes="; ".join(entry["notes"]) or None,
            )
            for (sale_date, stall_id), entry in grouped.items()
        ]
        if drafts:
            report.records_written = await self._food.import_daily_sales(actor, drafts, self._batch_size)
