"""Row layouts for stock and sales exports (CSV download and Google Sheets).

The column names match what the CSV and Sheets imports read back, so an
exported stock table re-imported by ID updates the same items.
"""

from __future__ import annotations

import csv
import io
import json
from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Any

from stallsync.application.dtos.sale import SaleResult
from stallsync.application.dtos.stock import StockItemResult
from stallsync.shared.utils.datetime import ensure_utc

STOCK_EXPORT_HEADERS = [
    "ID", "Name", "Category", "Quantity", "Unit", "Price", "Cost Price",
    "Low Stock Threshold", "Description", "Image URL", "Site ID", "Stall ID", "Last Updated",
]

SALES_EXPORT_HEADERS = [
    "Transaction ID", "Date", "Staff Name", "Staff ID", "Total Amount", "Site ID", "Stall ID",
    "Number of Item Types", "Total Quantity of Items", "Items (JSON)",
]


def _timestamp(value: datetime | None) -> str:
    return ensure_utc(value).isoformat() if value else ""


def stock_table(items: Iterable[StockItemResult]) -> list[list[Any]]:
    """Header row plus one row per item, ordered by name."""
    rows: list[list[Any]] = [STOCK_EXPORT_HEADERS]
    for item in sorted(items, key=lambda i: (i.name.lower(), i.id)):
        rows.append([
            item.id,
            item.name,
            item.category,
            item.quantity,
            item.unit,
            item.price,
            item.cost_price,
            item.low_stock_threshold,
            item.description or "",
            item.image_url or "",
            item.site_id,
            item.stall_id or "",
            _timestamp(item.last_updated),
        ])
    return rows


def sales_table(sales: Iterable[SaleResult]) -> list[list[Any]]:
    """Header row plus one row per sale, in the order given."""
    rows: list[list[Any]] = [SALES_EXPORT_HEADERS]
    for sale in sales:
        lines = [
            {
                "itemId": line.item_id,
                "name": line.name,
                "quantity": line.quantity,
                "pricePerUnit": line.price_per_unit,
                "totalPrice": line.total_price,
            }
            for line in sale.items
        ]
        rows.append([
            sale.id,
            _timestamp(sale.transaction_date),
            sale.staff_name or "N/A",
            sale.staff_id,
            f"{sale.total_amount:.2f}",
            sale.site_id,
            sale.stall_id,
            len(sale.items),
            sum(line.quantity for line in sale.items),
            json.dumps(lines),
        ])
    return rows


def to_csv(table: Sequence[Sequence[Any]]) -> str:
    buffer = io.StringIO()
    csv.writer(buffer, lineterminator="\n").writerows(table)
    return buffer.getvalue()
