"""Firestore-backed food stall expenses, daily sales and activity log.

Every write is committed together with its foodStallActivityLogs entry.
Daily sales live at ``foodSaleTransactions/{YYYY-MM-DD}_{stallId}`` so a
second write for the same stall and day updates the existing document.
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from collections.abc import Sequence
from typing import Any

from stallsync.application.dtos.food import (
    FoodActivityLogResult,
    FoodDailySaleDraft,
    FoodDailySaleResult,
    FoodExpenseResult,
    PaymentBreakdown,
)
from stallsync.application.dtos.user import Actor
from stallsync.domain.enums import FoodStallActivityType, MealType
from stallsync.domain.exceptions import ResourceNotFoundException
from stallsync.infrastructure.firebase._rest_client import (
    DocumentSnapshot,
    FirestoreRESTClient,
    Transaction,
)
from stallsync.infrastructure.firebase.collections import (
    COLLECTION_FOOD_ITEM_EXPENSES,
    COLLECTION_FOOD_SALE_TRANSACTIONS,
    COLLECTION_FOOD_STALL_ACTIVITY_LOGS,
)
from stallsync.infrastructure.firebase.repositories._query import apply_filters, fetch_newest
from stallsync.infrastructure.firebase.repositories.activity_logs import (
    food_activity_entry,
    food_activity_from_snapshot,
)
from stallsync.shared.utils.datetime import utc_now
from stallsync.shared.utils.generators import daily_document_id, generate_cuid

logger = logging.getLogger(__name__)

EXPENSE_FIELDS = frozenset(
    {"itemName", "category", "quantity", "unit", "pricePerUnit", "totalCost", "purchaseDate", "vendor", "notes"}
)

MAX_IMPORT_BATCH = 500


def expense_from_snapshot(snap: DocumentSnapshot) -> FoodExpenseResult:
    d = snap.to_dict()
    return FoodExpenseResult(
        id=snap.id,
        site_id=d.get("siteId", ""),
        stall_id=d.get("stallId", ""),
        item_name=d.get("itemName", ""),
        category=d.get("category", ""),
        quantity=float(d.get("quantity") or 0),
        unit=d.get("unit", ""),
        price_per_unit=float(d.get("pricePerUnit") or 0),
        total_cost=float(d.get("totalCost") or 0),
        purchase_date=d.get("purchaseDate", ""),
        vendor=d.get("vendor"),
        notes=d.get("notes"),
        recorded_by_uid=d.get("recordedByUid", ""),
        recorded_by_name=d.get("recordedByName"),
        created_at=d.get("createdAt"),
        updated_at=d.get("updatedAt"),
    )


def _breakdown(raw: dict | None) -> PaymentBreakdown:
    raw = raw or {}
    return PaymentBreakdown(
        hungerbox=float(raw.get("hungerbox") or 0),
        upi=float(raw.get("upi") or 0),
        other=float(raw.get("other") or 0),
    )


def daily_sale_from_snapshot(snap: DocumentSnapshot) -> FoodDailySaleResult:
    d = snap.to_dict()
    return FoodDailySaleResult(
        id=snap.id,
        sale_date=d.get("saleDate", ""),
        site_id=d.get("siteId", ""),
        stall_id=d.get("stallId", ""),
        meals={meal: _breakdown(d.get(meal.value)) for meal in MealType},
        total_amount=float(d.get("totalAmount") or 0),
        notes=d.get("notes"),
        recorded_by_uid=d.get("recordedByUid", ""),
        recorded_by_name=d.get("recordedByName"),
        created_at=d.get("createdAt"),
        updated_at=d.get("updatedAt"),
    )


def merge_daily_sale(
    existing: dict[str, Any] | None,
    meals: dict[MealType, PaymentBreakdown],
) -> dict[str, Any]:
    """Meal breakdowns after overlaying meals on existing; totalAmount recomputed."""
    merged = {m: _breakdown((existing or {}).get(m.value)) for m in MealType}
    merged.update(meals)
    out: dict[str, Any] = {m.value: b.to_dict() for m, b in merged.items()}
    out["totalAmount"] = round(sum(b.total for b in merged.values()), 2)
    return out


class FirestoreFoodRepository:
    def __init__(self, client: FirestoreRESTClient) -> None:
        self._client = client
        self._expenses = client.collection(COLLECTION_FOOD_ITEM_EXPENSES)
        self._sales = client.collection(COLLECTION_FOOD_SALE_TRANSACTIONS)
        self._logs = client.collection(COLLECTION_FOOD_STALL_ACTIVITY_LOGS)

    # Expenses

    async def get_expense(self, expense_id: str) -> FoodExpenseResult | None:
        doc = await self._expenses.document(expense_id).get()
        return expense_from_snapshot(doc) if doc else None

    async def list_expenses(
        self,
        filters: list[tuple[str, str, Any]],
        start_date: str | None = None,
        end_date: str | None = None,
        category: str | None = None,
        limit: int = 500,
    ) -> list[FoodExpenseResult]:
        query = apply_filters(self._expenses, filters)
        if start_date:
            query = query.where("purchaseDate", ">=", start_date)
        if end_date:
            query = query.where("purchaseDate", "<=", end_date)
        if category:
            query = query.where("category", "==", category)
        return [expense_from_snapshot(s) for s in await fetch_newest(query, "purchaseDate", limit)]

    async def create_expense(
        self, actor: Actor, site_id: str, stall_id: str, fields: dict[str, Any]
    ) -> FoodExpenseResult:
        now = utc_now()
        ref = self._expenses.document()
        data = {
            **{k: v for k, v in fields.items() if k in EXPENSE_FIELDS},
            "siteId": site_id,
            "stallId": stall_id,
            "recordedByUid": actor.uid,
            "recordedByName": actor.name,
            "createdAt": now,
            "updatedAt": now,
        }
        batch = self._client.batch()
        batch.create(ref, data)
        batch.create(
            self._logs.document(),
            food_activity_entry(
                actor,
                FoodStallActivityType.EXPENSE_RECORDED,
                site_id,
                stall_id,
                ref.id,
                {
                    "expenseCategory": data.get("category"),
                    "totalCost": data.get("totalCost"),
                    "purchaseDate": data.get("purchaseDate"),
                },
            ),
        )
        await batch.commit()
        return expense_from_snapshot(DocumentSnapshot(ref.id, data))

    async def update_expense(
        self, actor: Actor, expense_id: str, changes: dict[str, Any]
    ) -> FoodExpenseResult:
        ref = self._expenses.document(expense_id)
        current = await ref.get()
        if not current:
            raise ResourceNotFoundException("food expense", expense_id)
        fields = {k: v for k, v in changes.items() if k in EXPENSE_FIELDS}
        fields["updatedAt"] = utc_now()
        data = current.to_dict()
        batch = self._client.batch()
        batch.update(ref, fields)
        batch.create(
            self._logs.document(),
            food_activity_entry(
                actor,
                FoodStallActivityType.EXPENSE_UPDATED,
                data.get("siteId", ""),
                data.get("stallId", ""),
                expense_id,
                {"updatedFields": sorted(k for k in fields if k != "updatedAt")},
            ),
        )
        await batch.commit()
        return expense_from_snapshot(DocumentSnapshot(expense_id, {**data, **fields}))

    async def delete_expense(self, actor: Actor, expense_id: str) -> None:
        ref = self._expenses.document(expense_id)
        current = await ref.get()
        if not current:
            raise ResourceNotFoundException("food expense", expense_id)
        data = current.to_dict()
        batch = self._client.batch()
        batch.create(
            self._logs.document(),
            food_activity_entry(
                actor,
                FoodStallActivityType.EXPENSE_DELETED,
                data.get("siteId", ""),
                data.get("stallId", ""),
                expense_id,
                {"expenseCategory": data.get("category"), "totalCost": data.get("totalCost")},
            ),
        )
        batch.delete(ref)
        await batch.commit()

    # Daily sales

    async def get_daily_sale(self, sale_id: str) -> FoodDailySaleResult | None:
        doc = await self._sales.document(sale_id).get()
        return daily_sale_from_snapshot(doc) if doc else None

    async def list_daily_sales(
        self,
        filters: list[tuple[str, str, Any]],
        start_date: str | None = None,
        end_date: str | None = None,
        limit: int = 400,
    ) -> list[FoodDailySaleResult]:
        query = apply_filters(self._sales, filters)
        if start_date:
            query = query.where("saleDate", ">=", start_date)
        if end_date:
            query = query.where("saleDate", "<=", end_date)
        return [daily_sale_from_snapshot(s) for s in await fetch_newest(query, "saleDate", limit)]

    async def upsert_daily_sale(
        self,
        actor: Actor,
        site_id: str,
        stall_id: str,
        sale_date: str,
        meals: dict[MealType, PaymentBreakdown],
        notes: str | None = None,
        *,
        max_attempts: int = 5,
    ) -> FoodDailySaleResult:
        """Create or update the stall's sales for one day.

        Meals not in ``meals`` keep their stored amounts; totalAmount is
        recomputed from all four meals.
        """
        ref = self._sales.document(daily_document_id(sale_date, stall_id))

        async def _txn(txn: Transaction) -> dict[str, Any]:
            existing = await txn.get(ref)
            current = existing.to_dict() if existing else None
            now = utc_now()
            data: dict[str, Any] = {
                **(current or {}),
                **merge_daily_sale(current, meals),
                "saleDate": sale_date,
                "siteId": site_id,
                "stallId": stall_id,
                "recordedByUid": actor.uid,
                "recordedByName": actor.name,
                "updatedAt": now,
            }
            data.setdefault("createdAt", now)
            if notes is not None:
                data["notes"] = notes
            txn.set(ref, data)
            txn.create(
                self._logs.document(),
                food_activity_entry(
                    actor,
                    FoodStallActivityType.SALE_RECORDED_OR_UPDATED,
                    site_id,
                    stall_id,
                    ref.id,
                    {"saleDate": sale_date, "totalAmount": data["totalAmount"]},
                ),
            )
            return data

        data = await self._client.run_transaction(_txn, max_attempts=max_attempts)
        logger.info("Daily sales %s saved: total=%s", ref.id, data["totalAmount"])
        return daily_sale_from_snapshot(DocumentSnapshot(ref.id, data))

    # Bulk import

    async def _log_bulk_import(
        self,
        actor: Actor,
        activity: FoodStallActivityType,
        per_stall: Counter[tuple[str, str]],
        noun: str,
    ) -> None:
        """One activity entry per (site, stall) summarising an import."""
        if not per_stall:
            return
        import_id = f"csv-import-{generate_cuid()}"
        entries = list(per_stall.items())
        for start in range(0, len(entries), MAX_IMPORT_BATCH):
            batch = self._client.batch()
            for (site_id, stall_id), count in entries[start:start + MAX_IMPORT_BATCH]:
                batch.create(
                    self._logs.document(),
                    food_activity_entry(
                        actor,
                        activity,
                        site_id,
                        stall_id,
                        import_id,
                        {
                            "processedCount": count,
                            "notes": f"Processed a bulk import of {count} {noun} records from a CSV file.",
                        },
                    ),
                )
            await batch.commit()

    async def import_expenses(
        self,
        actor: Actor,
        records: Sequence[tuple[str, str, dict[str, Any]]],
        batch_size: int = 400,
    ) -> int:
        """Create one expense per (site_id, stall_id, fields) record, batch_size per commit.

        Returns the number of expenses written. Batches already committed
        stay committed when a later one fails.
        """
        batch_size = min(batch_size, MAX_IMPORT_BATCH)
        written = 0
        per_stall: Counter[tuple[str, str]] = Counter()
        for start in range(0, len(records), batch_size):
            batch = self._client.batch()
            now = utc_now()
            chunk = records[start:start + batch_size]
            for site_id, stall_id, fields in chunk:
                batch.create(self._expenses.document(), {
                    **{k: v for k, v in fields.items() if k in EXPENSE_FIELDS},
                    "siteId": site_id,
                    "stallId": stall_id,
                    "recordedByUid": actor.uid,
                    "recordedByName": actor.name,
                    "createdAt": now,
                    "updatedAt": now,
                })
            await batch.commit()
            written += len(chunk)
            per_stall.update((site_id, stall_id) for site_id, stall_id, _ in chunk)
            logger.info("Committed %d imported food expenses", len(chunk))
        await self._log_bulk_import(actor, FoodStallActivityType.EXPENSE_BULK_IMPORTED, per_stall, "expense")
        return written

    async def import_daily_sales(
        self,
        actor: Actor,
        drafts: Sequence[FoodDailySaleDraft],
        batch_size: int = 400,
    ) -> int:
        """Merge each draft into its stall/day document, batch_size per commit.

        Drafts must already be unique per stall and day. Meals a draft
        does not mention keep their stored amounts.
        """
        batch_size = min(batch_size, MAX_IMPORT_BATCH)
        written = 0
        per_stall: Counter[tuple[str, str]] = Counter()
        for start in range(0, len(drafts), batch_size):
            chunk = drafts[start:start + batch_size]
            refs = [self._sales.document(daily_document_id(d.sale_date, d.stall_id)) for d in chunk]
            existing = await asyncio.gather(*(ref.get() for ref in refs))
            batch = self._client.batch()
            now = utc_now()
            for draft, ref, snap in zip(chunk, refs, existing, strict=True):
                current = snap.to_dict() if snap else None
                data: dict[str, Any] = {
                    **(current or {}),
                    **merge_daily_sale(current, draft.meals),
                    "saleDate": draft.sale_date,
                    "siteId": draft.site_id,
                    "stallId": draft.stall_id,
                    "recordedByUid": actor.uid,
                    "recordedByName": actor.name,
                    "updatedAt": now,
                }
                data.setdefault("createdAt", now)
                if draft.notes:
                    data["notes"] = draft.notes
                batch.set(ref, data)
            await batch.commit()
            written += len(chunk)
            per_stall.update((d.site_id, d.stall_id) for d in chunk)
            logger.info("Committed %d imported daily sales", len(chunk))
        await self._log_bulk_import(actor, FoodStallActivityType.SALE_BULK_IMPORTED, per_stall, "sales")
        return written

    # Activity log

    async def list_activity(
        self,
        filters: list[tuple[str, str, Any]],
        limit: int = 200,
    ) -> list[FoodActivityLogResult]:
        snaps = await fetch_newest(apply_filters(self._logs, filters), "timestamp", limit)
        return [food_activity_from_snapshot(s) for s in snaps]
