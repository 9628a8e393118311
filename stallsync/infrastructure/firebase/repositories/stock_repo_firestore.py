"""Firestore-backed stock item reads and metadata edits.

Quantity changes never go through this repository; they are made by the
stock ledger so every change has a movement log entry.
"""

from __future__ import annotations

from typing import Any

from stallsync.application.dtos.stock import StockItemResult, StockMovementResult
from stallsync.domain.enums import StockMovementType
from stallsync.domain.exceptions import ResourceNotFoundException, ValidationException
from stallsync.infrastructure.exceptions import DocumentMissingError
from stallsync.infrastructure.firebase._rest_client import DocumentSnapshot, FirestoreRESTClient, _Query
from stallsync.infrastructure.firebase.collections import (
    COLLECTION_STOCK_ITEMS,
    COLLECTION_STOCK_MOVEMENT_LOGS,
)
from stallsync.infrastructure.firebase.repositories._query import apply_filters, fetch_newest
from stallsync.shared.utils.datetime import utc_now

METADATA_FIELDS = frozenset(
    {"name", "category", "description", "unit", "price", "costPrice", "lowStockThreshold", "imageUrl"}
)


def stock_item_from_snapshot(snap: DocumentSnapshot) -> StockItemResult:
    d = snap.to_dict()
    return StockItemResult(
        id=snap.id,
        site_id=d.get("siteId", ""),
        stall_id=d.get("stallId") or None,
        name=d.get("name", ""),
        category=d.get("category", ""),
        quantity=int(d.get("quantity") or 0),
        unit=d.get("unit", ""),
        price=float(d.get("price") or 0),
        cost_price=float(d.get("costPrice") or 0),
        low_stock_threshold=int(d.get("lowStockThreshold") or 0),
        description=d.get("description"),
        image_url=d.get("imageUrl"),
        original_master_item_id=d.get("originalMasterItemId") or None,
        last_updated=d.get("lastUpdated"),
    )


def stock_movement_from_snapshot(snap: DocumentSnapshot) -> StockMovementResult:
    d = snap.to_dict()
    return StockMovementResult(
        id=snap.id,
        stock_item_id=d.get("stockItemId", ""),
        site_id=d.get("siteId", ""),
        stall_id=d.get("stallId"),
        type=StockMovementType(d["type"]),
        quantity_change=int(d.get("quantityChange") or 0),
        quantity_before=int(d.get("quantityBefore") or 0),
        quantity_after=int(d.get("quantityAfter") or 0),
        user_id=d.get("userId", ""),
        user_name=d.get("userName", ""),
        timestamp=d.get("timestamp"),
        notes=d.get("notes"),
        linked_stock_item_id=d.get("linkedStockItemId"),
        master_stock_item_id_for_context=d.get("masterStockItemIdForContext"),
        related_transaction_id=d.get("relatedTransactionId"),
    )


class FirestoreStockRepository:
    def __init__(self, client: FirestoreRESTClient) -> None:
        self._client = client
        self._coll = client.collection(COLLECTION_STOCK_ITEMS)

    async def get(self, item_id: str) -> StockItemResult | None:
        doc = await self._coll.document(item_id).get()
        return stock_item_from_snapshot(doc) if doc else None

    async def list(
        self,
        filters: list[tuple[str, str, Any]],
        category: str | None = None,
    ) -> list[StockItemResult]:
        query = apply_filters(self._coll, filters)
        if category:
            query = query.where("category", "==", category)
        items = [stock_item_from_snapshot(s) async for s in query.stream()]
        return sorted(items, key=lambda i: (i.name.lower(), i.id))

    def scoped_query(self, filters: list[tuple[str, str, Any]]) -> _Query:
        """Query for a live subscription over the items matching filters."""
        return apply_filters(self._coll, filters)

    async def update_metadata(self, item_id: str, changes: dict[str, Any]) -> StockItemResult:
        """Edit descriptive fields; quantity is rejected here."""
        if "quantity" in changes:
            raise ValidationException("Use a stock adjustment to change quantity", "quantity")
        fields = {k: v for k, v in changes.items() if k in METADATA_FIELDS}
        ref = self._coll.document(item_id)
        try:
            await ref.update({**fields, "lastUpdated": utc_now()})
        except DocumentMissingError as e:
            raise ResourceNotFoundException("stock item", item_id) from e
        doc = await ref.get()
        if not doc:
            raise ResourceNotFoundException("stock item", item_id)
        return stock_item_from_snapshot(doc)


class FirestoreStockMovementRepository:
    """Read access to stockMovementLogs (written only by the ledger)."""

    def __init__(self, client: FirestoreRESTClient) -> None:
        self._coll = client.collection(COLLECTION_STOCK_MOVEMENT_LOGS)

    async def list(
        self,
        filters: list[tuple[str, str, Any]],
        stock_item_id: str | None = None,
        movement_type: StockMovementType | None = None,
        limit: int = 200,
    ) -> list[StockMovementResult]:
        query = apply_filters(self._coll, filters)
        if stock_item_id:
            query = query.where("stockItemId", "==", stock_item_id)
        if movement_type:
            query = query.where("type", "==", movement_type.value)
        snaps = await fetch_newest(query, "timestamp", limit)
        return [stock_movement_from_snapshot(s) for s in snaps]
