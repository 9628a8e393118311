"""Firestore-backed sales transaction reads and admin soft delete."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from stallsync.application.dtos.sale import SaleResult, SoldItem
from stallsync.application.dtos.user import Actor
from stallsync.domain.exceptions import ResourceConflictException, ResourceNotFoundException
from stallsync.infrastructure.firebase._rest_client import DocumentSnapshot, FirestoreRESTClient
from stallsync.infrastructure.firebase.collections import COLLECTION_SALES_TRANSACTIONS
from stallsync.infrastructure.firebase.repositories._query import apply_filters, fetch_newest
from stallsync.infrastructure.firebase.repositories.food_repo_firestore import MAX_IMPORT_BATCH
from stallsync.shared.utils.datetime import utc_now

logger = logging.getLogger(__name__)


def sale_from_snapshot(snap: DocumentSnapshot) -> SaleResult:
    d = snap.to_dict()
    return SaleResult(
        id=snap.id,
        site_id=d.get("siteId", ""),
        stall_id=d.get("stallId", ""),
        items=[
            SoldItem(
                item_id=i.get("itemId", ""),
                name=i.get("name", ""),
                quantity=int(i.get("quantity") or 0),
                price_per_unit=float(i.get("pricePerUnit") or 0),
                total_price=float(i.get("totalPrice") or 0),
            )
            for i in d.get("items") or []
        ],
        total_amount=float(d.get("totalAmount") or 0),
        transaction_date=d.get("transactionDate"),
        staff_id=d.get("staffId", ""),
        staff_name=d.get("staffName", ""),
        is_deleted=bool(d.get("isDeleted", False)),
        deleted_by=d.get("deletedBy"),
        deleted_at=d.get("deletedAt"),
        deletion_justification=d.get("deletionJustification"),
    )


class FirestoreSaleRepository:
    def __init__(self, client: FirestoreRESTClient) -> None:
        self._client = client
        self._coll = client.collection(COLLECTION_SALES_TRANSACTIONS)

    async def get(self, sale_id: str) -> SaleResult | None:
        doc = await self._coll.document(sale_id).get()
        return sale_from_snapshot(doc) if doc else None

    async def list(
        self,
        filters: list[tuple[str, str, Any]],
        start: datetime | None = None,
        end: datetime | None = None,
        include_deleted: bool = False,
        limit: int | None = 200,
    ) -> list[SaleResult]:
        """Sales newest first; soft-deleted ones only when include_deleted. No limit when None."""
        query = apply_filters(self._coll, filters)
        if start is not None:
            query = query.where("transactionDate", ">=", start)
        if end is not None:
            query = query.where("transactionDate", "<", end)
        if not include_deleted:
            query = query.where("isDeleted", "==", False)
        return [sale_from_snapshot(s) for s in await fetch_newest(query, "transactionDate", limit)]

    async def soft_delete(self, sale_id: str, actor: Actor, justification: str) -> SaleResult:
        """Mark a sale deleted; stock is not restored."""
        ref = self._coll.document(sale_id)
        doc = await ref.get()
        if not doc:
            raise ResourceNotFoundException("sale", sale_id)
        if doc.to_dict().get("isDeleted"):
            raise ResourceConflictException("Sale is already deleted", sale_id=sale_id)
        changes = {
            "isDeleted": True,
            "deletedBy": actor.uid,
            "deletedAt": utc_now(),
            "deletionJustification": justification,
        }
        await ref.update(changes)
        return sale_from_snapshot(DocumentSnapshot(sale_id, {**doc.to_dict(), **changes}))

    async def import_sales(
        self,
        records: Sequence[tuple[str | None, dict[str, Any]]],
        batch_size: int = 400,
    ) -> int:
        """Create one sale per (id or None, fields) record, batch_size per commit.

        Imported sales are history only: stock quantities are not changed and
        no movement is logged.
        """
        batch_size = min(batch_size, MAX_IMPORT_BATCH)
        written = 0
        for start in range(0, len(records), batch_size):
            chunk = records[start:start + batch_size]
            batch = self._client.batch()
            for sale_id, fields in chunk:
                batch.create(self._coll.document(sale_id), {**fields, "isDeleted": False})
            await batch.commit()
            written += len(chunk)
            logger.info("Committed %d imported sales", len(chunk))
        return written
