"""Transactional stock ledger (quantity changes + movement logs).

Every quantity change runs inside one Firestore read-write transaction that
reads the affected items, validates them, and then commits the new
quantities together with one stockMovementLogs entry per change, so
``quantityAfter == quantityBefore + quantityChange`` always holds for a
committed log and no change is ever committed without its log.
Contended transactions (ABORTED) are retried by the REST client.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from stallsync.application.dtos.sale import SaleLine, SaleResult
from stallsync.application.dtos.stock import (
    BatchItemOutcome,
    StockChange,
    StockItemDraft,
    StockMovementResult,
    StockOperationResult,
)
from stallsync.application.dtos.user import Actor
from stallsync.application.services.access_scope import AccessScope
from stallsync.domain.enums import StockMovementType
from stallsync.domain.exceptions import (
    ResourceConflictException,
    ResourceNotFoundException,
    StallSyncException,
    ValidationException,
)
from stallsync.domain.stock import apply_quantity_change, require_positive_quantity
from stallsync.infrastructure.firebase._rest_client import (
    DocumentSnapshot,
    FirestoreRESTClient,
    Transaction,
)
from stallsync.infrastructure.firebase.collections import (
    COLLECTION_SALES_TRANSACTIONS,
    COLLECTION_STALLS,
    COLLECTION_STOCK_ITEMS,
    COLLECTION_STOCK_MOVEMENT_LOGS,
)
from stallsync.infrastructure.firebase.repositories.sale_repo_firestore import sale_from_snapshot
from stallsync.infrastructure.firebase.repositories.stock_repo_firestore import (
    stock_item_from_snapshot,
    stock_movement_from_snapshot,
)
from stallsync.shared.telemetry.tracing import add_span_attributes, traced
from stallsync.shared.utils.datetime import utc_now

logger = logging.getLogger(__name__)

# Copied from the source item when a stall item is created by allocation or transfer.
_COPIED_FIELDS = (
    "name",
    "category",
    "description",
    "unit",
    "price",
    "costPrice",
    "lowStockThreshold",
    "imageUrl",
)


class _LedgerTransaction:
    """Staged item state and log entries for one transaction attempt.

    Reads go straight to the transaction; writes are buffered and flushed
    at the end so every read happens before the first write.
    """

    def __init__(self, client: FirestoreRESTClient, txn: Transaction, actor: Actor) -> None:
        self.txn = txn
        self.actor = actor
        self._items = client.collection(COLLECTION_STOCK_ITEMS)
        self._logs = client.collection(COLLECTION_STOCK_MOVEMENT_LOGS)
        self._stalls = client.collection(COLLECTION_STALLS)
        self._sales = client.collection(COLLECTION_SALES_TRANSACTIONS)
        self._now = utc_now()
        self.items: dict[str, dict[str, Any]] = {}
        self._touched: list[str] = []
        self._created: set[str] = set()
        self._deleted: set[str] = set()
        self._edits: dict[str, dict[str, Any]] = {}
        self._log_writes: list[tuple[Any, dict[str, Any]]] = []
        self._extra_creates: list[tuple[Any, dict[str, Any]]] = []
        self.movements: list[StockMovementResult] = []
        self.sale: SaleResult | None = None

    async def load(self, item_id: str) -> dict[str, Any]:
        if item_id not in self.items:
            snap = await self.txn.get(self._items.document(item_id))
            if snap is None:
                raise ResourceNotFoundException("stock item", item_id)
            self.items[item_id] = snap.to_dict()
        return self.items[item_id]

    async def load_optional(self, item_id: str | None) -> dict[str, Any] | None:
        if not item_id:
            return None
        try:
            return await self.load(item_id)
        except ResourceNotFoundException:
            return None

    async def load_stall(self, stall_id: str) -> dict[str, Any]:
        snap = await self.txn.get(self._stalls.document(stall_id))
        if snap is None:
            raise ResourceNotFoundException("stall", stall_id)
        return snap.to_dict()

    async def find_item(self, filters: Sequence[tuple[str, str, Any]]) -> str | None:
        query = self._items
        for field, op, value in filters:
            query = query.where(field, op, value)
        found = await self.txn.query(query.limit(1))
        if not found:
            return None
        self.items.setdefault(found[0].id, found[0].to_dict())
        return found[0].id

    async def has_items(self, field: str, value: str) -> bool:
        return bool(await self.txn.query(self._items.where(field, "==", value).select().limit(1)))

    def new_item(self, data: dict[str, Any]) -> str:
        ref = self._items.document()
        self.items[ref.id] = {**data, "quantity": 0, "lastUpdated": self._now}
        self._created.add(ref.id)
        self._touch(ref.id)
        return ref.id

    def edit(self, item_id: str, fields: dict[str, Any]) -> None:
        """Stage field edits on a loaded item; written with its quantity on flush."""
        self.items[item_id].update(fields)
        self._edits.setdefault(item_id, {}).update(fields)
        self._touch(item_id)

    def new_sale_id(self) -> str:
        return self._sales.document().id

    def create_sale(self, sale_id: str, data: dict[str, Any]) -> None:
        self._extra_creates.append((self._sales.document(sale_id), data))
        self.sale = sale_from_snapshot(DocumentSnapshot(sale_id, data))

    def _touch(self, item_id: str) -> None:
        if item_id not in self._touched:
            self._touched.append(item_id)

    def change(self, item_id: str, change: StockChange) -> StockMovementResult:
        """Apply one quantity change to a loaded item and stage its log entry."""
        data = self.items[item_id]
        before = int(data.get("quantity") or 0)
        if change.floor_at_zero:
            after = max(0, before + change.delta)
        else:
            after = apply_quantity_change(item_id, before, change.delta)
        data["quantity"] = after
        data["lastUpdated"] = self._now
        self._touch(item_id)
        log = {
            "stockItemId": item_id,
            "siteId": data.get("siteId"),
            "stallId": data.get("stallId"),
            "type": change.movement_type.value,
            "quantityChange": after - before,
            "quantityBefore": before,
            "quantityAfter": after,
            "userId": self.actor.uid,
            "userName": self.actor.name,
            "timestamp": self._now,
            "notes": change.notes,
            "linkedStockItemId": change.linked_item_id,
            "masterStockItemIdForContext": change.master_item_id_for_context,
            "relatedTransactionId": change.related_transaction_id,
        }
        ref = self._logs.document()
        self._log_writes.append((ref, log))
        movement = stock_movement_from_snapshot(DocumentSnapshot(ref.id, log))
        self.movements.append(movement)
        return movement

    def delete(self, item_id: str) -> None:
        self._deleted.add(item_id)

    def flush(self) -> None:
        for ref, log in self._log_writes:
            self.txn.create(ref, log)
        for item_id in self._touched:
            ref = self._items.document(item_id)
            data = self.items[item_id]
            if item_id in self._deleted:
                if item_id not in self._created:
                    self.txn.delete(ref)
            elif item_id in self._created:
                self.txn.create(ref, data)
            else:
                self.txn.update(ref, {
                    **self._edits.get(item_id, {}),
                    "quantity": data["quantity"],
                    "lastUpdated": self._now,
                })
        for item_id in self._deleted - set(self._touched):
            self.txn.delete(self._items.document(item_id))
        for ref, data in self._extra_creates:
            self.txn.create(ref, data)

    def result(self) -> StockOperationResult:
        items = [
            stock_item_from_snapshot(DocumentSnapshot(i, self.items[i]))
            for i in self._touched
            if i not in self._deleted
        ]
        return StockOperationResult(items=items, movements=list(self.movements))


def _require_write(scope: AccessScope, data: dict[str, Any]) -> None:
    scope.require(data.get("siteId"), data.get("stallId"), resource="stock item", action="write")


class FirestoreStockLedger:
    """All stock quantity changes; each public method is one transaction."""

    def __init__(self, client: FirestoreRESTClient, max_attempts: int = 5) -> None:
        self._client = client
        self._max_attempts = max_attempts

    async def _run(
        self,
        actor: Actor,
        body: Callable[[_LedgerTransaction], Awaitable[None]],
    ) -> _LedgerTransaction:
        async def _txn(txn: Transaction) -> _LedgerTransaction:
            ctx = _LedgerTransaction(self._client, txn, actor)
            await body(ctx)
            ctx.flush()
            return ctx

        ctx = await self._client.run_transaction(_txn, max_attempts=self._max_attempts)
        add_span_attributes(stock_movements=len(ctx.movements))
        return ctx

    @traced("stock_ledger.create_item")
    async def create_item(
        self,
        scope: AccessScope,
        actor: Actor,
        draft: StockItemDraft,
        notes: str | None = None,
    ) -> StockOperationResult:
        """Create an item; its opening quantity is logged as CREATE_MASTER/CREATE_STALL_DIRECT."""
        scope.require(draft.site_id, draft.stall_id, resource="stock item", action="create")
        if draft.quantity < 0:
            raise ValidationException("quantity must not be negative", "quantity")

        async def body(ctx: _LedgerTransaction) -> None:
            if draft.stall_id:
                stall = await ctx.load_stall(draft.stall_id)
                if stall.get("siteId") != draft.site_id:
                    raise ValidationException("Stall does not belong to the site", "stallId")
            item_id = ctx.new_item({
                "siteId": draft.site_id,
                "stallId": draft.stall_id,
                "originalMasterItemId": None,
                "name": draft.name,
                "category": draft.category,
                "description": draft.description,
                "unit": draft.unit,
                "price": draft.price,
                "costPrice": draft.cost_price,
                "lowStockThreshold": draft.low_stock_threshold,
                "imageUrl": draft.image_url,
            })
            kind = (
                StockMovementType.CREATE_STALL_DIRECT
                if draft.stall_id
                else StockMovementType.CREATE_MASTER
            )
            ctx.change(item_id, StockChange(item_id, draft.quantity, kind, notes=notes))

        ctx = await self._run(actor, body)
        return ctx.result()

    @traced("stock_ledger.update_item")
    async def update_item(
        self,
        scope: AccessScope,
        actor: Actor,
        item_id: str,
        changes: dict[str, Any],
        new_quantity: int | None = None,
        notes: str | None = None,
    ) -> StockOperationResult:
        """Overwrite an item's descriptive fields and optionally set its quantity.

        ``changes`` uses stored field names. ``siteId``/``stallId`` may be
        given but must match the item; items are only moved by a transfer.
        A quantity difference is logged exactly as ``adjust_quantity`` logs it.
        """
        if new_quantity is not None and new_quantity < 0:
            raise ValidationException("quantity must not be negative", "quantity")

        async def body(ctx: _LedgerTransaction) -> None:
            data = await ctx.load(item_id)
            _require_write(scope, data)
            for field in ("siteId", "stallId"):
                if field in changes and (changes[field] or None) != (data.get(field) or None):
                    raise ValidationException(
                        "Stock items cannot be moved by an update; use a transfer", field
                    )
            fields = {k: v for k, v in changes.items() if k in _COPIED_FIELDS}
            if fields:
                ctx.edit(item_id, fields)
            if new_quantity is not None:
                await self._stage_set_quantity(ctx, scope, item_id, new_quantity, None, notes, False)

        ctx = await self._run(actor, body)
        return ctx.result()

    @traced("stock_ledger.apply_stock_changes")
    async def apply_stock_changes(
        self,
        scope: AccessScope,
        actor: Actor,
        changes: Sequence[StockChange],
    ) -> StockOperationResult:
        """Apply several changes atomically; all succeed or none is written."""

        async def body(ctx: _LedgerTransaction) -> None:
            for change in changes:
                _require_write(scope, await ctx.load(change.item_id))
            for change in changes:
                ctx.change(change.item_id, change)

        ctx = await self._run(actor, body)
        return ctx.result()

    async def apply_stock_change(
        self, scope: AccessScope, actor: Actor, change: StockChange
    ) -> StockMovementResult:
        result = await self.apply_stock_changes(scope, actor, [change])
        return result.movements[0]

    async def _stage_set_quantity(
        self,
        ctx: _LedgerTransaction,
        scope: AccessScope,
        item_id: str,
        new_quantity: int | None,
        delta: int | None,
        notes: str | None,
        batch: bool,
    ) -> None:
        data = await ctx.load(item_id)
        _require_write(scope, data)
        before = int(data.get("quantity") or 0)
        change = (new_quantity - before) if new_quantity is not None else (delta or 0)
        if change == 0:
            return
        stall_id = data.get("stallId")
        master_id = data.get("originalMasterItemId")
        master = await ctx.load_optional(master_id) if stall_id else None
        if not stall_id:
            kind = StockMovementType.DIRECT_MASTER_UPDATE
        elif batch:
            kind = StockMovementType.BATCH_STALL_UPDATE_SET
        else:
            kind = StockMovementType.DIRECT_STALL_UPDATE
        ctx.change(
            item_id,
            StockChange(item_id, change, kind, notes=notes, master_item_id_for_context=master_id),
        )
        if master is not None:
            # A linked stall item draws extra units from its master and hands surplus back.
            master_kind = (
                StockMovementType.ALLOCATE_TO_STALL
                if change > 0
                else StockMovementType.RECEIVE_RETURN_FROM_STALL
            )
            ctx.change(
                master_id,
                StockChange(master_id, -change, master_kind, notes=notes, linked_item_id=item_id),
            )

    @traced("stock_ledger.adjust_quantity")
    async def adjust_quantity(
        self,
        scope: AccessScope,
        actor: Actor,
        item_id: str,
        *,
        new_quantity: int | None = None,
        delta: int | None = None,
        notes: str | None = None,
    ) -> StockOperationResult:
        """Set or adjust one item's quantity (exactly one of new_quantity / delta)."""
        if (new_quantity is None) == (delta is None):
            raise ValidationException("Provide exactly one of quantity or delta", "quantity")
        if new_quantity is not None and new_quantity < 0:
            raise ValidationException("quantity must not be negative", "quantity")

        async def body(ctx: _LedgerTransaction) -> None:
            await self._stage_set_quantity(ctx, scope, item_id, new_quantity, delta, notes, False)

        ctx = await self._run(actor, body)
        return ctx.result()

    @traced("stock_ledger.allocate")
    async def allocate(
        self,
        scope: AccessScope,
        actor: Actor,
        master_item_id: str,
        stall_id: str,
        quantity: int,
        notes: str | None = None,
    ) -> StockOperationResult:
        """Move units from a master item to its copy at a stall (created when missing)."""
        require_positive_quantity(quantity)

        async def body(ctx: _LedgerTransaction) -> None:
            master = await ctx.load(master_item_id)
            if master.get("stallId"):
                raise ValidationException("Only master stock can be allocated", "itemId")
            _require_write(scope, master)
            stall = await ctx.load_stall(stall_id)
            if stall.get("siteId") != master.get("siteId"):
                raise ValidationException("Stall does not belong to the item's site", "stallId")
            scope.require(master.get("siteId"), stall_id, resource="stall", action="write")
            target_id = await ctx.find_item([
                ("stallId", "==", stall_id),
                ("originalMasterItemId", "==", master_item_id),
            ])
            if target_id is None:
                target_id = ctx.new_item({
                    **{f: master.get(f) for f in _COPIED_FIELDS},
                    "siteId": master.get("siteId"),
                    "stallId": stall_id,
                    "originalMasterItemId": master_item_id,
                })
            ctx.change(master_item_id, StockChange(
                master_item_id, -quantity, StockMovementType.ALLOCATE_TO_STALL,
                notes=notes, linked_item_id=target_id,
            ))
            ctx.change(target_id, StockChange(
                target_id, quantity, StockMovementType.RECEIVE_ALLOCATION,
                notes=notes, linked_item_id=master_item_id,
                master_item_id_for_context=master_item_id,
            ))

        ctx = await self._run(actor, body)
        return ctx.result()

    @traced("stock_ledger.return_to_master")
    async def return_to_master(
        self,
        scope: AccessScope,
        actor: Actor,
        stall_item_id: str,
        quantity: int,
        notes: str | None = None,
    ) -> StockOperationResult:
        """Send units from a linked stall item back to its master item."""
        require_positive_quantity(quantity)

        async def body(ctx: _LedgerTransaction) -> None:
            item = await ctx.load(stall_item_id)
            _require_write(scope, item)
            master_id = item.get("originalMasterItemId")
            if not item.get("stallId") or not master_id:
                raise ValidationException(
                    "Only stall items allocated from master stock can be returned", "itemId"
                )
            await ctx.load(master_id)
            ctx.change(stall_item_id, StockChange(
                stall_item_id, -quantity, StockMovementType.RETURN_TO_MASTER,
                notes=notes, linked_item_id=master_id, master_item_id_for_context=master_id,
            ))
            ctx.change(master_id, StockChange(
                master_id, quantity, StockMovementType.RECEIVE_RETURN_FROM_STALL,
                notes=notes, linked_item_id=stall_item_id,
            ))

        ctx = await self._run(actor, body)
        return ctx.result()

    @traced("stock_ledger.transfer")
    async def transfer(
        self,
        scope: AccessScope,
        actor: Actor,
        source_item_id: str,
        destination_stall_id: str,
        quantity: int,
        notes: str | None = None,
    ) -> StockOperationResult:
        """Move units between two stalls of the same site.

        The destination item is the one sharing the source's master link (or,
        for unlinked items, its name); it is created when missing.
        """
        require_positive_quantity(quantity)

        async def body(ctx: _LedgerTransaction) -> None:
            source = await ctx.load(source_item_id)
            _require_write(scope, source)
            if not source.get("stallId"):
                raise ValidationException("Master stock is allocated, not transferred", "itemId")
            if source.get("stallId") == destination_stall_id:
                raise ValidationException("Destination must be a different stall", "destinationStallId")
            stall = await ctx.load_stall(destination_stall_id)
            if stall.get("siteId") != source.get("siteId"):
                raise ValidationException(
                    "Transfers are only possible within one site", "destinationStallId"
                )
            scope.require(source.get("siteId"), destination_stall_id, resource="stall", action="write")
            master_id = source.get("originalMasterItemId")
            match = ("originalMasterItemId", "==", master_id) if master_id else ("name", "==", source.get("name"))
            filters = [("stallId", "==", destination_stall_id), match]
            if not master_id:
                filters.append(("originalMasterItemId", "==", None))
            target_id = await ctx.find_item(filters)
            if target_id is None:
                target_id = ctx.new_item({
                    **{f: source.get(f) for f in _COPIED_FIELDS},
                    "siteId": source.get("siteId"),
                    "stallId": destination_stall_id,
                    "originalMasterItemId": master_id,
                })
            ctx.change(source_item_id, StockChange(
                source_item_id, -quantity, StockMovementType.TRANSFER_OUT_FROM_STALL,
                notes=notes, linked_item_id=target_id, master_item_id_for_context=master_id,
            ))
            ctx.change(target_id, StockChange(
                target_id, quantity, StockMovementType.TRANSFER_IN_TO_STALL,
                notes=notes, linked_item_id=source_item_id, master_item_id_for_context=master_id,
            ))

        ctx = await self._run(actor, body)
        return ctx.result()

    async def _stage_delete(
        self, ctx: _LedgerTransaction, scope: AccessScope, item_id: str, batch: bool
    ) -> None:
        item = await ctx.load(item_id)
        _require_write(scope, item)
        quantity = int(item.get("quantity") or 0)
        if not item.get("stallId"):
            if await ctx.has_items("originalMasterItemId", item_id):
                raise ResourceConflictException(
                    "Master item is still allocated to stalls; return or delete those first",
                    item_id=item_id,
                )
            ctx.change(item_id, StockChange(item_id, -quantity, StockMovementType.DELETE_MASTER_ITEM))
            ctx.delete(item_id)
            return
        master_id = item.get("originalMasterItemId")
        master = await ctx.load_optional(master_id)
        kind = StockMovementType.BATCH_STALL_DELETE if batch else StockMovementType.DELETE_STALL_ITEM
        ctx.change(item_id, StockChange(
            item_id, -quantity, kind, master_item_id_for_context=master_id,
        ))
        if master is not None and quantity > 0:
            ctx.change(master_id, StockChange(
                master_id, quantity, StockMovementType.RECEIVE_RETURN_FROM_STALL,
                notes="Stall item deleted", linked_item_id=item_id,
            ))
        ctx.delete(item_id)

    @traced("stock_ledger.delete_item")
    async def delete_item(self, scope: AccessScope, actor: Actor, item_id: str) -> StockOperationResult:
        """Log then delete an item; a linked stall item's units go back to its master."""

        async def body(ctx: _LedgerTransaction) -> None:
            await self._stage_delete(ctx, scope, item_id, False)

        ctx = await self._run(actor, body)
        return ctx.result()

    async def _per_item(
        self,
        item_ids: Sequence[str],
        op: Callable[[str], Awaitable[Any]],
    ) -> list[BatchItemOutcome]:
        outcomes: list[BatchItemOutcome] = []
        for item_id in dict.fromkeys(item_ids):
            try:
                await op(item_id)
            except StallSyncException as e:
                logger.warning("Batch stock operation failed for %s: %s", item_id, e.message)
                outcomes.append(BatchItemOutcome(item_id, e.message, e.error_code))
            else:
                outcomes.append(BatchItemOutcome(item_id))
        return outcomes

    @traced("stock_ledger.batch_set_quantity")
    async def batch_set_quantity(
        self,
        scope: AccessScope,
        actor: Actor,
        item_ids: Sequence[str],
        new_quantity: int,
    ) -> list[BatchItemOutcome]:
        """Set the same quantity on several stall items, one transaction per item."""
        if new_quantity < 0:
            raise ValidationException("quantity must not be negative", "quantity")

        async def one(item_id: str) -> None:
            async def body(ctx: _LedgerTransaction) -> None:
                item = await ctx.load(item_id)
                if not item.get("stallId"):
                    raise ValidationException("Batch updates apply to stall items only", "itemIds")
                await self._stage_set_quantity(ctx, scope, item_id, new_quantity, None, None, True)

            await self._run(actor, body)

        return await self._per_item(item_ids, one)

    @traced("stock_ledger.batch_delete")
    async def batch_delete(
        self, scope: AccessScope, actor: Actor, item_ids: Sequence[str]
    ) -> list[BatchItemOutcome]:
        """Delete several stall items, one transaction per item."""

        async def one(item_id: str) -> None:
            async def body(ctx: _LedgerTransaction) -> None:
                item = await ctx.load(item_id)
                if not item.get("stallId"):
                    raise ValidationException("Batch deletes apply to stall items only", "itemIds")
                await self._stage_delete(ctx, scope, item_id, True)

            await self._run(actor, body)

        return await self._per_item(item_ids, one)

    @traced("stock_ledger.record_sale")
    async def record_sale(
        self,
        scope: AccessScope,
        actor: Actor,
        site_id: str,
        stall_id: str,
        lines: Sequence[SaleLine],
    ) -> SaleResult:
        """Decrement stall stock (and linked master stock, floored at 0) and create the sale.

        Prices come from the stored items, never from the caller.
        """
        scope.require(site_id, stall_id, resource="sale", action="create")
        if not lines:
            raise ValidationException("A sale needs at least one item", "items")
        quantities: dict[str, int] = {}
        for line in lines:
            require_positive_quantity(line.quantity)
            quantities[line.item_id] = quantities.get(line.item_id, 0) + line.quantity

        async def body(ctx: _LedgerTransaction) -> None:
            sale_id = ctx.new_sale_id()
            sold: list[dict[str, Any]] = []
            for item_id, qty in quantities.items():
                item = await ctx.load(item_id)
                if item.get("siteId") != site_id or item.get("stallId") != stall_id:
                    raise ValidationException(
                        f"Item {item_id} is not stocked at this stall", "items"
                    )
                master_id = item.get("originalMasterItemId")
                master = await ctx.load_optional(master_id)
                ctx.change(item_id, StockChange(
                    item_id, -qty, StockMovementType.SALE_FROM_STALL,
                    related_transaction_id=sale_id, master_item_id_for_context=master_id,
                ))
                if master is not None:
                    ctx.change(master_id, StockChange(
                        master_id, -qty, StockMovementType.SALE_AFFECTS_MASTER,
                        linked_item_id=item_id, related_transaction_id=sale_id,
                        floor_at_zero=True,
                    ))
                price = float(item.get("price") or 0)
                sold.append({
                    "itemId": item_id,
                    "name": item.get("name", ""),
                    "quantity": qty,
                    "pricePerUnit": price,
                    "totalPrice": round(price * qty, 2),
                })
            ctx.create_sale(sale_id, {
                "items": sold,
                "totalAmount": round(sum(s["totalPrice"] for s in sold), 2),
                "transactionDate": utc_now(),
                "staffId": actor.uid,
                "staffName": actor.name,
                "siteId": site_id,
                "stallId": stall_id,
                "isDeleted": False,
            })

        sale = (await self._run(actor, body)).sale
        logger.info(
            "Sale %s recorded at stall %s: %d items, total %.2f",
            sale.id, stall_id, len(sale.items), sale.total_amount,
        )
        return sale

