"""Sales and movement history are ordered and limited by Firestore."""

from datetime import datetime, timedelta, timezone

from firestore_fake import FakeFirestore
from stallsync.infrastructure.firebase.client import FirebaseHandle
from stallsync.infrastructure.firebase.repositories import (
    FirestoreSaleRepository,
    FirestoreStockMovementRepository,
)

START = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


def _add_movement(firestore: FakeFirestore, n: int, site_id: str = "site-1") -> None:
    firestore.put("stockMovementLogs", f"log-{n}", {
        "stockItemId": "item-1", "siteId": site_id, "stallId": None, "type": "DIRECT_MASTER_UPDATE",
        "quantityChange": 1, "quantityBefore": n, "quantityAfter": n + 1,
        "userId": "admin-1", "userName": "Admin", "timestamp": START + timedelta(minutes=n),
    })


async def test_movement_history_is_ordered_and_limited_on_the_server(
    handle: FirebaseHandle, firestore: FakeFirestore
) -> None:
    for n in range(5):
        _add_movement(firestore, n)

    found = await FirestoreStockMovementRepository(handle.firestore).list([], limit=2)

    assert [m.id for m in found] == ["log-4", "log-3"]
    query = firestore.queries[-1]
    assert query["limit"] == 2
    assert query["orderBy"] == [{"field": {"fieldPath": "timestamp"}, "direction": "DESCENDING"}]


async def test_split_site_filter_merges_pages_newest_first(
    handle: FirebaseHandle, firestore: FakeFirestore
) -> None:
    _add_movement(firestore, 1, "s0")
    _add_movement(firestore, 7, "s34")
    _add_movement(firestore, 3, "s20")
    site_ids = [f"s{i}" for i in range(35)]

    found = await FirestoreStockMovementRepository(handle.firestore).list(
        [("siteId", "in", site_ids)], limit=2
    )

    assert [m.id for m in found] == ["log-7", "log-3"]
    assert len(firestore.queries) == 2


async def test_sales_history_skips_deleted_and_limits_on_the_server(
    handle: FirebaseHandle, firestore: FakeFirestore
) -> None:
    for n in range(4):
        firestore.put("salesTransactions", f"sale-{n}", {
            "siteId": "site-1", "stallId": "stall-a", "items": [], "totalAmount": 10.0 * n,
            "transactionDate": START + timedelta(hours=n), "staffId": "staff-1", "staffName": "Staff",
            "isDeleted": n == 3,
        })

    found = await FirestoreSaleRepository(handle.firestore).list([("siteId", "==", "site-1")], limit=2)

    assert [s.id for s in found] == ["sale-2", "sale-1"]
    query = firestore.queries[-1]
    assert query["limit"] == 2
    assert query["orderBy"][0]["field"]["fieldPath"] == "transactionDate"
