"""Firestore-backed services: stock ledger, bulk deletion, live queries."""

from stallsync.infrastructure.firebase.services.collection_purger_firestore import (
    FirestoreCollectionPurger,
)
from stallsync.infrastructure.firebase.services.listeners import (
    PollingQuerySubscriber,
    QueryChangeSet,
)
from stallsync.infrastructure.firebase.services.stock_ledger_firestore import (
    FirestoreStockLedger,
)

__all__ = [
    "FirestoreCollectionPurger",
    "FirestoreStockLedger",
    "PollingQuerySubscriber",
    "QueryChangeSet",
]
