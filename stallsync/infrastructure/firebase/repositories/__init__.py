"""Firestore-backed repository implementations."""

from stallsync.infrastructure.firebase.repositories.food_repo_firestore import (
    FirestoreFoodRepository,
)
from stallsync.infrastructure.firebase.repositories.oauth_token_repo_firestore import (
    FirestoreGoogleTokenRepository,
)
from stallsync.infrastructure.firebase.repositories.sale_repo_firestore import (
    FirestoreSaleRepository,
)
from stallsync.infrastructure.firebase.repositories.site_repo_firestore import (
    FirestoreSiteRepository,
)
from stallsync.infrastructure.firebase.repositories.stall_repo_firestore import (
    FirestoreStallRepository,
)
from stallsync.infrastructure.firebase.repositories.staff_repo_firestore import (
    FirestoreStaffRepository,
)
from stallsync.infrastructure.firebase.repositories.stock_repo_firestore import (
    FirestoreStockMovementRepository,
    FirestoreStockRepository,
)
from stallsync.infrastructure.firebase.repositories.user_repo_firestore import (
    FirestoreUserRepository,
)

__all__ = [
    "FirestoreFoodRepository",
    "FirestoreGoogleTokenRepository",
    "FirestoreSaleRepository",
    "FirestoreSiteRepository",
    "FirestoreStaffRepository",
    "FirestoreStallRepository",
    "FirestoreStockMovementRepository",
    "FirestoreStockRepository",
    "FirestoreUserRepository",
]
