"""Repository dependencies: one Firestore-backed repository per request."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends

from stallsync.api.v1.dependencies.firebase import get_firestore_client
from stallsync.infrastructure.firebase._rest_client import FirestoreRESTClient
from stallsync.infrastructure.firebase.repositories import (
    FirestoreFoodRepository,
    FirestoreGoogleTokenRepository,
    FirestoreSaleRepository,
    FirestoreSiteRepository,
    FirestoreStaffRepository,
    FirestoreStallRepository,
    FirestoreStockMovementRepository,
    FirestoreStockRepository,
    FirestoreUserRepository,
)

Client = Annotated[FirestoreRESTClient, Depends(get_firestore_client)]


def get_user_repo(client: Client) -> FirestoreUserRepository:
    return FirestoreUserRepository(client)


def get_site_repo(client: Client) -> FirestoreSiteRepository:
    return FirestoreSiteRepository(client)


def get_stall_repo(client: Client) -> FirestoreStallRepository:
    return FirestoreStallRepository(client)


def get_stock_repo(client: Client) -> FirestoreStockRepository:
    return FirestoreStockRepository(client)


def get_stock_movement_repo(client: Client) -> FirestoreStockMovementRepository:
    return FirestoreStockMovementRepository(client)


def get_sale_repo(client: Client) -> FirestoreSaleRepository:
    return FirestoreSaleRepository(client)


def get_food_repo(client: Client) -> FirestoreFoodRepository:
    return FirestoreFoodRepository(client)


def get_staff_repo(client: Client) -> FirestoreStaffRepository:
    return FirestoreStaffRepository(client)


def get_google_token_repo(client: Client) -> FirestoreGoogleTokenRepository:
    return FirestoreGoogleTokenRepository(client)
