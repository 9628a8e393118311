"""Firebase handle dependencies (composition root).

The handle is created once in the lifespan and stored on ``app.state``;
routes needing Firestore answer 503 when it is missing.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends
from fastapi.requests import HTTPConnection

from stallsync.domain.exceptions import ServiceUnavailableException
from stallsync.infrastructure.firebase._rest_client import FirestoreRESTClient
from stallsync.infrastructure.firebase.client import FirebaseHandle
from stallsync.infrastructure.firebase.identity import FirebaseIdentityAdmin


def get_optional_firebase_handle(conn: HTTPConnection) -> FirebaseHandle | None:
    return getattr(conn.app.state, "firebase", None)


def get_firebase_handle(
    handle: Annotated[FirebaseHandle | None, Depends(get_optional_firebase_handle)],
) -> FirebaseHandle:
    """Initialized handle; ServiceUnavailableException (503) when Firebase is not configured."""
    if handle is None:
        raise ServiceUnavailableException("Firebase")
    return handle


def get_firestore_client(
    handle: Annotated[FirebaseHandle, Depends(get_firebase_handle)],
) -> FirestoreRESTClient:
    return handle.firestore


def get_identity_provider(
    handle: Annotated[FirebaseHandle, Depends(get_firebase_handle)],
) -> FirebaseIdentityAdmin:
    return handle.identity
