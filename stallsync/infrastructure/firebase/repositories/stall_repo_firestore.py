"""Firestore-backed stall repository."""

from __future__ import annotations

from typing import Any

from stallsync.application.dtos.site import StallResult
from stallsync.domain.exceptions import ResourceConflictException, ResourceNotFoundException
from stallsync.infrastructure.exceptions import DocumentMissingError
from stallsync.infrastructure.firebase._rest_client import DocumentSnapshot, FirestoreRESTClient
from stallsync.infrastructure.firebase.collections import (
    COLLECTION_STALLS,
    COLLECTION_STOCK_ITEMS,
)
from stallsync.infrastructure.firebase.repositories._query import apply_filters
from stallsync.shared.utils.datetime import utc_now


def _to_result(snap: DocumentSnapshot) -> StallResult:
    data = snap.to_dict()
    return StallResult(
        id=snap.id,
        site_id=data.get("siteId", ""),
        name=data.get("name", ""),
        stall_type=data.get("stallType", ""),
        created_at=data.get("createdAt"),
        updated_at=data.get("updatedAt"),
    )


class FirestoreStallRepository:
    def __init__(self, client: FirestoreRESTClient) -> None:
        self._client = client
        self._coll = client.collection(COLLECTION_STALLS)

    async def get(self, stall_id: str) -> StallResult | None:
        doc = await self._coll.document(stall_id).get()
        return _to_result(doc) if doc else None

    async def list(self, filters: list[tuple[str, str, Any]]) -> list[StallResult]:
        stalls = [_to_result(s) async for s in apply_filters(self._coll, filters).stream()]
        return sorted(stalls, key=lambda s: (s.site_id, s.name.lower()))

    async def create(self, site_id: str, name: str, stall_type: str) -> StallResult:
        now = utc_now()
        ref = await self._coll.add({
            "siteId": site_id,
            "name": name,
            "stallType": stall_type,
            "createdAt": now,
            "updatedAt": now,
        })
        return StallResult(
            id=ref.id,
            site_id=site_id,
            name=name,
            stall_type=stall_type,
            created_at=now,
            updated_at=now,
        )

    async def update(self, stall_id: str, changes: dict[str, Any]) -> StallResult:
        ref = self._coll.document(stall_id)
        try:
            await ref.update({**changes, "updatedAt": utc_now()})
        except DocumentMissingError as e:
            raise ResourceNotFoundException("stall", stall_id) from e
        doc = await ref.get()
        if not doc:
            raise ResourceNotFoundException("stall", stall_id)
        return _to_result(doc)

    async def delete(self, stall_id: str) -> None:
        """Delete a stall; refused (409) while stock items reference it."""
        ref = self._coll.document(stall_id)
        if not await ref.get():
            raise ResourceNotFoundException("stall", stall_id)
        referencing = await (
            self._client.collection(COLLECTION_STOCK_ITEMS)
            .where("stallId", "==", stall_id)
            .select()
            .limit(1)
            .get()
        )
        if referencing:
            raise ResourceConflictException(
                "Stall still holds stock items; return or delete them first",
                stall_id=stall_id,
            )
        await ref.delete()
