"""Firestore-backed site repository."""

from __future__ import annotations

import asyncio
from typing import Any

from stallsync.application.dtos.site import SiteResult
from stallsync.domain.exceptions import ResourceConflictException, ResourceNotFoundException
from stallsync.infrastructure.exceptions import DocumentMissingError
from stallsync.infrastructure.firebase._rest_client import DocumentSnapshot, FirestoreRESTClient
from stallsync.infrastructure.firebase.collections import COLLECTION_SITES, COLLECTION_STALLS
from stallsync.shared.utils.datetime import utc_now


def _to_result(snap: DocumentSnapshot) -> SiteResult:
    data = snap.to_dict()
    return SiteResult(
        id=snap.id,
        name=data.get("name", ""),
        location=data.get("location"),
        created_at=data.get("createdAt"),
        updated_at=data.get("updatedAt"),
    )


class FirestoreSiteRepository:
    def __init__(self, client: FirestoreRESTClient) -> None:
        self._client = client
        self._coll = client.collection(COLLECTION_SITES)

    async def get(self, site_id: str) -> SiteResult | None:
        doc = await self._coll.document(site_id).get()
        return _to_result(doc) if doc else None

    async def list(self, site_ids: list[str] | None = None) -> list[SiteResult]:
        """All sites, or only the given ids; sorted by name."""
        if site_ids is None:
            sites = [_to_result(s) async for s in self._coll.stream()]
        else:
            docs = await asyncio.gather(*(self._coll.document(s).get() for s in site_ids))
            sites = [_to_result(d) for d in docs if d]
        return sorted(sites, key=lambda s: s.name.lower())

    async def create(self, name: str, location: str | None) -> SiteResult:
        now = utc_now()
        ref = await self._coll.add(
            {"name": name, "location": location, "createdAt": now, "updatedAt": now}
        )
        return SiteResult(id=ref.id, name=name, location=location, created_at=now, updated_at=now)

    async def update(self, site_id: str, changes: dict[str, Any]) -> SiteResult:
        ref = self._coll.document(site_id)
        try:
            await ref.update({**changes, "updatedAt": utc_now()})
        except DocumentMissingError as e:
            raise ResourceNotFoundException("site", site_id) from e
        doc = await ref.get()
        if not doc:
            raise ResourceNotFoundException("site", site_id)
        return _to_result(doc)

    async def delete(self, site_id: str) -> None:
        """Delete a site; refused while stalls still belong to it."""
        ref = self._coll.document(site_id)
        if not await ref.get():
            raise ResourceNotFoundException("site", site_id)
        stalls = await (
            self._client.collection(COLLECTION_STALLS)
            .where("siteId", "==", site_id)
            .select()
            .limit(1)
            .get()
        )
        if stalls:
            raise ResourceConflictException(
                "Site still has stalls; delete them first", site_id=site_id
            )
        await ref.delete()
