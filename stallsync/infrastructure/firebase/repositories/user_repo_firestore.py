"""Firestore-backed user profile repository (implements IUserRepository)."""

from __future__ import annotations

from typing import Any

from stallsync.application.dtos.user import Actor, UserProfile
from stallsync.domain.enums import StaffActivityType, UserRole, UserStatus
from stallsync.domain.exceptions import ResourceNotFoundException
from stallsync.infrastructure.exceptions import DocumentMissingError
from stallsync.infrastructure.firebase._rest_client import DocumentSnapshot, FirestoreRESTClient
from stallsync.infrastructure.firebase.collections import (
    COLLECTION_STAFF_ACTIVITY_LOGS,
    COLLECTION_USERS,
)
from stallsync.infrastructure.firebase.repositories._query import apply_filters
from stallsync.infrastructure.firebase.repositories.activity_logs import staff_activity_entry

# Profile fields an admin may change through update().
UPDATABLE_FIELDS = frozenset(
    {"displayName", "role", "defaultSiteId", "defaultStallId", "managedSiteIds"}
)


def _to_profile(snap: DocumentSnapshot) -> UserProfile:
    data = snap.to_dict()
    role = data.get("role")
    return UserProfile(
        uid=snap.id,
        email=data.get("email", ""),
        display_name=data.get("displayName") or "",
        role=UserRole(role) if role in UserRole.values() else UserRole.STAFF,
        status=UserStatus(data.get("status") or UserStatus.ACTIVE.value),
        default_site_id=data.get("defaultSiteId") or None,
        default_stall_id=data.get("defaultStallId") or None,
        managed_site_ids=tuple(data.get("managedSiteIds") or ()),
        created_at=data.get("createdAt"),
    )


class FirestoreUserRepository:
    """Profiles at users/{uid}."""

    def __init__(self, client: FirestoreRESTClient) -> None:
        self._client = client
        self._coll = client.collection(COLLECTION_USERS)

    async def get(self, uid: str) -> UserProfile | None:
        doc = await self._coll.document(uid).get()
        if not doc:
            return None
        return _to_profile(doc)

    async def create(self, profile: UserProfile) -> UserProfile:
        await self._coll.document(profile.uid).set({
            "email": profile.email,
            "displayName": profile.display_name,
            "role": profile.role.value,
            "status": profile.status.value,
            "defaultSiteId": profile.default_site_id,
            "defaultStallId": profile.default_stall_id,
            "managedSiteIds": list(profile.managed_site_ids),
            "createdAt": profile.created_at,
        })
        return profile

    async def delete(self, uid: str) -> None:
        await self._coll.document(uid).delete()

    async def update(self, uid: str, fields: dict[str, Any]) -> UserProfile:
        changes = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS}
        if "role" in changes and isinstance(changes["role"], UserRole):
            changes["role"] = changes["role"].value
        ref = self._coll.document(uid)
        if changes:
            try:
                await ref.update(changes)
            except DocumentMissingError as e:
                raise ResourceNotFoundException("user", uid) from e
        doc = await ref.get()
        if not doc:
            raise ResourceNotFoundException("user", uid)
        return _to_profile(doc)

    async def set_status(self, uid: str, status: UserStatus, actor: Actor) -> UserProfile:
        """Change status and log USER_STATUS_CHANGED in one commit."""
        ref = self._coll.document(uid)
        current = await ref.get()
        if not current:
            raise ResourceNotFoundException("user", uid)
        previous = current.to_dict().get("status") or UserStatus.ACTIVE.value
        batch = self._client.batch()
        batch.update(ref, {"status": status.value})
        batch.create(
            self._client.collection(COLLECTION_STAFF_ACTIVITY_LOGS).document(),
            staff_activity_entry(
                actor,
                StaffActivityType.USER_STATUS_CHANGED,
                uid,
                current.to_dict().get("defaultSiteId"),
                {"previousStatus": previous, "newStatus": status.value},
            ),
        )
        await batch.commit()
        return _to_profile(DocumentSnapshot(uid, {**current.to_dict(), "status": status.value}))

    async def list(
        self,
        filters: list[tuple[str, str, Any]] | None = None,
        role: UserRole | None = None,
    ) -> list[UserProfile]:
        """Profiles matching filters, sorted by display name."""
        query = apply_filters(self._coll, filters or [])
        if role is not None:
            query = query.where("role", "==", role.value)
        profiles = [_to_profile(s) async for s in query.stream()]
        return sorted(profiles, key=lambda p: (p.display_name.lower(), p.uid))
