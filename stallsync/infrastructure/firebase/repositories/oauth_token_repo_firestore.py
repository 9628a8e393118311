"""Encrypted Google OAuth tokens at userGoogleOAuthTokens/{uid}."""

from __future__ import annotations

from typing import Any

from stallsync.infrastructure.firebase._rest_client import FirestoreRESTClient
from stallsync.infrastructure.firebase.collections import COLLECTION_USER_GOOGLE_OAUTH_TOKENS


class FirestoreGoogleTokenRepository:
    """Implements IGoogleTokenRepository."""

    def __init__(self, client: FirestoreRESTClient) -> None:
        self._coll = client.collection(COLLECTION_USER_GOOGLE_OAUTH_TOKENS)

    async def get(self, uid: str) -> dict[str, Any] | None:
        doc = await self._coll.document(uid).get()
        return doc.to_dict() if doc else None

    async def save(self, uid: str, record: dict[str, Any]) -> None:
        await self._coll.document(uid).set({**record, "uid": uid}, merge=True)
