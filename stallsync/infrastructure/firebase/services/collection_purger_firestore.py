"""Page-at-a-time collection deletion (implements ICollectionPurger)."""

from __future__ import annotations

from stallsync.infrastructure.firebase._rest_client import MAX_WRITES_PER_COMMIT, FirestoreRESTClient


class FirestoreCollectionPurger:
    def __init__(self, client: FirestoreRESTClient) -> None:
        self._client = client

    async def delete_page(self, collection: str, limit: int) -> int:
        """Delete the first ``limit`` documents (by name) in one commit.

        Returns the number deleted; 0 means the collection is empty and no
        commit was issued.
        """
        limit = min(limit, MAX_WRITES_PER_COMMIT)
        page = await (
            self._client.collection(collection)
            .select()
            .order_by("__name__")
            .limit(limit)
            .get()
        )
        if not page:
            return 0
        coll = self._client.collection(collection)
        batch = self._client.batch()
        for snap in page:
            batch.delete(coll.document(snap.id))
        await batch.commit()
        return len(page)
