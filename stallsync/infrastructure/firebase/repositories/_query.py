"""Query helpers shared by the Firestore repositories."""

from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Any

from stallsync.infrastructure.firebase._rest_client import DocumentSnapshot, _Query


def apply_filters(query: _Query, filters: Iterable[tuple[str, str, Any]]) -> _Query:
    for field, op, value in filters:
        query = query.where(field, op, value)
    return query


def newest_first(
    snapshots: Sequence[DocumentSnapshot],
    field: str,
    limit: int | None = None,
) -> list[DocumentSnapshot]:
    """Sort by a datetime or YYYY-MM-DD field, newest first, and cut to limit."""

    def key(snap: DocumentSnapshot) -> Any:
        value = snap.to_dict().get(field)
        if isinstance(value, datetime):
            return value.replace(tzinfo=None).isoformat()
        return value or ""

    ordered = sorted(snapshots, key=key, reverse=True)
    return ordered[:limit] if limit else ordered


async def fetch_newest(query: _Query, field: str, limit: int | None = None) -> list[DocumentSnapshot]:
    """Run ``query`` ordered by ``field`` descending, limited on the server.

    Large ``in`` filters are split into one query per chunk, each returning
    its own ordered page of up to ``limit``; the pages are merged here.
    """
    page = query.order_by(field, "DESCENDING")
    if limit:
        page = page.limit(limit)
    return newest_first(await page.get(), field, limit)
