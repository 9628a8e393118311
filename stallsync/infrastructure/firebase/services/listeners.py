"""Live query subscriptions over the REST API.

The REST API has no streaming listeners, so a subscription re-runs its
query every ``interval`` seconds and reports the difference from the last
run (by document id and update time). The first run reports every
document as added.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from stallsync.application.interfaces.services import ChangeCallback
from stallsync.domain.exceptions import StallSyncException
from stallsync.infrastructure.firebase._rest_client import DocumentSnapshot, _Query

logger = logging.getLogger(__name__)


@dataclass
class QueryChangeSet:
    """Documents added, modified and removed since the previous delivery."""

    added: list[DocumentSnapshot] = field(default_factory=list)
    modified: list[DocumentSnapshot] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    docs: list[DocumentSnapshot] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not (self.added or self.modified or self.removed)


def diff_snapshots(
    previous: dict[str, str | None] | None,
    docs: list[DocumentSnapshot],
) -> QueryChangeSet:
    changes = QueryChangeSet(docs=docs)
    seen = previous or {}
    for doc in docs:
        if doc.id not in seen:
            changes.added.append(doc)
        elif seen[doc.id] != doc.update_time:
            changes.modified.append(doc)
    current = {d.id for d in docs}
    changes.removed = [doc_id for doc_id in seen if doc_id not in current]
    return changes


class PollingSubscription:
    """Handle for one polling task; cancel() stops further deliveries."""

    def __init__(self, task: asyncio.Task) -> None:
        self._task = task

    def cancel(self) -> None:
        self._task.cancel()

    @property
    def cancelled(self) -> bool:
        return self._task.done()


class PollingQuerySubscriber:
    """Implements IQuerySubscriber by polling runQuery."""

    def __init__(self, interval: float = 2.0) -> None:
        self._interval = interval

    async def _poll(self, query: _Query, on_change: ChangeCallback) -> None:
        previous: dict[str, str | None] | None = None
        while True:
            try:
                docs = await query.get()
            except StallSyncException as e:
                logger.warning("Live query on %s failed: %s", query.collection_id, e.message)
            except Exception:
                logger.exception("Live query on %s failed", query.collection_id)
            else:
                changes = diff_snapshots(previous, docs)
                if previous is None or not changes.empty:
                    try:
                        await on_change(changes)
                    except Exception:
                        # Retried with the same diff on the next poll.
                        logger.exception("Live query delivery on %s failed", query.collection_id)
                    else:
                        previous = {d.id: d.update_time for d in docs}
            await asyncio.sleep(self._interval)

    def subscribe(self, query: _Query, on_change: ChangeCallback) -> PollingSubscription:
        task = asyncio.create_task(self._poll(query, on_change))
        return PollingSubscription(task)
