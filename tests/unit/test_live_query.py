"""Polling live queries: change detection and recovery from failures."""

import asyncio

from stallsync.infrastructure.firebase._rest_client import DocumentSnapshot
from stallsync.infrastructure.firebase.services.listeners import (
    PollingQuerySubscriber,
    QueryChangeSet,
    diff_snapshots,
)


def _doc(doc_id: str, update_time: str) -> DocumentSnapshot:
    return DocumentSnapshot(doc_id, {"name": doc_id}, update_time)


class ScriptedQuery:
    """Returns (or raises) the scripted results in order, then repeats the last."""

    collection_id = "stockItems"

    def __init__(self, *results) -> None:
        self._results = list(results)

    async def get(self) -> list[DocumentSnapshot]:
        result = self._results.pop(0) if len(self._results) > 1 else self._results[0]
        if isinstance(result, Exception):
            raise result
        return result


def test_first_run_reports_everything_as_added() -> None:
    changes = diff_snapshots(None, [_doc("a", "t1"), _doc("b", "t1")])
    assert [d.id for d in changes.added] == ["a", "b"]
    assert not changes.modified and not changes.removed


def test_diff_by_update_time_and_id() -> None:
    previous = {"a": "t1", "b": "t1", "c": "t1"}
    changes = diff_snapshots(previous, [_doc("a", "t1"), _doc("b", "t2"), _doc("d", "t1")])
    assert [d.id for d in changes.added] == ["d"]
    assert [d.id for d in changes.modified] == ["b"]
    assert changes.removed == ["c"]


def test_unchanged_results_are_empty() -> None:
    assert diff_snapshots({"a": "t1"}, [_doc("a", "t1")]).empty


async def _collect(query: ScriptedQuery, count: int, fail_first_delivery: bool = False) -> list[QueryChangeSet]:
    received: list[QueryChangeSet] = []
    done = asyncio.Event()
    fail_next = fail_first_delivery

    async def on_change(changes: QueryChangeSet) -> None:
        nonlocal fail_next
        if fail_next:
            fail_next = False
            raise RuntimeError("socket went away")
        received.append(changes)
        if len(received) == count:
            done.set()

    subscription = PollingQuerySubscriber(0.001).subscribe(query, on_change)
    try:
        await asyncio.wait_for(done.wait(), timeout=2)
    finally:
        subscription.cancel()
    return received


async def test_poll_survives_unexpected_query_errors() -> None:
    query = ScriptedQuery(
        KeyError("fields"),
        [_doc("a", "t1")],
        [_doc("a", "t2")],
    )

    received = await _collect(query, 2)

    assert [d.id for d in received[0].added] == ["a"]
    assert [d.id for d in received[1].modified] == ["a"]


async def test_failed_delivery_is_retried() -> None:
    query = ScriptedQuery([_doc("a", "t1")])

    received = await _collect(query, 1, fail_first_delivery=True)

    assert [d.id for d in received[0].added] == ["a"]


async def test_cancel_stops_polling() -> None:
    query = ScriptedQuery([_doc("a", "t1")])
    delivered = asyncio.Event()

    async def on_change(changes: QueryChangeSet) -> None:
        delivered.set()

    subscription = PollingQuerySubscriber(0.001).subscribe(query, on_change)
    await asyncio.wait_for(delivered.wait(), timeout=2)
    subscription.cancel()
    await asyncio.sleep(0.01)

    assert subscription.cancelled
