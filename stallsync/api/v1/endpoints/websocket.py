"""Live stock WebSocket: ``/ws/stock?token=...&site_id=...&stall=...``.

The token is a Firebase ID token (browsers cannot set headers on a
WebSocket handshake). The caller's scope narrows the watched items exactly
as on ``GET /stock-items``; closing the socket stops the subscription.
"""

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from stallsync.api.v1.dependencies.auth import authenticate_token
from stallsync.application.services.access_scope import resolve_access_scope
from stallsync.domain.exceptions import StallSyncException
from stallsync.infrastructure.firebase.repositories import (
    FirestoreStockRepository,
    FirestoreUserRepository,
)
from stallsync.infrastructure.firebase.repositories.stock_repo_firestore import (
    stock_item_from_snapshot,
)
from stallsync.infrastructure.firebase.services.listeners import QueryChangeSet
from stallsync.schemas.stock import StockItemResponse

logger = logging.getLogger(__name__)

router = APIRouter()


async def _reject_websocket(websocket: WebSocket, reason: str, code: int = 1008) -> None:
    """Accept then immediately close with code/reason so client gets a proper close frame."""
    await websocket.accept()
    await websocket.close(code=code, reason=reason)


def _change_message(changes: QueryChangeSet, first: bool) -> dict:
    items = [
        StockItemResponse.model_validate(stock_item_from_snapshot(doc)).model_dump(
            mode="json", by_alias=True
        )
        for doc in changes.docs
    ]
    return {
        "type": "snapshot" if first else "changes",
        "items": items,
        "added": [d.id for d in changes.added],
        "modified": [d.id for d in changes.modified],
        "removed": changes.removed,
    }


@router.websocket("/stock")
async def stock_websocket(websocket: WebSocket):
    """Push the caller's scoped stock items whenever they change.

    The first message (``type: snapshot``) carries every visible item; later
    ones (``type: changes``) carry the full list plus the ids that changed.
    """
    manager = websocket.app.state.ws_manager
    subscriber = websocket.app.state.stock_subscriber
    handle = getattr(websocket.app.state, "firebase", None)
    if handle is None:
        await _reject_websocket(websocket, "Firebase is not configured", code=1011)
        return
    token = websocket.query_params.get("token")
    if not token:
        await _reject_websocket(websocket, "Missing token")
        return
    try:
        user = await authenticate_token(
            token, handle.identity, FirestoreUserRepository(handle.firestore)
        )
        filters = resolve_access_scope(user).query_filters(
            websocket.query_params.get("site_id"), websocket.query_params.get("stall")
        )
    except StallSyncException as e:
        await _reject_websocket(websocket, e.message)
        return
    if filters is None:
        await _reject_websocket(websocket, "No stock is visible to this account")
        return

    await manager.connect(websocket, user.uid)
    first = True

    async def _push(changes: QueryChangeSet) -> None:
        nonlocal first
        message = _change_message(changes, first)
        first = False
        await manager.send(websocket, message)

    query = FirestoreStockRepository(handle.firestore).scoped_query(filters)
    await manager.attach(websocket, subscriber.subscribe(query, _push))
    logger.info(
        "Live stock subscription opened for user %s (%d open)",
        user.uid,
        await manager.get_connection_count(),
    )
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        await manager.disconnect(websocket)
