"""WebSocket connection manager.

Holds active connections per user together with each connection's live
query subscription. Use via app.state.ws_manager (set in lifespan).
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from stallsync.application.interfaces.services import Subscription

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Tracks live connections; disconnecting cancels the connection's subscription.

    - Connections are grouped per user uid (connect requires the uid).
    - connection_count is lock-protected for concurrent access.
    """

    def __init__(self) -> None:
        self._connections_by_user: dict[str, set[WebSocket]] = {}
        self._websocket_to_user: dict[WebSocket, str] = {}
        self._subscriptions: dict[WebSocket, Subscription] = {}
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket, uid: str) -> None:
        """Accept and register a new connection for the given user."""
        await websocket.accept()
        async with self._lock:
            self._connections_by_user.setdefault(uid, set()).add(websocket)
            self._websocket_to_user[websocket] = uid

    async def attach(self, websocket: WebSocket, subscription: Subscription) -> None:
        """Bind a subscription to a registered connection."""
        async with self._lock:
            self._subscriptions[websocket] = subscription

    def _forget(self, websocket: WebSocket) -> Subscription | None:
        uid = self._websocket_to_user.pop(websocket, None)
        if uid and uid in self._connections_by_user:
            conns = self._connections_by_user[uid]
            conns.discard(websocket)
            if not conns:
                del self._connections_by_user[uid]
        return self._subscriptions.pop(websocket, None)

    async def disconnect(self, websocket: WebSocket) -> None:
        """Remove a connection and stop its subscription (call on disconnect)."""
        async with self._lock:
            subscription = self._forget(websocket)
        if subscription is not None:
            subscription.cancel()

    async def send(self, websocket: WebSocket, message: dict[str, Any]) -> bool:
        """Send JSON to one connection; a dead connection is disconnected and False returned."""
        if websocket.client_state != WebSocketState.CONNECTED:
            await self.disconnect(websocket)
            return False
        try:
            await websocket.send_json(message)
        except (RuntimeError, OSError) as e:
            logger.info("Dropping dead websocket: %s", e)
            await self.disconnect(websocket)
            return False
        return True

    async def get_connection_count(self) -> int:
        """Return the total number of active connections (lock-safe)."""
        async with self._lock:
            return sum(len(c) for c in self._connections_by_user.values())

    async def close_all(self) -> None:
        """Cancel every subscription (called at shutdown)."""
        async with self._lock:
            subscriptions = list(self._subscriptions.values())
            self._subscriptions.clear()
            self._connections_by_user.clear()
            self._websocket_to_user.clear()
        for subscription in subscriptions:
            subscription.cancel()
