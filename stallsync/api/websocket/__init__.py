"""WebSocket connection manager.

Used by the live stock endpoint to track connections and their subscriptions.
"""

from stallsync.api.websocket.manager import ConnectionManager

__all__ = ["ConnectionManager"]
