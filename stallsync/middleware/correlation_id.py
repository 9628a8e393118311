"""Correlation ID middleware.

Propagates X-Correlation-ID across services; falls back to the request id.
"""

import uuid
from typing import Callable

from stallsync.middleware._asgi import get_header, with_response_header
from stallsync.middleware.request_id import sanitize_request_id


def CorrelationIDMiddleware(app: Callable, header_name: str = "X-Correlation-ID") -> Callable:
    """Add or forward the correlation id header. Raw ASGI."""

    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return
        raw = get_header(scope, header_name)
        if raw:
            correlation_id = sanitize_request_id(raw)
        else:
            correlation_id = scope.get("state", {}).get("request_id") or str(uuid.uuid4())
        scope.setdefault("state", {})["correlation_id"] = correlation_id

        async def send_wrapper(message: dict) -> None:
            await send(with_response_header(message, header_name, correlation_id))

        await app(scope, receive, send_wrapper)

    return asgi_app
