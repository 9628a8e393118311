"""Raw ASGI helpers shared by the middleware."""

import json
from typing import Any, Callable


def get_header(scope: dict, name: str) -> str | None:
    """Return first header value for name (case-insensitive). Headers are (bytes, bytes)."""
    want = name.lower().encode()
    for k, v in scope.get("headers", []):
        if k.lower() == want:
            return v.decode("utf-8", errors="replace")
    return None


def with_response_header(message: dict, name: str, value: str) -> dict:
    """Append a header to an http.response.start message."""
    if message["type"] == "http.response.start":
        headers = list(message.get("headers", []))
        headers.append((name.encode(), value.encode()))
        message["headers"] = headers
    return message


async def send_error(
    send: Callable, status: int, error: str, message: str, details: dict[str, Any]
) -> None:
    """Send a JSON error body shaped like the exception handlers' responses."""
    body = json.dumps({"error": error, "message": message, "details": details}).encode()
    await send({
        "type": "http.response.start",
        "status": status,
        "headers": [(b"content-type", b"application/json")],
    })
    await send({"type": "http.response.body", "body": body, "more_body": False})
