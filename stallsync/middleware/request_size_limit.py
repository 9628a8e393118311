"""Request body size limit middleware (413 above MAX_REQUEST_SIZE).

Checks Content-Length up front and counts streamed (chunked) bodies as they
arrive, so large CSV imports are rejected before reaching the route.
"""

from typing import Callable

from stallsync.middleware._asgi import get_header, send_error


async def _reject(send: Callable, max_bytes: int, actual: int) -> None:
    await send_error(
        send, 413, "PAYLOAD_TOO_LARGE",
        f"Request body must be at most {max_bytes} bytes",
        {"max_bytes": max_bytes, "content_length": actual},
    )


def RequestSizeLimitMiddleware(app: Callable, max_bytes: int) -> Callable:
    """Reject requests whose body exceeds max_bytes. Raw ASGI."""

    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return
        declared = get_header(scope, "content-length")
        if declared and declared.isdigit():
            if int(declared) > max_bytes:
                await _reject(send, max_bytes, int(declared))
                return
            await app(scope, receive, send)
            return

        received = 0
        rejected = False

        async def counting_receive() -> dict:
            nonlocal received, rejected
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > max_bytes:
                    rejected = True
                    await _reject(send, max_bytes, received)
                    return {"type": "http.disconnect"}
            return message

        async def guarded_send(message: dict) -> None:
            if not rejected:
                await send(message)

        await app(scope, counting_receive, guarded_send)

    return asgi_app
