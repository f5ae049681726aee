"""
HTTP Middleware
===============

Body size limit, request ids and access logging.
"""

import json
import time
import uuid
from typing import Any, List

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from html_to_image.config.logging import get_logger

logger = get_logger(__name__)


class BodySizeLimitMiddleware:
    """
    Reject request bodies larger than ``max_body_size`` bytes.

    The check runs on ``Content-Length`` and again on the streamed byte
    count, before the body reaches the route's JSON parsing.
    """

    def __init__(self, app: ASGIApp, max_body_size: int) -> None:
        self.app = app
        self.max_body_size = max_body_size

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        for name, value in scope.get("headers", []):
            if name == b"content-length":
                try:
                    declared = int(value)
                except ValueError:
                    await self._reject(send, 400, "invalid request: malformed Content-Length")
                    return
                if declared > self.max_body_size:
                    await self._reject_too_large(send)
                    return

        messages: List[Message] = []
        received = 0
        while True:
            message = await receive()
            if message["type"] == "http.disconnect":
                return
            messages.append(message)
            received += len(message.get("body", b""))
            if received > self.max_body_size:
                await self._reject_too_large(send)
                return
            if not message.get("more_body", False):
                break

        async def replay() -> Message:
            if messages:
                return messages.pop(0)
            return await receive()

        await self.app(scope, replay, send)

    async def _reject_too_large(self, send: Send) -> None:
        await self._reject(send, 413, f"request body exceeds {self.max_body_size} bytes")

    async def _reject(self, send: Send, status: int, message: str) -> None:
        body = json.dumps({"error": message}).encode("utf-8")
        await send(
            {
                "type": "http.response.start",
                "status": status,
                "headers": [
                    (b"content-type", b"application/json"),
                    (b"content-length", str(len(body)).encode("ascii")),
                ],
            }
        )
        await send({"type": "http.response.body", "body": body})


async def add_request_id(request: Any, call_next: Any) -> Any:
    """Add a request ID to every request and log one access line."""
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id
    started = time.perf_counter()

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id

    logger.info(
        "HTTP request",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round((time.perf_counter() - started) * 1000, 2),
        request_id=request_id,
    )
    return response
