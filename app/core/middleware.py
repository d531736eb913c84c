"""HTTP middleware for request correlation and request size limits.

The middleware here:
- Accepts an incoming X-Request-ID header or generates a UUID, stores it in
  contextvars for log correlation and echoes it on the response together with
  the request duration
- Rejects bodies larger than the configured limit before they are parsed,
  whether or not the client declares a Content-Length

Usage:
    app.add_middleware(BodySizeLimitMiddleware)
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from app.core.config import settings
from app.core.logging import clear_request_id, get_request_id, set_request_id

logger = logging.getLogger(__name__)


async def request_id_middleware(request: Request, call_next) -> Response:
    """HTTP middleware for request ID generation and propagation.

    If the client provides an X-Request-ID header (configurable via
    LOG_REQUEST_ID_HEADER), that value is used. Otherwise, a new UUID is
    generated. The ID is propagated back in the response headers and stored
    in contextvars for the duration of the request.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        Response: The response from the next handler with request_id and
            duration headers added.
    """

    header_name = settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
    finally:
        clear_request_id()

    duration_ms = (time.perf_counter() - start) * 1000
    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response


class BodySizeLimitMiddleware:
    """ASGI middleware rejecting request bodies above ``MAX_BODY_BYTES`` with 413.

    A declared Content-Length is checked before anything is read; a malformed
    one is rejected with 400. Bodies sent without Content-Length (chunked
    transfer encoding) are buffered while their bytes are counted and are
    rejected as soon as the total passes the limit, so at most ``max_bytes``
    are ever held in memory. An accepted buffered body is replayed to the
    application unchanged.

    Usage:
        app.add_middleware(BodySizeLimitMiddleware)
    """

    def __init__(self, app: ASGIApp, max_bytes: int | None = None) -> None:
        self.app = app
        self.max_bytes = max_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        # Read per request so configuration overrides apply without a restart
        max_bytes = self.max_bytes or settings.server.max_body_bytes
        path = scope.get("path", "")
        content_length = Headers(scope=scope).get("content-length")

        if content_length is not None:
            try:
                declared = int(content_length)
            except ValueError:
                response = _error_response(
                    status.HTTP_400_BAD_REQUEST,
                    code="invalid_content_length",
                    message="Invalid Content-Length header.",
                )
                await response(scope, receive, send)
                return

            if declared > max_bytes:
                await _reject_too_large(
                    scope, receive, send, received=declared, max_bytes=max_bytes, path=path
                )
                return

            await self.app(scope, receive, send)
            return

        chunks: list[bytes] = []
        received = 0
        more_body = True
        while more_body:
            message = await receive()
            if message["type"] != "http.request":
                # Client went away before finishing the body
                return
            chunk = message.get("body", b"")
            received += len(chunk)
            if received > max_bytes:
                await _reject_too_large(
                    scope, receive, send, received=received, max_bytes=max_bytes, path=path
                )
                return
            chunks.append(chunk)
            more_body = message.get("more_body", False)

        body = b"".join(chunks)
        body_sent = False

        async def replay_receive() -> Message:
            nonlocal body_sent
            if body_sent:
                return await receive()
            body_sent = True
            return {"type": "http.request", "body": body, "more_body": False}

        await self.app(scope, replay_receive, send)


async def _reject_too_large(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    received: int,
    max_bytes: int,
    path: str,
) -> None:
    logger.warning(
        "request.body_too_large",
        extra={
            "content_length": received,
            "max_bytes": max_bytes,
            "path": path,
        },
    )
    response = _error_response(
        status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        code="payload_too_large",
        message=f"Request body too large. Maximum size: {max_bytes} bytes.",
    )
    await response(scope, receive, send)


def _error_response(status_code: int, *, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": message, "code": code, "request_id": get_request_id()},
    )
