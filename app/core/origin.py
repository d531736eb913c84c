"""Server-side origin check for browser requests.

CORSMiddleware only decides which response headers a browser sees; the route
still runs for a disallowed origin. This dependency refuses such requests
before any provider call or rate limit budget is spent.

Requests without an Origin header (curl, server-to-server) are accepted.
"""

from __future__ import annotations

import logging

from fastapi import Request

from app.core.config import settings
from app.core.errors import OriginNotAllowedAppError

logger = logging.getLogger(__name__)


def is_origin_allowed(origin: str | None, allowed_origins: list[str]) -> bool:
    """Return True when ``origin`` may call the API.

    Examples:
        >>> is_origin_allowed(None, ["http://a.test"])
        True
        >>> is_origin_allowed("http://b.test", ["*"])
        True
        >>> is_origin_allowed("http://b.test", ["http://a.test"])
        False
    """
    if not origin:
        return True
    return "*" in allowed_origins or origin in allowed_origins


async def verify_origin(request: Request) -> None:
    """Reject requests whose Origin is not configured in ALLOWED_ORIGINS.

    Raises:
        OriginNotAllowedAppError: 403 for a disallowed origin.
    """
    origin = request.headers.get("origin")
    if is_origin_allowed(origin, settings.server.allowed_origins_list):
        return

    logger.warning(
        "origin.rejected",
        extra={"origin": origin, "request_path": request.url.path},
    )
    raise OriginNotAllowedAppError(
        code="origin_not_allowed",
        message="Origin not allowed.",
    )
