"""OpenAPI metadata and customization utilities.

Enriches the generated OpenAPI schema with tag descriptions and documents
the rate limit headers on throttled responses. Keeps documentation concerns
decoupled from the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

_TAGS = [
    {
        "name": "Podcast",
        "description": "Script generation and text-to-speech through Gemini.",
    },
    {
        "name": "Health",
        "description": "Liveness checks (not rate limited).",
    },
]

_RATE_LIMIT_HEADERS = {
    "Retry-After": {"description": "Seconds until the window resets.", "schema": {"type": "integer"}},
    "X-RateLimit-Limit": {"description": "Requests allowed per window.", "schema": {"type": "integer"}},
    "X-RateLimit-Remaining": {"description": "Requests left in the window.", "schema": {"type": "integer"}},
    "X-RateLimit-Reset": {"description": "UNIX time the window resets.", "schema": {"type": "integer"}},
}


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and rate limit headers."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in _TAGS:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for methods in schema.get("paths", {}).values():
            for method_obj in methods.values():
                if not isinstance(method_obj, dict):
                    continue
                throttled = method_obj.get("responses", {}).get("429")
                if throttled is not None:
                    throttled.setdefault("headers", dict(_RATE_LIMIT_HEADERS))

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
