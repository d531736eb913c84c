from __future__ import annotations

"""Application factory for the FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) so
tests can build fresh instances.
"""

import logging

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes import health_router, podcast_router
from app.core.config import settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import BodySizeLimitMiddleware, request_id_middleware
from app.core.openapi import apply_openapi_customizations
from app.core.origin import verify_origin
from app.core.rate_limit import enforce_global_rate_limit

logger = logging.getLogger(__name__)

API_PREFIX = "/api"


def _add_cors(app: FastAPI) -> None:
    """Restrict cross-origin browser access to the configured origins.

    CORSMiddleware answers preflights and sets response headers; non-preflight
    requests from other origins are refused by ``verify_origin``.
    """

    origins = settings.server.allowed_origins_list
    allow_any = "*" in origins

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_any else origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", settings.log.request_id_header],
        expose_headers=[
            settings.log.request_id_header,
            "Retry-After",
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
            "X-RateLimit-Reset",
        ],
        max_age=600,
    )
    logger.info(
        "cors.configured",
        extra={"allowed_origins": origins, "allow_any_origin": allow_any},
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Middleware order, outermost first: CORS, request id, body size limit.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="PromptCast API",
        description=(
            "Proxy between the PromptCast web client and Google Gemini: "
            "generates podcast scripts and synthesizes speech, with CORS "
            "restriction, per-client rate limiting and input validation."
        ),
        version="0.1.0",
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )

    # Middleware (last registered runs first)
    app.add_middleware(BodySizeLimitMiddleware)
    app.middleware("http")(request_id_middleware)
    _add_cors(app)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(
        podcast_router,
        prefix=API_PREFIX,
        dependencies=[Depends(verify_origin), Depends(enforce_global_rate_limit)],
    )
    app.include_router(health_router, prefix=API_PREFIX)

    apply_openapi_customizations(app)

    logger.info(
        "app.created",
        extra={
            "app_env": settings.app_env,
            "script_model": settings.gemini.script_model,
            "tts_model": settings.gemini.tts_model,
            "rate_limit_enabled": settings.rate_limit.enabled,
        },
    )
    return app
