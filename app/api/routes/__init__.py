from __future__ import annotations

from app.api.routes.health import router as health_router
from app.api.routes.podcast import router as podcast_router

__all__ = ["health_router", "podcast_router"]
