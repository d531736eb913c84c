from __future__ import annotations

from fastapi import APIRouter

from app.schemas.podcast import HealthResponse

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Liveness check for load balancers and monitoring.

    Touches no provider and no service state.
    """

    return HealthResponse(status="ok")
