"""
Health check router.

Liveness endpoint that also reports the state of the price cache:
whether the expiry sweeper is running and how many entries it holds.
Before the lifespan has started there is no cache, which reads as a
stopped sweeper with nothing cached.
"""

from fastapi import APIRouter, Request

from app.core.config import settings
from app.interfaces.pricing.schemas import HealthResponse

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Application version plus price cache sweeper and entry count.",
)
def health_check(request: Request) -> HealthResponse:
    """Return liveness, version and price cache state."""
    cache = getattr(request.app.state, "cache", None)
    if cache is None:
        return HealthResponse(status="ok", version=settings.version)

    stats = cache.stats()
    return HealthResponse(
        status="ok",
        version=settings.version,
        cache_sweeper_running=cache.is_running,
        cached_entries=sum(ns["count"] for ns in stats.values()),
    )
