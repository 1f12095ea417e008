"""
Application entry point.

Creates the FastAPI application and wires together:
- Routers (pricing, historical, health)
- Error handlers (centralized domain-to-HTTP mapping)
- Rate limiting
- Logging configuration
- Lifespan resources (shared HTTP client, cache store and its sweeper)

No business logic belongs here.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from app.core.config import settings
from app.infrastructure.pricing.cache_store import InMemoryCacheStore
from app.infrastructure.pricing.http import build_http_client
from app.interfaces.health import router as health_router
from app.interfaces.pricing.dependencies import build_pricing_services
from app.interfaces.pricing.router import historical_router, prices_router
from app.shared.errors.handlers import register_error_handlers
from app.shared.logging import configure_logging
from app.shared.security.rate_limiting import limiter, rate_limit_exceeded_handler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: own the HTTP client and the cache sweeper."""
    client = build_http_client(settings.provider_timeout_seconds)
    cache = InMemoryCacheStore(
        settings.cache_policies(),
        sweep_interval_seconds=settings.cache_sweep_interval_seconds,
    )
    app.state.cache = cache
    app.state.pricing = build_pricing_services(settings, client, cache)
    await cache.start()
    logger.info("Pricing services started")

    try:
        yield
    finally:
        await cache.stop()
        await client.aclose()
        logger.info("Pricing services stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Registers routers, error handlers, and rate limiting.
    This is the composition root of the application.

    Returns:
        A fully configured FastAPI application instance.
    """
    configure_logging(level=settings.log_level)

    app = FastAPI(
        title=settings.project_name,
        version=settings.version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    # --- Rate Limiting ---
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # --- Error Handlers ---
    register_error_handlers(app)

    # --- Routers ---
    app.include_router(health_router, prefix="/api/v1")
    app.include_router(prices_router, prefix="/api/v1")
    app.include_router(historical_router, prefix="/api/v1")

    return app


app = create_app()
