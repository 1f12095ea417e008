"""
Centralized error handlers for FastAPI.

Maps pricing domain errors to HTTP responses.
No stack traces, provider URLs or API keys are exposed to clients.
All error responses use the ErrorResponse schema.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.domain.pricing.errors import (
    PricingDomainError,
    ProviderError,
    ProviderErrorKind,
    UnsupportedSymbolError,
    ValidationError,
)

logger = logging.getLogger(__name__)

HTTP_400 = 400
HTTP_404 = 404
HTTP_500 = 500
HTTP_502 = 502
HTTP_503 = 503

PROVIDER_STATUS = {
    ProviderErrorKind.NOT_FOUND: HTTP_404,
    ProviderErrorKind.RATE_LIMITED: HTTP_503,
}

PROVIDER_MESSAGES = {
    ProviderErrorKind.NOT_FOUND: "Symbol not found",
    ProviderErrorKind.RATE_LIMITED: "Market data provider rate limited",
    ProviderErrorKind.TIMEOUT: "Market data provider timed out",
    ProviderErrorKind.MALFORMED: "Market data provider returned an invalid response",
    ProviderErrorKind.UNAVAILABLE: "Market data provider unavailable",
}


def _error_response(status_code: int, error: str, detail: str | None = None) -> JSONResponse:
    """Build a consistent JSON error response."""
    body: dict[str, str | None] = {"error": error}
    if detail:
        body["detail"] = detail
    return JSONResponse(status_code=status_code, content=body)


def register_error_handlers(app: FastAPI) -> None:
    """Register all domain error handlers on the FastAPI application.

    Args:
        app: The FastAPI application instance.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation(
        _request: Request, exc: ValidationError
    ) -> JSONResponse:
        """Handle rejected input (blank symbols, bad windows, short queries)."""
        logger.info("Rejected request: %s", exc.message)
        return _error_response(HTTP_400, "Invalid request", exc.message)

    @app.exception_handler(UnsupportedSymbolError)
    async def handle_unsupported_symbol(
        _request: Request, exc: UnsupportedSymbolError
    ) -> JSONResponse:
        """Handle symbols with no provider mapping."""
        logger.warning("Unsupported symbol: %s", exc.symbol)
        return _error_response(HTTP_404, "Symbol not supported", exc.symbol)

    @app.exception_handler(ProviderError)
    async def handle_provider(
        _request: Request, exc: ProviderError
    ) -> JSONResponse:
        """Handle hard misses: the provider failed and no cache was usable."""
        status_code = PROVIDER_STATUS.get(exc.kind, HTTP_502)
        logger.warning(
            "Provider failure surfaced to client: %s %s", exc.provider, exc.kind.value
        )
        return _error_response(status_code, PROVIDER_MESSAGES[exc.kind])

    @app.exception_handler(PricingDomainError)
    async def handle_pricing_domain(
        _request: Request, exc: PricingDomainError
    ) -> JSONResponse:
        """Catch-all for unhandled pricing domain errors."""
        logger.error("Unhandled pricing domain error: %s", exc.message)
        return _error_response(HTTP_500, "Internal server error")

    @app.exception_handler(Exception)
    async def handle_unexpected(
        _request: Request, exc: Exception
    ) -> JSONResponse:
        """Catch-all for unexpected errors. Never exposes internals."""
        logger.exception("Unexpected error: %s", type(exc).__name__)
        return _error_response(HTTP_500, "Internal server error")
