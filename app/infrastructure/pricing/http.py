"""
Shared HTTP plumbing for the market-data adapters.

Builds the process-wide httpx.AsyncClient and turns every transport or
status failure into a ProviderError so adapters only deal with payloads.
"""

import logging
import math
from typing import Any, Mapping

import httpx

from app.domain.pricing.errors import ProviderError, ProviderErrorKind

logger = logging.getLogger(__name__)

USER_AGENT = "papertrade-pricing/0.1"


def build_http_client(timeout_seconds: float) -> httpx.AsyncClient:
    """Create the shared client used by every provider adapter."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout_seconds),
        headers={"Accept": "application/json", "User-Agent": USER_AGENT},
        follow_redirects=True,
    )


def _kind_for_status(status_code: int) -> ProviderErrorKind:
    if status_code == 429:
        return ProviderErrorKind.RATE_LIMITED
    if status_code == 404:
        return ProviderErrorKind.NOT_FOUND
    return ProviderErrorKind.UNAVAILABLE


async def get_json(
    client: httpx.AsyncClient,
    provider: str,
    url: str,
    params: Mapping[str, Any] | None = None,
) -> Any:
    """GET a JSON document, raising ProviderError on any failure.

    Args:
        client: Shared async HTTP client (carries the timeout).
        provider: Provider name used in errors and logs.
        url: Absolute endpoint URL.
        params: Query parameters, API key included.

    Returns:
        The decoded JSON body.

    Raises:
        ProviderError: On timeout, transport error, non-2xx status
            or an undecodable body.
    """
    try:
        response = await client.get(url, params=params)
    except httpx.TimeoutException as exc:
        raise ProviderError(ProviderErrorKind.TIMEOUT, provider, "request timed out") from exc
    except httpx.HTTPError as exc:
        raise ProviderError(
            ProviderErrorKind.UNAVAILABLE, provider, type(exc).__name__
        ) from exc

    if response.status_code >= 400:
        kind = _kind_for_status(response.status_code)
        logger.warning("%s responded HTTP %d", provider, response.status_code)
        raise ProviderError(kind, provider, f"HTTP {response.status_code}")

    try:
        return response.json()
    except ValueError as exc:
        raise ProviderError(
            ProviderErrorKind.MALFORMED, provider, "response is not JSON"
        ) from exc


def as_float(value: Any) -> float | None:
    """Convert a numeric-ish payload field to float, None when absent."""
    if value is None or value == "":
        return None
    return float(value)


def is_usable_price(price: float | None) -> bool:
    """True for a finite, strictly positive price."""
    return price is not None and math.isfinite(price) and price > 0
