"""
Adapter: Finnhub stock quotes and symbol search.

Implements StockQuoteProvider and SymbolSearchProvider ports.
All Finnhub-specific field names (c, d, dp, h, l, o, pc) are confined here.
"""

import logging
from typing import Any, Optional

import httpx

from app.domain.pricing.entities import AssetClass, PriceQuote, SearchResult
from app.domain.pricing.errors import ProviderError, ProviderErrorKind
from app.domain.pricing.ports import StockQuoteProvider, SymbolSearchProvider
from app.infrastructure.pricing.http import as_float, get_json, is_usable_price

logger = logging.getLogger(__name__)

PROVIDER = "finnhub"


def _check_soft_error(payload: Any) -> None:
    """Finnhub reports bad keys and limits as a 200 with an ``error`` field."""
    if not isinstance(payload, dict):
        raise ProviderError(ProviderErrorKind.MALFORMED, PROVIDER, "expected a JSON object")
    message = payload.get("error")
    if message:
        kind = (
            ProviderErrorKind.RATE_LIMITED
            if "limit" in str(message).lower()
            else ProviderErrorKind.UNAVAILABLE
        )
        raise ProviderError(kind, PROVIDER, str(message))


def _map_quote(symbol: str, payload: dict[str, Any]) -> PriceQuote:
    """Map a /quote payload to a PriceQuote.

    Finnhub answers unknown tickers with a current price of 0 instead
    of an error; that sentinel, like any non-finite price, becomes
    NOT_FOUND here.
    """
    try:
        price = as_float(payload.get("c"))
        if not is_usable_price(price):
            raise ProviderError(ProviderErrorKind.NOT_FOUND, PROVIDER, f"no price for {symbol}")
        return PriceQuote(
            symbol=symbol,
            price=price,
            change=as_float(payload.get("d")) or 0.0,
            change_percent=as_float(payload.get("dp")) or 0.0,
            asset_class=AssetClass.STOCK,
            high=as_float(payload.get("h")),
            low=as_float(payload.get("l")),
            open=as_float(payload.get("o")),
            previous_close=as_float(payload.get("pc")),
        )
    except (TypeError, ValueError) as exc:
        raise ProviderError(ProviderErrorKind.MALFORMED, PROVIDER, str(exc)) from exc


class FinnhubAdapter(StockQuoteProvider, SymbolSearchProvider):
    """Concrete adapter for Finnhub's quote and search endpoints."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: Optional[str],
        base_url: str = "https://finnhub.io/api/v1",
    ) -> None:
        self._client = client
        self._api_key = api_key or ""
        self._base_url = base_url.rstrip("/")

    async def fetch_quote(self, symbol: str) -> PriceQuote:
        """Return the current quote for a stock ticker.

        Raises:
            ProviderError: NOT_FOUND for unknown tickers, otherwise the
                transport/status kind reported by the HTTP layer.
        """
        logger.info("Finnhub quote request for %s", symbol)
        payload = await get_json(
            self._client,
            PROVIDER,
            f"{self._base_url}/quote",
            params={"symbol": symbol, "token": self._api_key},
        )
        _check_soft_error(payload)
        return _map_quote(symbol, payload)

    async def search(self, query: str) -> list[SearchResult]:
        """Return raw search hits in Finnhub's order."""
        logger.info("Finnhub search request for %r", query)
        payload = await get_json(
            self._client,
            PROVIDER,
            f"{self._base_url}/search",
            params={"q": query, "token": self._api_key},
        )
        _check_soft_error(payload)

        items = payload.get("result") or []
        if not isinstance(items, list):
            raise ProviderError(ProviderErrorKind.MALFORMED, PROVIDER, "result is not a list")

        return [
            SearchResult(
                symbol=str(item.get("symbol") or ""),
                name=str(item.get("description") or ""),
                type=str(item.get("type") or ""),
            )
            for item in items
            if isinstance(item, dict)
        ]
