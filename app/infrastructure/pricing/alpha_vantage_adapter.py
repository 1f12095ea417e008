"""
Adapter: Alpha Vantage daily stock history.

Implements the StockHistoryProvider port with TIME_SERIES_DAILY.
The free tier is heavily rate limited and signals throttling with a
200 response carrying a ``Note`` or ``Information`` field.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

import httpx

from app.domain.pricing.entities import HistoryPoint
from app.domain.pricing.errors import ProviderError, ProviderErrorKind
from app.domain.pricing.ports import StockHistoryProvider
from app.infrastructure.pricing.http import as_float, get_json, is_usable_price

logger = logging.getLogger(__name__)

PROVIDER = "alpha_vantage"
SERIES_KEY = "Time Series (Daily)"
CLOSE_KEY = "4. close"
COMPACT_MAX_DAYS = 100


def _date_to_millis(day: str) -> int:
    """Convert a YYYY-MM-DD date to epoch millis at UTC midnight."""
    parsed = datetime.strptime(day, "%Y-%m-%d").replace(tzinfo=timezone.utc)
    return int(parsed.timestamp() * 1000)


def _check_soft_error(symbol: str, payload: Any) -> None:
    if not isinstance(payload, dict):
        raise ProviderError(ProviderErrorKind.MALFORMED, PROVIDER, "expected a JSON object")
    if payload.get("Note") or payload.get("Information"):
        raise ProviderError(ProviderErrorKind.RATE_LIMITED, PROVIDER, "request limit reached")
    if payload.get("Error Message"):
        raise ProviderError(ProviderErrorKind.NOT_FOUND, PROVIDER, f"unknown symbol {symbol}")


def _parse_series(series: dict[str, Any], days: int) -> list[HistoryPoint]:
    """Keep the newest ``days`` closes and return them oldest first.

    Days whose close is not a finite positive number are dropped.
    """
    newest_first = sorted(series.items(), key=lambda item: item[0], reverse=True)
    points = []
    for day, bar in newest_first[:days]:
        close = as_float(bar[CLOSE_KEY])
        if not is_usable_price(close):
            logger.warning("Skipping unusable close %r on %s", bar[CLOSE_KEY], day)
            continue
        points.append(HistoryPoint(timestamp=_date_to_millis(day), price=close))
    points.reverse()
    return points


class AlphaVantageAdapter(StockHistoryProvider):
    """Concrete adapter for Alpha Vantage's daily time series."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: Optional[str],
        base_url: str = "https://www.alphavantage.co/query",
    ) -> None:
        self._client = client
        self._api_key = api_key or ""
        self._base_url = base_url

    async def fetch_history(self, symbol: str, days: int) -> list[HistoryPoint]:
        """Return up to ``days`` daily closes for a ticker, oldest first.

        Raises:
            ProviderError: RATE_LIMITED on a throttling notice, NOT_FOUND
                for unknown tickers, MALFORMED when the series is missing.
        """
        logger.info("Alpha Vantage daily series request for %s (%d days)", symbol, days)
        payload = await get_json(
            self._client,
            PROVIDER,
            self._base_url,
            params={
                "function": "TIME_SERIES_DAILY",
                "symbol": symbol,
                "outputsize": "full" if days > COMPACT_MAX_DAYS else "compact",
                "apikey": self._api_key,
            },
        )
        _check_soft_error(symbol, payload)

        series = payload.get(SERIES_KEY)
        if not isinstance(series, dict) or not series:
            raise ProviderError(ProviderErrorKind.MALFORMED, PROVIDER, f"no daily series for {symbol}")

        try:
            return _parse_series(series, days)
        except (KeyError, TypeError, ValueError) as exc:
            raise ProviderError(ProviderErrorKind.MALFORMED, PROVIDER, str(exc)) from exc
