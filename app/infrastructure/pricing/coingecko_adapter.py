"""
Adapter: CoinGecko crypto quotes and market charts.

Implements CryptoQuoteProvider and CryptoHistoryProvider ports.
Quotes for any number of coins are fetched with a single
/simple/price request; history comes from /coins/{id}/market_chart.
"""

import logging
from typing import Any, Mapping, Optional

import httpx

from app.domain.pricing.entities import AssetClass, HistoryPoint, PriceQuote
from app.domain.pricing.errors import ProviderError, ProviderErrorKind
from app.domain.pricing.ports import CryptoHistoryProvider, CryptoQuoteProvider
from app.infrastructure.pricing.http import as_float, get_json, is_usable_price

logger = logging.getLogger(__name__)

PROVIDER = "coingecko"
VS_CURRENCY = "usd"


def _check_soft_error(payload: Any) -> None:
    """CoinGecko wraps throttling and bad keys in a ``status`` object."""
    if not isinstance(payload, dict):
        raise ProviderError(ProviderErrorKind.MALFORMED, PROVIDER, "expected a JSON object")
    status = payload.get("status")
    if isinstance(status, dict) and status.get("error_code"):
        code = status.get("error_code")
        kind = (
            ProviderErrorKind.RATE_LIMITED
            if code == 429
            else ProviderErrorKind.UNAVAILABLE
        )
        raise ProviderError(kind, PROVIDER, str(status.get("error_message") or code))


def absolute_change(price: float, change_percent: float) -> float:
    """Derive the absolute 24h change from the current price and percent change."""
    if change_percent <= -100:
        return -price
    return price * change_percent / (100 + change_percent)


def _map_quote(symbol: str, data: Any) -> Optional[PriceQuote]:
    """Map one coin's /simple/price entry, None when there is no usable price."""
    if not isinstance(data, dict):
        return None
    price = as_float(data.get(VS_CURRENCY))
    if not is_usable_price(price):
        return None
    change_percent = as_float(data.get(f"{VS_CURRENCY}_24h_change")) or 0.0
    return PriceQuote(
        symbol=symbol,
        price=price,
        change=absolute_change(price, change_percent),
        change_percent=change_percent,
        asset_class=AssetClass.CRYPTO,
        volume=as_float(data.get(f"{VS_CURRENCY}_24h_vol")),
    )


class CoinGeckoAdapter(CryptoQuoteProvider, CryptoHistoryProvider):
    """Concrete adapter for the CoinGecko public API."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: Optional[str] = None,
        base_url: str = "https://api.coingecko.com/api/v3",
    ) -> None:
        self._client = client
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")

    def _auth_params(self) -> dict[str, str]:
        if self._api_key:
            return {"x_cg_demo_api_key": self._api_key}
        return {}

    async def fetch_quotes(self, coins: Mapping[str, str]) -> dict[str, PriceQuote]:
        """Fetch quotes for every coin in one request.

        Args:
            coins: Coin id mapped to the canonical ticker for the quote.

        Returns:
            Quotes keyed by coin id; coins without a price are omitted.
        """
        if not coins:
            return {}

        logger.info("CoinGecko price request for %d coins", len(coins))
        payload = await get_json(
            self._client,
            PROVIDER,
            f"{self._base_url}/simple/price",
            params={
                "ids": ",".join(coins),
                "vs_currencies": VS_CURRENCY,
                "include_24hr_change": "true",
                "include_24hr_vol": "true",
                **self._auth_params(),
            },
        )
        _check_soft_error(payload)

        quotes: dict[str, PriceQuote] = {}
        for coin_id, symbol in coins.items():
            try:
                quote = _map_quote(symbol, payload.get(coin_id))
            except (TypeError, ValueError) as exc:
                raise ProviderError(ProviderErrorKind.MALFORMED, PROVIDER, str(exc)) from exc
            if quote is None:
                logger.warning("CoinGecko returned no price for %s", coin_id)
                continue
            quotes[coin_id] = quote
        return quotes

    async def fetch_history(self, coin_id: str, days: int) -> list[HistoryPoint]:
        """Return the USD price series of a coin for the last ``days`` days."""
        logger.info("CoinGecko market chart request for %s (%d days)", coin_id, days)
        params: dict[str, Any] = {"vs_currency": VS_CURRENCY, "days": days}
        if days > 1:
            params["interval"] = "daily"
        payload = await get_json(
            self._client,
            PROVIDER,
            f"{self._base_url}/coins/{coin_id}/market_chart",
            params={**params, **self._auth_params()},
        )
        _check_soft_error(payload)

        prices = payload.get("prices")
        if not isinstance(prices, list):
            raise ProviderError(ProviderErrorKind.MALFORMED, PROVIDER, "missing prices series")

        points = []
        try:
            for ts, raw in prices:
                price = as_float(raw)
                if is_usable_price(price):
                    points.append(HistoryPoint(timestamp=int(ts), price=price))
        except (TypeError, ValueError) as exc:
            raise ProviderError(ProviderErrorKind.MALFORMED, PROVIDER, str(exc)) from exc
        return sorted(points, key=lambda p: p.timestamp)
