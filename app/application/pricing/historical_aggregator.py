"""
Use case: Price histories and holdings-weighted portfolio value history.

Input: a ticker and a day window, or a list of HoldingWeight
Output: HistoryResult for one asset, list[HistoryPoint] for a portfolio
Side effects: Successful provider fetches are cached per symbol and window.
Failure cases: ValidationError for a window outside 1-365 days.
Single-asset lookups propagate ProviderError/UnsupportedSymbolError;
the portfolio aggregation never does, it drops the failing holding.
"""

import asyncio
import logging
from collections import defaultdict
from typing import Awaitable, Callable, Optional

from app.application.pricing.cache_lookup import cached_fetch, fresh_hit
from app.application.pricing.dtos import CachedValue, HistoryResult
from app.domain.pricing.entities import (
    AssetClass,
    CacheNamespace,
    HistoryPoint,
    HoldingWeight,
)
from app.domain.pricing.errors import (
    PricingDomainError,
    UnsupportedSymbolError,
    ValidationError,
)
from app.domain.pricing.ports import (
    CacheStore,
    CryptoHistoryProvider,
    StockHistoryProvider,
)
from app.domain.pricing.symbol_resolver import SymbolResolver, normalize_symbol

logger = logging.getLogger(__name__)

MIN_DAYS = 1
MAX_DAYS = 365


def validate_days(days: int) -> None:
    """Reject history windows outside the supported range."""
    if not (MIN_DAYS <= days <= MAX_DAYS):
        raise ValidationError(f"days must be between {MIN_DAYS} and {MAX_DAYS}, got {days}")


def scale_series(series: list[HistoryPoint], quantity: float) -> list[HistoryPoint]:
    """Turn a price series into a holding value series."""
    return [HistoryPoint(timestamp=p.timestamp, price=p.price * quantity) for p in series]


def merge_series(series_list: list[list[HistoryPoint]]) -> list[HistoryPoint]:
    """Sum values sharing a timestamp across series, sorted ascending.

    Timestamps present in only some series still contribute; values are
    rounded to 2 decimals only after summing.
    """
    totals: dict[int, float] = defaultdict(float)
    for series in series_list:
        for point in series:
            totals[point.timestamp] += point.price
    return [
        HistoryPoint(timestamp=timestamp, price=round(total, 2))
        for timestamp, total in sorted(totals.items())
    ]


class HistoricalAggregator:
    """Serves cached price histories and aggregates them per portfolio.

    Histories go through the same cache-first discipline as quotes:
    stocks keyed by ``TICKER:days``, crypto by ``coin-id:days``.
    Portfolio fetches run concurrently, but successive calls to the
    same provider family are staggered by a fixed courtesy delay.
    """

    def __init__(
        self,
        cache: CacheStore,
        resolver: SymbolResolver,
        stock_history: StockHistoryProvider,
        crypto_history: CryptoHistoryProvider,
        stock_delay_seconds: float = 0.2,
        crypto_delay_seconds: float = 0.3,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._cache = cache
        self._resolver = resolver
        self._stock_history = stock_history
        self._crypto_history = crypto_history
        self._delays = {
            AssetClass.STOCK: stock_delay_seconds,
            AssetClass.CRYPTO: crypto_delay_seconds,
        }
        self._sleep = sleep

    # ------------------------------------------------------------------
    # Single-asset history
    # ------------------------------------------------------------------

    async def get_stock_history(self, symbol: str, days: int = 30) -> HistoryResult:
        """Return daily closes of a stock for the last ``days`` days.

        Crypto tickers are served from the crypto history provider.

        Raises:
            ValidationError: On a blank symbol or an unsupported window.
            ProviderError: On a hard miss.
        """
        validate_days(days)
        ticker = normalize_symbol(symbol)
        result = await self._fetch(self._resolver.classify(ticker), ticker, days)
        return _to_history_result(ticker, days, result)

    async def get_crypto_history(self, symbol: str, days: int = 30) -> HistoryResult:
        """Return the price series of a crypto asset for the last ``days`` days.

        Raises:
            ValidationError: On a blank symbol or an unsupported window.
            UnsupportedSymbolError: If the ticker has no coin mapping.
            ProviderError: On a hard miss.
        """
        validate_days(days)
        ticker = normalize_symbol(symbol)
        result = await self._fetch(AssetClass.CRYPTO, ticker, days)
        return _to_history_result(ticker, days, result)

    # ------------------------------------------------------------------
    # Portfolio aggregation
    # ------------------------------------------------------------------

    async def portfolio_history(
        self,
        holdings: list[HoldingWeight],
        days: int = 30,
        asset_class: Optional[AssetClass] = None,
    ) -> list[HistoryPoint]:
        """Return the combined value of all holdings over time.

        Args:
            holdings: Holdings to value; duplicates of one asset are merged.
            days: Look-back window in days.
            asset_class: Only aggregate holdings of this class.

        Returns:
            Portfolio value per timestamp, ascending. Empty when there are
            no holdings or no holding produced any history.

        Raises:
            ValidationError: If ``days`` is outside 1-365.
        """
        if not holdings:
            return []
        validate_days(days)

        positions = self._group_positions(holdings, days, asset_class)
        if not positions:
            return []

        pending_per_class: dict[AssetClass, int] = defaultdict(int)
        tasks = []
        for (cls, key), (ticker, quantity) in positions.items():
            delay = 0.0
            if fresh_hit(self._cache, _namespace(cls), key) is None:
                delay = pending_per_class[cls] * self._delays[cls]
                pending_per_class[cls] += 1
            tasks.append(self._holding_series(cls, ticker, quantity, days, delay))

        results = await asyncio.gather(*tasks)
        series_list = [series for series in results if series is not None]
        logger.info(
            "Portfolio history: %d/%d holdings contributed (%d days)",
            len(series_list),
            len(positions),
            days,
        )
        if not series_list:
            return []
        return merge_series(series_list)

    def _group_positions(
        self, holdings: list[HoldingWeight], days: int, only: Optional[AssetClass]
    ) -> dict[tuple[AssetClass, str], tuple[str, float]]:
        """Collapse holdings onto one position per cache key."""
        positions: dict[tuple[AssetClass, str], tuple[str, float]] = {}
        for holding in holdings:
            try:
                ticker = normalize_symbol(holding.symbol)
            except ValidationError:
                logger.warning("Skipping holding with a blank symbol")
                continue
            if holding.quantity <= 0:
                logger.debug("Skipping %s with quantity %s", ticker, holding.quantity)
                continue

            cls = self._resolver.classify(ticker)
            if only is not None and cls is not only:
                continue
            try:
                key = self._cache_key(cls, ticker, days)
            except UnsupportedSymbolError as exc:
                logger.warning("Excluding %s from portfolio history: %s", ticker, exc)
                continue
            previous = positions.get((cls, key))
            quantity = holding.quantity + (previous[1] if previous else 0.0)
            positions[(cls, key)] = (ticker, quantity)
        return positions

    async def _holding_series(
        self,
        cls: AssetClass,
        ticker: str,
        quantity: float,
        days: int,
        delay: float,
    ) -> Optional[list[HistoryPoint]]:
        if delay > 0:
            await self._sleep(delay)
        try:
            result = await self._fetch(cls, ticker, days)
        except PricingDomainError as exc:
            logger.warning("Excluding %s from portfolio history: %s", ticker, exc)
            return None
        return scale_series(result.value, quantity)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _cache_key(self, cls: AssetClass, ticker: str, days: int) -> str:
        if cls is AssetClass.CRYPTO:
            return f"{self._resolver.to_provider_id(ticker)}:{days}"
        return f"{ticker}:{days}"

    async def _fetch(self, cls: AssetClass, ticker: str, days: int) -> CachedValue:
        key = self._cache_key(cls, ticker, days)
        if cls is AssetClass.CRYPTO:
            coin_id = self._resolver.to_provider_id(ticker)
            return await cached_fetch(
                self._cache,
                CacheNamespace.CRYPTO_HISTORY,
                key,
                lambda: self._crypto_history.fetch_history(coin_id, days),
            )
        return await cached_fetch(
            self._cache,
            CacheNamespace.STOCK_HISTORY,
            key,
            lambda: self._stock_history.fetch_history(ticker, days),
        )


def _namespace(cls: AssetClass) -> CacheNamespace:
    if cls is AssetClass.CRYPTO:
        return CacheNamespace.CRYPTO_HISTORY
    return CacheNamespace.STOCK_HISTORY


def _to_history_result(ticker: str, days: int, result: CachedValue) -> HistoryResult:
    return HistoryResult(
        symbol=ticker,
        days=days,
        history=list(result.value),
        cached=result.cached,
        stale=result.stale,
    )
