"""
Use case: Serve current prices through the shared quote cache.

Input: a ticker, or a list of PriceLookup for bulk requests
Output: QuoteResult (bulk: mapping of ticker to QuoteResult or None)
Side effects: Successful provider fetches overwrite cache entries.
Failure cases: ProviderError on a hard miss, UnsupportedSymbolError for
unmapped crypto tickers, ValidationError for blank or empty input.
"""

import asyncio
import logging
from typing import Any, Optional

from app.application.pricing.cache_lookup import cached_fetch, fresh_hit, stale_fallback
from app.application.pricing.dtos import CachedValue, PriceLookup, QuoteResult
from app.domain.pricing.entities import AssetClass, CacheNamespace, PriceQuote
from app.domain.pricing.errors import (
    PricingDomainError,
    ProviderError,
    ProviderErrorKind,
    UnsupportedSymbolError,
    ValidationError,
)
from app.domain.pricing.ports import CacheStore, CryptoQuoteProvider, StockQuoteProvider
from app.domain.pricing.symbol_resolver import SymbolResolver, normalize_symbol

logger = logging.getLogger(__name__)

CRYPTO_QUOTE_PROVIDER = "crypto_quote"


def _to_quote_result(result: CachedValue) -> QuoteResult:
    return QuoteResult(
        quote=result.value,
        cached=result.cached,
        stale=result.stale,
        cache_age=result.cache_age,
    )


class QuoteCacheService:
    """Orchestrates cache-first price lookups for stocks and crypto.

    Stock quotes are cached per ticker, crypto quotes per provider coin
    id so that every alias of a coin shares one entry. Bulk crypto
    lookups collapse into a single upstream call; bulk stock lookups
    fan out concurrently and isolate per-symbol failures.
    """

    def __init__(
        self,
        cache: CacheStore,
        resolver: SymbolResolver,
        stock_provider: StockQuoteProvider,
        crypto_provider: CryptoQuoteProvider,
    ) -> None:
        self._cache = cache
        self._resolver = resolver
        self._stock_provider = stock_provider
        self._crypto_provider = crypto_provider

    # ------------------------------------------------------------------
    # Single lookups
    # ------------------------------------------------------------------

    async def get_stock_price(self, symbol: str) -> QuoteResult:
        """Return the current price of a stock.

        Crypto tickers are routed to the crypto path so that a symbol is
        never cached or fetched under the wrong asset class.

        Raises:
            ValidationError: If the symbol is blank.
            ProviderError: On a hard miss.
        """
        ticker = normalize_symbol(symbol)
        if self._resolver.classify(ticker) is AssetClass.CRYPTO:
            logger.debug("%s is a crypto ticker, using crypto lookup", ticker)
            return await self.get_crypto_price(ticker)

        result = await cached_fetch(
            self._cache,
            CacheNamespace.STOCKS,
            ticker,
            lambda: self._stock_provider.fetch_quote(ticker),
        )
        return _to_quote_result(result)

    async def get_crypto_price(self, symbol: str) -> QuoteResult:
        """Return the current price of a crypto asset.

        Raises:
            ValidationError: If the symbol is blank.
            UnsupportedSymbolError: If the ticker has no coin mapping.
            ProviderError: On a hard miss.
        """
        coin_id = self._resolver.to_provider_id(symbol)
        label = self._resolver.canonical_symbol(symbol)

        async def fetch() -> PriceQuote:
            quotes = await self._crypto_provider.fetch_quotes({coin_id: label})
            quote = quotes.get(coin_id)
            if quote is None:
                raise ProviderError(
                    ProviderErrorKind.NOT_FOUND, CRYPTO_QUOTE_PROVIDER, f"no price for {coin_id}"
                )
            return quote

        result = await cached_fetch(self._cache, CacheNamespace.CRYPTO, coin_id, fetch)
        return _to_quote_result(result)

    # ------------------------------------------------------------------
    # Bulk lookup
    # ------------------------------------------------------------------

    async def get_many(
        self, lookups: list[PriceLookup]
    ) -> dict[str, Optional[QuoteResult]]:
        """Return prices for many symbols without failing the batch.

        Args:
            lookups: Symbols to price, each with an optional class hint.

        Returns:
            Mapping of uppercase ticker to its QuoteResult, or None when
            no price could be produced for it. Keys follow request order.

        Raises:
            ValidationError: If ``lookups`` is empty.
        """
        if not lookups:
            raise ValidationError("symbols must be a non-empty list")

        ordered: list[str] = []
        stocks: list[str] = []
        cryptos: list[str] = []
        for lookup in lookups:
            try:
                ticker = normalize_symbol(lookup.symbol)
            except ValidationError:
                logger.warning("Skipping blank symbol in bulk request")
                continue
            if ticker in ordered:
                continue
            ordered.append(ticker)

            asset_class = self._resolver.classify(ticker)
            if lookup.asset_class is not None and lookup.asset_class is not asset_class:
                logger.debug(
                    "Bulk hint %s for %s overridden by resolver (%s)",
                    lookup.asset_class.value,
                    ticker,
                    asset_class.value,
                )
            if asset_class is AssetClass.CRYPTO:
                cryptos.append(ticker)
            else:
                stocks.append(ticker)

        logger.info(
            "Bulk price request: %d stocks, %d crypto", len(stocks), len(cryptos)
        )
        stock_results, crypto_results = await asyncio.gather(
            self._get_many_stocks(stocks),
            self._get_many_crypto(cryptos),
        )
        merged = {**stock_results, **crypto_results}
        return {ticker: merged.get(ticker) for ticker in ordered}

    async def _get_many_stocks(
        self, tickers: list[str]
    ) -> dict[str, Optional[QuoteResult]]:
        if not tickers:
            return {}

        async def lookup(ticker: str) -> Optional[QuoteResult]:
            try:
                return await self.get_stock_price(ticker)
            except PricingDomainError as exc:
                logger.warning("No price for %s in bulk request: %s", ticker, exc)
                return None

        outcomes = await asyncio.gather(*(lookup(ticker) for ticker in tickers))
        return dict(zip(tickers, outcomes))

    async def _get_many_crypto(
        self, tickers: list[str]
    ) -> dict[str, Optional[QuoteResult]]:
        results: dict[str, Optional[QuoteResult]] = {}
        waiting: dict[str, list[str]] = {}
        labels: dict[str, str] = {}

        for ticker in tickers:
            try:
                coin_id = self._resolver.to_provider_id(ticker)
            except UnsupportedSymbolError as exc:
                logger.warning("No price for %s in bulk request: %s", ticker, exc)
                results[ticker] = None
                continue

            hit = fresh_hit(self._cache, CacheNamespace.CRYPTO, coin_id)
            if hit is not None:
                results[ticker] = _to_quote_result(hit)
                continue
            waiting.setdefault(coin_id, []).append(ticker)
            labels[coin_id] = self._resolver.canonical_symbol(ticker)

        if not waiting:
            return results

        quotes: dict[str, PriceQuote] = {}
        try:
            quotes = await self._crypto_provider.fetch_quotes(labels)
        except ProviderError as exc:
            logger.warning(
                "Bulk crypto fetch failed for %d coins, using cache: %s", len(labels), exc
            )

        for coin_id, coin_tickers in waiting.items():
            quote = quotes.get(coin_id)
            result: Optional[QuoteResult]
            if quote is not None:
                self._cache.set(CacheNamespace.CRYPTO, coin_id, quote)
                result = QuoteResult(quote=quote, cached=False)
            else:
                fallback = stale_fallback(self._cache, CacheNamespace.CRYPTO, coin_id)
                result = _to_quote_result(fallback) if fallback is not None else None
            for ticker in coin_tickers:
                results[ticker] = result
        return results

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def get_cache_stats(self) -> dict[str, dict[str, Any]]:
        """Return per-namespace entry counts and keys. No side effects."""
        return self._cache.stats()

    def clear_cache(self) -> None:
        """Drop every cached quote, history and search result."""
        self._cache.clear()
