"""
Port interfaces (ABCs) for the pricing bounded context.

Ports define the contracts that the pricing services require from
the outside world: one port per upstream provider role, plus the cache.
Infrastructure adapters implement these interfaces.
Provider ports must raise ProviderError on any non-success outcome
and must never read or write the cache.
"""

from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional

from app.domain.pricing.entities import (
    CacheEntry,
    CacheNamespace,
    HistoryPoint,
    NamespacePolicy,
    PriceQuote,
    SearchResult,
)


class StockQuoteProvider(ABC):
    """Port for fetching a current stock quote."""

    @abstractmethod
    async def fetch_quote(self, symbol: str) -> PriceQuote:
        """Return the current quote for an uppercase stock ticker."""
        raise NotImplementedError


class CryptoQuoteProvider(ABC):
    """Port for fetching current crypto quotes, many coins per call."""

    @abstractmethod
    async def fetch_quotes(self, coins: Mapping[str, str]) -> dict[str, PriceQuote]:
        """Fetch quotes for several coins in one upstream request.

        Args:
            coins: Provider coin id mapped to the canonical ticker that
                should label the resulting quote.

        Returns:
            Quotes keyed by coin id. Coins the provider has no usable
            price for are omitted.
        """
        raise NotImplementedError


class StockHistoryProvider(ABC):
    """Port for fetching daily stock closes."""

    @abstractmethod
    async def fetch_history(self, symbol: str, days: int) -> list[HistoryPoint]:
        """Return up to ``days`` daily closes ordered by timestamp ascending."""
        raise NotImplementedError


class CryptoHistoryProvider(ABC):
    """Port for fetching a crypto market chart."""

    @abstractmethod
    async def fetch_history(self, coin_id: str, days: int) -> list[HistoryPoint]:
        """Return the price series for the last ``days`` days, ascending."""
        raise NotImplementedError


class SymbolSearchProvider(ABC):
    """Port for equity symbol lookup."""

    @abstractmethod
    async def search(self, query: str) -> list[SearchResult]:
        """Return raw search hits in provider order, unfiltered."""
        raise NotImplementedError


class CacheStore(ABC):
    """Port for the process-wide keyed cache of last known values."""

    @abstractmethod
    def policy(self, namespace: CacheNamespace) -> NamespacePolicy:
        """Return the freshness policy of a namespace."""
        raise NotImplementedError

    @abstractmethod
    def now(self) -> float:
        """Return the store's current time in epoch seconds."""
        raise NotImplementedError

    @abstractmethod
    def get(self, namespace: CacheNamespace, key: str) -> Optional[CacheEntry[Any]]:
        """Return the entry for a key, or None if absent."""
        raise NotImplementedError

    @abstractmethod
    def set(self, namespace: CacheNamespace, key: str, value: Any) -> CacheEntry[Any]:
        """Replace the entry for a key with a value fetched now."""
        raise NotImplementedError

    @abstractmethod
    def sweep(self) -> int:
        """Delete expired entries in every namespace.

        Returns:
            Number of entries removed.
        """
        raise NotImplementedError

    @abstractmethod
    def stats(self) -> dict[str, dict[str, Any]]:
        """Return ``{namespace: {"count": n, "keys": [...]}}``. Read-only."""
        raise NotImplementedError

    @abstractmethod
    def clear(self) -> None:
        """Drop every entry in every namespace."""
        raise NotImplementedError
