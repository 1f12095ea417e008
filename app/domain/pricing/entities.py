"""
Domain entities for the pricing bounded context.

Entities are immutable value objects produced by provider adapters
and held by the cache. They contain no framework imports and no IO.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class AssetClass(Enum):
    """Asset class a symbol belongs to. Every symbol maps to exactly one."""

    STOCK = "stock"
    CRYPTO = "crypto"


class CacheNamespace(Enum):
    """Independent key spaces of the cache, each with its own policy."""

    STOCKS = "stocks"
    CRYPTO = "crypto"
    SEARCH = "search"
    STOCK_HISTORY = "stock_history"
    CRYPTO_HISTORY = "crypto_history"


class Freshness(Enum):
    """Derived state of a cache entry at a given instant."""

    FRESH = "fresh"
    STALE = "stale"
    EXPIRED = "expired"


@dataclass(frozen=True)
class PriceQuote:
    """A current price snapshot for one symbol.

    Currency fields keep provider precision; rounding happens only
    when the quote is formatted for a response.
    """

    symbol: str
    price: float
    change: float
    change_percent: float
    asset_class: AssetClass
    high: Optional[float] = None
    low: Optional[float] = None
    open: Optional[float] = None
    previous_close: Optional[float] = None
    volume: Optional[float] = None


@dataclass(frozen=True)
class HistoryPoint:
    """One point of a price (or holding value) time series."""

    timestamp: int  # epoch millis
    price: float


@dataclass(frozen=True)
class HoldingWeight:
    """Minimal view of a portfolio holding needed for value aggregation.

    Supplied by the ledger; ``asset_class`` is only a hint, the
    symbol resolver decides the actual class.
    """

    symbol: str
    quantity: float
    asset_class: Optional[AssetClass] = None


@dataclass(frozen=True)
class SearchResult:
    """A single symbol search hit."""

    symbol: str
    name: str
    type: str
    region: Optional[str] = None


@dataclass(frozen=True)
class NamespacePolicy:
    """Freshness thresholds for one cache namespace.

    Attributes:
        fresh_seconds: Age below which an entry is served without refetch.
        expiry_seconds: Age at which an entry becomes expired and sweepable.
        fallback_beyond_expiry: Allow stale fallback on expired entries
            that the sweep has not removed yet.
    """

    fresh_seconds: float
    expiry_seconds: float
    fallback_beyond_expiry: bool = False

    def __post_init__(self) -> None:
        if self.fresh_seconds <= 0:
            raise ValueError("fresh_seconds must be positive")
        if self.fresh_seconds >= self.expiry_seconds:
            raise ValueError("fresh_seconds must be shorter than expiry_seconds")


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """The last successfully fetched value for a cache key."""

    value: T
    fetched_at: float  # epoch seconds

    def age(self, now: float) -> float:
        """Return the entry age in seconds, never negative."""
        return max(0.0, now - self.fetched_at)

    def freshness(self, now: float, policy: NamespacePolicy) -> Freshness:
        """Classify this entry against a namespace policy."""
        age = self.age(now)
        if age < policy.fresh_seconds:
            return Freshness.FRESH
        if age < policy.expiry_seconds:
            return Freshness.STALE
        return Freshness.EXPIRED

    def usable_as_fallback(self, now: float, policy: NamespacePolicy) -> bool:
        """Whether this entry may be served after a failed refetch."""
        if policy.fallback_beyond_expiry:
            return True
        return self.freshness(now, policy) is not Freshness.EXPIRED
