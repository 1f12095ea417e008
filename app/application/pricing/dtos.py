"""
Data Transfer Objects for the pricing application layer.

DTOs carry data between the interface and application layers.
They are plain dataclasses with no behavior.
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from app.domain.pricing.entities import (
    AssetClass,
    HistoryPoint,
    PriceQuote,
)

T = TypeVar("T")


@dataclass(frozen=True)
class CachedValue(Generic[T]):
    """A value annotated with where it came from.

    Attributes:
        value: The fetched or cached value.
        cached: True when served from the cache without a live fetch.
        stale: True when served from the cache after a failed refetch.
        cache_age: Whole seconds since the value was fetched.
    """

    value: T
    cached: bool
    stale: bool = False
    cache_age: int = 0


@dataclass(frozen=True)
class QuoteResult:
    """Output DTO for a single price lookup."""

    quote: PriceQuote
    cached: bool
    stale: bool = False
    cache_age: int = 0


@dataclass(frozen=True)
class PriceLookup:
    """Input DTO for one symbol of a bulk price request.

    Attributes:
        symbol: Ticker as supplied by the caller.
        asset_class: Caller's hint; the symbol resolver has the final say.
    """

    symbol: str
    asset_class: Optional[AssetClass] = None


@dataclass(frozen=True)
class HistoryResult:
    """Output DTO for a single-asset price history."""

    symbol: str
    days: int
    history: list[HistoryPoint]
    cached: bool = False
    stale: bool = False

