"""
Pydantic schemas for pricing API request/response validation.

These schemas define the API contract. Currency values are rounded
to 2 decimals here and nowhere else.
No business logic belongs here.
"""

from typing import Literal, Optional, Union

from pydantic import BaseModel, Field

from app.application.pricing.dtos import HistoryResult, QuoteResult
from app.domain.pricing.entities import HistoryPoint, SearchResult

AssetType = Literal["stock", "crypto"]


def _money(value: Optional[float]) -> Optional[float]:
    return None if value is None else round(value, 2)


# ------------------------------------------------------------------
# Prices
# ------------------------------------------------------------------


class PriceResponse(BaseModel):
    """Current price of one symbol, annotated with its cache state."""

    symbol: str
    price: float
    change: float
    change_percent: float
    asset_class: AssetType
    high: Optional[float] = None
    low: Optional[float] = None
    open: Optional[float] = None
    previous_close: Optional[float] = None
    volume: Optional[float] = None
    cached: bool
    stale: bool = False
    cache_age: int = Field(0, description="Seconds since the price was fetched")

    @classmethod
    def from_result(cls, result: QuoteResult) -> "PriceResponse":
        quote = result.quote
        return cls(
            symbol=quote.symbol,
            price=_money(quote.price),
            change=_money(quote.change),
            change_percent=_money(quote.change_percent),
            asset_class=quote.asset_class.value,
            high=_money(quote.high),
            low=_money(quote.low),
            open=_money(quote.open),
            previous_close=_money(quote.previous_close),
            volume=quote.volume,
            cached=result.cached,
            stale=result.stale,
            cache_age=result.cache_age,
        )


class BulkSymbolItem(BaseModel):
    """A bulk request entry with an explicit asset type hint."""

    symbol: str = Field(..., max_length=20)
    type: Optional[AssetType] = None


class BulkPriceRequest(BaseModel):
    """Request schema for the bulk price endpoint.

    Attributes:
        symbols: Plain tickers or ``{symbol, type}`` objects, mixed freely.
    """

    symbols: list[Union[str, BulkSymbolItem]] = Field(..., max_length=100)


class BulkPriceResponse(BaseModel):
    """Prices keyed by uppercase ticker; null where no price was available."""

    prices: dict[str, Optional[PriceResponse]]


# ------------------------------------------------------------------
# Search
# ------------------------------------------------------------------


class SearchResultItem(BaseModel):
    """A single symbol search hit."""

    symbol: str
    name: str
    type: str
    region: Optional[str] = None

    @classmethod
    def from_entity(cls, hit: SearchResult) -> "SearchResultItem":
        return cls(symbol=hit.symbol, name=hit.name, type=hit.type, region=hit.region)


class SearchResponse(BaseModel):
    """Response schema for the symbol search endpoint."""

    query: str
    results: list[SearchResultItem]


# ------------------------------------------------------------------
# Cache diagnostics
# ------------------------------------------------------------------


class NamespaceStatsItem(BaseModel):
    """Entry count and keys of one cache namespace."""

    count: int
    keys: list[str]


class CacheClearedResponse(BaseModel):
    """Response schema for the cache clear endpoint."""

    status: str = "cleared"


# ------------------------------------------------------------------
# Historical
# ------------------------------------------------------------------


class HistoryPointItem(BaseModel):
    """A price or portfolio value at a point in time (epoch millis)."""

    timestamp: int
    price: float

    @classmethod
    def from_entity(cls, point: HistoryPoint) -> "HistoryPointItem":
        return cls(timestamp=point.timestamp, price=round(point.price, 2))


class HistoryResponse(BaseModel):
    """Price history of a single asset."""

    symbol: str
    days: int
    history: list[HistoryPointItem]
    cached: bool = False
    stale: bool = False

    @classmethod
    def from_result(cls, result: HistoryResult) -> "HistoryResponse":
        return cls(
            symbol=result.symbol,
            days=result.days,
            history=[HistoryPointItem.from_entity(p) for p in result.history],
            cached=result.cached,
            stale=result.stale,
        )


class HoldingItem(BaseModel):
    """One portfolio position.

    Attributes:
        symbol: Ticker of the held asset.
        quantity: Units held.
        type: Optional asset type hint; classification is decided server-side.
    """

    symbol: str = Field(..., max_length=20)
    quantity: float
    type: Optional[AssetType] = None


class PortfolioHistoryRequest(BaseModel):
    """Request schema for the portfolio history endpoints.

    ``days`` is range-checked by the service so that an out-of-range
    window is reported like every other invalid lookup.
    """

    holdings: list[HoldingItem] = Field(default_factory=list, max_length=100)
    days: int = 30


class PortfolioHistoryResponse(BaseModel):
    """Combined portfolio value over time, ascending by timestamp."""

    days: int
    history: list[HistoryPointItem]


# ------------------------------------------------------------------
# Shared
# ------------------------------------------------------------------


class HealthResponse(BaseModel):
    """Response schema for the health check endpoint."""

    status: str
    version: str
    cache_sweeper_running: bool = False
    cached_entries: int = 0


class ErrorResponse(BaseModel):
    """Standard error response returned by all error handlers."""

    error: str
    detail: str | None = None
