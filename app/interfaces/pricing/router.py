"""
FastAPI routers for the pricing bounded context.

All routes delegate to the pricing services. No business logic here.
Error mapping is handled by centralized error handlers, except that
history routes answer a hard miss with an empty history.
"""

import logging

from fastapi import APIRouter, Depends, Request

from app.application.pricing.dtos import PriceLookup
from app.application.pricing.historical_aggregator import HistoricalAggregator
from app.application.pricing.quote_cache_service import QuoteCacheService
from app.application.pricing.search_service import SearchService
from app.core.config import settings
from app.domain.pricing.entities import AssetClass, HoldingWeight
from app.domain.pricing.errors import ProviderError
from app.domain.pricing.symbol_resolver import normalize_symbol
from app.interfaces.pricing.dependencies import (
    get_historical_aggregator,
    get_quote_service,
    get_search_service,
)
from app.interfaces.pricing.schemas import (
    BulkPriceRequest,
    BulkPriceResponse,
    CacheClearedResponse,
    ErrorResponse,
    HistoryPointItem,
    HistoryResponse,
    NamespaceStatsItem,
    PortfolioHistoryRequest,
    PortfolioHistoryResponse,
    PriceResponse,
    SearchResponse,
    SearchResultItem,
)
from app.shared.security.rate_limiting import limiter

logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}

prices_router = APIRouter(prefix="/prices", tags=["prices"])
historical_router = APIRouter(prefix="/historical", tags=["historical"])


# ------------------------------------------------------------------
# Current prices
# ------------------------------------------------------------------


@prices_router.get(
    "/stock/{symbol}",
    response_model=PriceResponse,
    responses=ERROR_RESPONSES,
    summary="Get stock price",
    description="Current price of a stock, served from cache when fresh.",
)
async def get_stock_price(
    symbol: str,
    service: QuoteCacheService = Depends(get_quote_service),
) -> PriceResponse:
    """Get the current price of a stock."""
    return PriceResponse.from_result(await service.get_stock_price(symbol))


@prices_router.get(
    "/crypto/{symbol}",
    response_model=PriceResponse,
    responses=ERROR_RESPONSES,
    summary="Get crypto price",
    description="Current USD price of a supported crypto asset.",
)
async def get_crypto_price(
    symbol: str,
    service: QuoteCacheService = Depends(get_quote_service),
) -> PriceResponse:
    """Get the current price of a crypto asset."""
    return PriceResponse.from_result(await service.get_crypto_price(symbol))


@prices_router.post(
    "/bulk",
    response_model=BulkPriceResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Get many prices",
    description=(
        "Prices for a mixed list of stocks and crypto. Symbols that cannot "
        "be priced are returned as null instead of failing the batch."
    ),
)
async def get_bulk_prices(
    payload: BulkPriceRequest,
    service: QuoteCacheService = Depends(get_quote_service),
) -> BulkPriceResponse:
    """Get prices for many symbols at once."""
    lookups = []
    for item in payload.symbols:
        if isinstance(item, str):
            lookups.append(PriceLookup(symbol=item))
        else:
            hint = AssetClass(item.type) if item.type else None
            lookups.append(PriceLookup(symbol=item.symbol, asset_class=hint))

    results = await service.get_many(lookups)
    return BulkPriceResponse(
        prices={
            ticker: PriceResponse.from_result(result) if result is not None else None
            for ticker, result in results.items()
        }
    )


@prices_router.get(
    "/search/{query}",
    response_model=SearchResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Search symbols",
    description="Search US common stocks by ticker or company name.",
)
async def search_symbols(
    query: str,
    service: SearchService = Depends(get_search_service),
) -> SearchResponse:
    """Search for stock symbols."""
    hits = await service.search(query)
    return SearchResponse(
        query=query,
        results=[SearchResultItem.from_entity(hit) for hit in hits],
    )


@prices_router.get(
    "/cache/stats",
    response_model=dict[str, NamespaceStatsItem],
    summary="Cache statistics",
    description="Entry count and keys per cache namespace.",
)
def get_cache_stats(
    service: QuoteCacheService = Depends(get_quote_service),
) -> dict[str, NamespaceStatsItem]:
    """Return cache statistics."""
    return {
        namespace: NamespaceStatsItem(**stats)
        for namespace, stats in service.get_cache_stats().items()
    }


@prices_router.delete(
    "/cache",
    response_model=CacheClearedResponse,
    summary="Clear cache",
    description="Drop every cached price, history and search result.",
)
def clear_cache(
    service: QuoteCacheService = Depends(get_quote_service),
) -> CacheClearedResponse:
    """Clear the price cache."""
    service.clear_cache()
    logger.info("Price cache cleared")
    return CacheClearedResponse()


# ------------------------------------------------------------------
# Historical
# ------------------------------------------------------------------


def _empty_history(symbol: str, days: int) -> HistoryResponse:
    return HistoryResponse(symbol=normalize_symbol(symbol), days=days, history=[])


@historical_router.get(
    "/stock/{symbol}",
    response_model=HistoryResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Stock price history",
    description="Daily closes for the last ``days`` days (1-365).",
)
async def get_stock_history(
    symbol: str,
    days: int = 30,
    aggregator: HistoricalAggregator = Depends(get_historical_aggregator),
) -> HistoryResponse:
    """Get the price history of a stock."""
    try:
        result = await aggregator.get_stock_history(symbol, days)
    except ProviderError as exc:
        logger.warning("No history for %s: %s", symbol, exc)
        return _empty_history(symbol, days)
    return HistoryResponse.from_result(result)


@historical_router.get(
    "/crypto/{symbol}",
    response_model=HistoryResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Crypto price history",
    description="USD prices of a crypto asset for the last ``days`` days (1-365).",
)
async def get_crypto_history(
    symbol: str,
    days: int = 30,
    aggregator: HistoricalAggregator = Depends(get_historical_aggregator),
) -> HistoryResponse:
    """Get the price history of a crypto asset."""
    try:
        result = await aggregator.get_crypto_history(symbol, days)
    except ProviderError as exc:
        logger.warning("No history for %s: %s", symbol, exc)
        return _empty_history(symbol, days)
    return HistoryResponse.from_result(result)


def _to_holdings(payload: PortfolioHistoryRequest) -> list[HoldingWeight]:
    return [
        HoldingWeight(
            symbol=item.symbol,
            quantity=item.quantity,
            asset_class=AssetClass(item.type) if item.type else None,
        )
        for item in payload.holdings
    ]


@historical_router.post(
    "/portfolio",
    response_model=PortfolioHistoryResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Portfolio value history",
    description="Combined value of stock and crypto holdings over time.",
)
@limiter.limit(settings.rate_limit_heavy)
async def get_portfolio_history(
    request: Request,
    payload: PortfolioHistoryRequest,
    aggregator: HistoricalAggregator = Depends(get_historical_aggregator),
) -> PortfolioHistoryResponse:
    """Get the value history of a portfolio."""
    series = await aggregator.portfolio_history(_to_holdings(payload), payload.days)
    return PortfolioHistoryResponse(
        days=payload.days,
        history=[HistoryPointItem.from_entity(p) for p in series],
    )


@historical_router.post(
    "/crypto-portfolio",
    response_model=PortfolioHistoryResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Crypto portfolio value history",
    description="Combined value of the crypto holdings only; stocks are ignored.",
)
@limiter.limit(settings.rate_limit_heavy)
async def get_crypto_portfolio_history(
    request: Request,
    payload: PortfolioHistoryRequest,
    aggregator: HistoricalAggregator = Depends(get_historical_aggregator),
) -> PortfolioHistoryResponse:
    """Get the value history of the crypto part of a portfolio."""
    series = await aggregator.portfolio_history(
        _to_holdings(payload), payload.days, asset_class=AssetClass.CRYPTO
    )
    return PortfolioHistoryResponse(
        days=payload.days,
        history=[HistoryPointItem.from_entity(p) for p in series],
    )
