"""
Dependency injection for the pricing bounded context.

The services share one cache store and one HTTP client, so they are
built once at startup by ``build_pricing_services`` and kept on
``app.state``. The FastAPI dependency functions below only look them up.
"""

from dataclasses import dataclass

import httpx
from fastapi import Request

from app.application.pricing.historical_aggregator import HistoricalAggregator
from app.application.pricing.quote_cache_service import QuoteCacheService
from app.application.pricing.search_service import SearchService
from app.core.config import Settings
from app.domain.pricing.ports import CacheStore
from app.domain.pricing.symbol_resolver import SymbolResolver
from app.infrastructure.pricing.alpha_vantage_adapter import AlphaVantageAdapter
from app.infrastructure.pricing.coingecko_adapter import CoinGeckoAdapter
from app.infrastructure.pricing.finnhub_adapter import FinnhubAdapter


@dataclass(frozen=True)
class PricingServices:
    """The application services of the pricing context."""

    quotes: QuoteCacheService
    history: HistoricalAggregator
    search: SearchService


def build_pricing_services(
    config: Settings, client: httpx.AsyncClient, cache: CacheStore
) -> PricingServices:
    """Wire the provider adapters into the pricing services.

    Args:
        config: Application settings (keys, base URLs, delays).
        client: Shared HTTP client used by every adapter.
        cache: Shared cache store.
    """
    resolver = SymbolResolver()
    finnhub = FinnhubAdapter(
        client, api_key=config.finnhub_api_key, base_url=config.finnhub_base_url
    )
    coingecko = CoinGeckoAdapter(
        client, api_key=config.coingecko_api_key, base_url=config.coingecko_base_url
    )
    alpha_vantage = AlphaVantageAdapter(
        client,
        api_key=config.alpha_vantage_api_key,
        base_url=config.alpha_vantage_base_url,
    )
    return PricingServices(
        quotes=QuoteCacheService(
            cache=cache,
            resolver=resolver,
            stock_provider=finnhub,
            crypto_provider=coingecko,
        ),
        history=HistoricalAggregator(
            cache=cache,
            resolver=resolver,
            stock_history=alpha_vantage,
            crypto_history=coingecko,
            stock_delay_seconds=config.stock_history_delay_seconds,
            crypto_delay_seconds=config.crypto_history_delay_seconds,
        ),
        search=SearchService(cache=cache, provider=finnhub),
    )


def _services(request: Request) -> PricingServices:
    return request.app.state.pricing


def get_quote_service(request: Request) -> QuoteCacheService:
    """Return the shared QuoteCacheService."""
    return _services(request).quotes


def get_historical_aggregator(request: Request) -> HistoricalAggregator:
    """Return the shared HistoricalAggregator."""
    return _services(request).history


def get_search_service(request: Request) -> SearchService:
    """Return the shared SearchService."""
    return _services(request).search
