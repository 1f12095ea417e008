"""
Tests for the pricing API endpoints.

Runs the real services behind the FastAPI app with AsyncMock providers
installed on ``app.state``, so routing, response schemas and the
centralized error mapping are exercised together.
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from app.application.pricing.historical_aggregator import HistoricalAggregator
from app.application.pricing.quote_cache_service import QuoteCacheService
from app.application.pricing.search_service import SearchService
from app.domain.pricing.entities import AssetClass, HistoryPoint, PriceQuote
from app.domain.pricing.errors import ProviderError, ProviderErrorKind
from app.domain.pricing.symbol_resolver import SymbolResolver
from app.interfaces.pricing.dependencies import PricingServices
from app.main import app
from app.shared.security.rate_limiting import limiter

T1 = 1_700_000_000_000
T2 = T1 + 86_400_000


@pytest.fixture
def providers() -> dict[str, AsyncMock]:
    stock = AsyncMock()
    stock.fetch_quote = AsyncMock(
        side_effect=lambda symbol: PriceQuote(
            symbol=symbol,
            price=190.123,
            change=1.4567,
            change_percent=0.7712,
            asset_class=AssetClass.STOCK,
        )
    )
    crypto = AsyncMock()
    crypto.fetch_quotes = AsyncMock(
        side_effect=lambda coins: {
            coin_id: PriceQuote(
                symbol=label,
                price=66000.0,
                change=100.0,
                change_percent=0.15,
                asset_class=AssetClass.CRYPTO,
            )
            for coin_id, label in coins.items()
        }
    )
    stock_history = AsyncMock()
    stock_history.fetch_history = AsyncMock(
        return_value=[HistoryPoint(T1, 10.0), HistoryPoint(T2, 12.0)]
    )
    crypto_history = AsyncMock()
    crypto_history.fetch_history = AsyncMock(return_value=[HistoryPoint(T1, 5.0)])
    search = AsyncMock()
    search.search = AsyncMock(return_value=[])
    return {
        "stock": stock,
        "crypto": crypto,
        "stock_history": stock_history,
        "crypto_history": crypto_history,
        "search": search,
    }


@pytest.fixture
def client(cache, providers):
    resolver = SymbolResolver()
    app.state.pricing = PricingServices(
        quotes=QuoteCacheService(
            cache=cache,
            resolver=resolver,
            stock_provider=providers["stock"],
            crypto_provider=providers["crypto"],
        ),
        history=HistoricalAggregator(
            cache=cache,
            resolver=resolver,
            stock_history=providers["stock_history"],
            crypto_history=providers["crypto_history"],
            sleep=AsyncMock(),
        ),
        search=SearchService(cache=cache, provider=providers["search"]),
    )
    limiter.enabled = False
    try:
        yield TestClient(app)
    finally:
        limiter.enabled = True
        del app.state.pricing


class TestPriceEndpoints:
    """Tests for GET /api/v1/prices/stock and /prices/crypto."""

    def test_stock_price_rounded_and_annotated(self, client) -> None:
        response = client.get("/api/v1/prices/stock/aapl")
        assert response.status_code == 200
        body = response.json()
        assert body["symbol"] == "AAPL"
        assert body["price"] == 190.12
        assert body["change"] == 1.46
        assert body["change_percent"] == 0.77
        assert body["asset_class"] == "stock"
        assert body["cached"] is False

    def test_second_request_served_from_cache(self, client, providers) -> None:
        client.get("/api/v1/prices/stock/AAPL")
        body = client.get("/api/v1/prices/stock/AAPL").json()
        assert body["cached"] is True
        assert providers["stock"].fetch_quote.await_count == 1

    def test_crypto_price(self, client) -> None:
        body = client.get("/api/v1/prices/crypto/BTC-USD").json()
        assert body["symbol"] == "BTC"
        assert body["asset_class"] == "crypto"

    def test_unsupported_crypto_is_404(self, client) -> None:
        response = client.get("/api/v1/prices/crypto/NOTACOIN")
        assert response.status_code == 404
        assert response.json()["error"] == "Symbol not supported"

    def test_hard_miss_rate_limited_is_503(self, client, providers) -> None:
        providers["stock"].fetch_quote.side_effect = ProviderError(
            ProviderErrorKind.RATE_LIMITED, "finnhub", "secret detail"
        )
        response = client.get("/api/v1/prices/stock/AAPL")
        assert response.status_code == 503
        assert "secret" not in response.text

    def test_hard_miss_not_found_is_404(self, client, providers) -> None:
        providers["stock"].fetch_quote.side_effect = ProviderError(
            ProviderErrorKind.NOT_FOUND, "finnhub"
        )
        assert client.get("/api/v1/prices/stock/ZZZZ").status_code == 404

    def test_hard_miss_timeout_is_502(self, client, providers) -> None:
        providers["stock"].fetch_quote.side_effect = ProviderError(
            ProviderErrorKind.TIMEOUT, "finnhub"
        )
        assert client.get("/api/v1/prices/stock/AAPL").status_code == 502


class TestBulkEndpoint:
    """Tests for POST /api/v1/prices/bulk."""

    def test_mixed_symbols(self, client, providers) -> None:
        response = client.post(
            "/api/v1/prices/bulk",
            json={"symbols": ["aapl", {"symbol": "BTC", "type": "crypto"}, "ETH"]},
        )
        assert response.status_code == 200
        prices = response.json()["prices"]
        assert list(prices) == ["AAPL", "BTC", "ETH"]
        assert prices["BTC"]["asset_class"] == "crypto"
        providers["crypto"].fetch_quotes.assert_awaited_once()

    def test_failed_symbol_is_null(self, client, providers) -> None:
        providers["stock"].fetch_quote.side_effect = ProviderError(
            ProviderErrorKind.NOT_FOUND, "finnhub"
        )
        prices = client.post("/api/v1/prices/bulk", json={"symbols": ["ZZZZ"]}).json()
        assert prices == {"prices": {"ZZZZ": None}}

    def test_empty_list_is_400(self, client) -> None:
        response = client.post("/api/v1/prices/bulk", json={"symbols": []})
        assert response.status_code == 400

    def test_missing_body_field_is_422(self, client) -> None:
        assert client.post("/api/v1/prices/bulk", json={}).status_code == 422


class TestSearchEndpoint:
    """Tests for GET /api/v1/prices/search/{query}."""

    def test_short_query_is_400(self, client) -> None:
        assert client.get("/api/v1/prices/search/a").status_code == 400

    def test_provider_failure_falls_back(self, client, providers) -> None:
        providers["search"].search.side_effect = ProviderError(
            ProviderErrorKind.UNAVAILABLE, "finnhub"
        )
        body = client.get("/api/v1/prices/search/AAP").json()
        assert body["query"] == "AAP"
        assert [r["symbol"] for r in body["results"]] == ["AAPL"]


class TestCacheEndpoints:
    """Tests for the cache diagnostics endpoints."""

    def test_stats_and_clear(self, client) -> None:
        client.get("/api/v1/prices/stock/AAPL")
        stats = client.get("/api/v1/prices/cache/stats").json()
        assert stats["stocks"] == {"count": 1, "keys": ["AAPL"]}

        assert client.delete("/api/v1/prices/cache").json() == {"status": "cleared"}
        stats = client.get("/api/v1/prices/cache/stats").json()
        assert stats["stocks"]["count"] == 0


class TestHistoricalEndpoints:
    """Tests for the /api/v1/historical endpoints."""

    def test_stock_history(self, client) -> None:
        body = client.get("/api/v1/historical/stock/AAPL?days=7").json()
        assert body["symbol"] == "AAPL"
        assert body["days"] == 7
        assert [p["price"] for p in body["history"]] == [10.0, 12.0]

    def test_hard_miss_returns_empty_history(self, client, providers) -> None:
        providers["stock_history"].fetch_history.side_effect = ProviderError(
            ProviderErrorKind.RATE_LIMITED, "alpha_vantage"
        )
        response = client.get("/api/v1/historical/stock/AAPL")
        assert response.status_code == 200
        assert response.json()["history"] == []

    def test_unsupported_crypto_history_is_404(self, client, providers) -> None:
        """Unmapped coins are reported, not hidden behind an empty history."""
        response = client.get("/api/v1/historical/crypto/NOTACOIN")
        assert response.status_code == 404
        assert response.json()["error"] == "Symbol not supported"
        providers["crypto_history"].fetch_history.assert_not_awaited()

    def test_crypto_history_hard_miss_returns_empty_history(
        self, client, providers
    ) -> None:
        providers["crypto_history"].fetch_history.side_effect = ProviderError(
            ProviderErrorKind.RATE_LIMITED, "coingecko"
        )
        response = client.get("/api/v1/historical/crypto/BTC")
        assert response.status_code == 200
        assert response.json()["history"] == []

    def test_days_out_of_range_is_400(self, client) -> None:
        assert client.get("/api/v1/historical/stock/AAPL?days=400").status_code == 400

    def test_portfolio_history(self, client) -> None:
        response = client.post(
            "/api/v1/historical/portfolio",
            json={
                "holdings": [
                    {"symbol": "AAPL", "quantity": 2},
                    {"symbol": "BTC", "quantity": 3, "type": "crypto"},
                ],
                "days": 30,
            },
        )
        assert response.status_code == 200
        assert response.json() == {
            "days": 30,
            "history": [
                {"timestamp": T1, "price": 35.0},
                {"timestamp": T2, "price": 24.0},
            ],
        }

    def test_empty_portfolio(self, client) -> None:
        response = client.post("/api/v1/historical/portfolio", json={"holdings": []})
        assert response.json() == {"days": 30, "history": []}

    def test_crypto_portfolio_ignores_stocks(self, client, providers) -> None:
        response = client.post(
            "/api/v1/historical/crypto-portfolio",
            json={
                "holdings": [
                    {"symbol": "AAPL", "quantity": 2},
                    {"symbol": "BTC", "quantity": 3},
                ],
            },
        )
        assert response.json()["history"] == [{"timestamp": T1, "price": 15.0}]
        providers["stock_history"].fetch_history.assert_not_awaited()
