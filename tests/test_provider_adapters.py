"""
Tests for the market-data provider adapters.

Each adapter runs against an httpx.MockTransport, so payload mapping and
error classification are verified without any network access.
"""

from typing import Callable

import httpx
import pytest

from app.domain.pricing.entities import AssetClass, HistoryPoint
from app.domain.pricing.errors import ProviderError, ProviderErrorKind
from app.infrastructure.pricing.alpha_vantage_adapter import AlphaVantageAdapter
from app.infrastructure.pricing.coingecko_adapter import (
    CoinGeckoAdapter,
    absolute_change,
)
from app.infrastructure.pricing.finnhub_adapter import FinnhubAdapter
from app.infrastructure.pricing.http import as_float, is_usable_price

Handler = Callable[[httpx.Request], httpx.Response]


def _client(handler: Handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _json(body, status_code: int = 200) -> Handler:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json=body)

    return handler


def _raw_json(content: bytes) -> Handler:
    """Serve a JSON body verbatim, for literals like NaN that json= cannot emit."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200, content=content, headers={"content-type": "application/json"}
        )

    return handler


# ══════════════════════════════════════════════════════════════════════
# Shared HTTP error mapping
# ══════════════════════════════════════════════════════════════════════


class TestHttpErrorMapping:
    """Transport and status failures become ProviderError kinds."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status_code,kind",
        [
            (429, ProviderErrorKind.RATE_LIMITED),
            (404, ProviderErrorKind.NOT_FOUND),
            (500, ProviderErrorKind.UNAVAILABLE),
            (403, ProviderErrorKind.UNAVAILABLE),
        ],
    )
    async def test_status_codes(self, status_code: int, kind: ProviderErrorKind) -> None:
        async with _client(_json({}, status_code)) as client:
            adapter = FinnhubAdapter(client, api_key="k")
            with pytest.raises(ProviderError) as exc_info:
                await adapter.fetch_quote("AAPL")
        assert exc_info.value.kind is kind
        assert exc_info.value.provider == "finnhub"

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        async with _client(handler) as client:
            with pytest.raises(ProviderError) as exc_info:
                await FinnhubAdapter(client, api_key="k").fetch_quote("AAPL")
        assert exc_info.value.kind is ProviderErrorKind.TIMEOUT

    @pytest.mark.asyncio
    async def test_connection_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        async with _client(handler) as client:
            with pytest.raises(ProviderError) as exc_info:
                await FinnhubAdapter(client, api_key="k").fetch_quote("AAPL")
        assert exc_info.value.kind is ProviderErrorKind.UNAVAILABLE

    @pytest.mark.asyncio
    async def test_non_json_body(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>oops</html>")

        async with _client(handler) as client:
            with pytest.raises(ProviderError) as exc_info:
                await FinnhubAdapter(client, api_key="k").fetch_quote("AAPL")
        assert exc_info.value.kind is ProviderErrorKind.MALFORMED

    def test_as_float(self) -> None:
        assert as_float(None) is None
        assert as_float("") is None
        assert as_float("1.5") == 1.5

    def test_is_usable_price(self) -> None:
        assert is_usable_price(0.01)
        assert not is_usable_price(None)
        assert not is_usable_price(0.0)
        assert not is_usable_price(float("nan"))
        assert not is_usable_price(float("inf"))


# ══════════════════════════════════════════════════════════════════════
# Finnhub
# ══════════════════════════════════════════════════════════════════════


class TestFinnhubAdapter:
    """Tests for Finnhub quote and search mapping."""

    @pytest.mark.asyncio
    async def test_quote_mapping_and_auth(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={"c": 190.5, "d": 1.5, "dp": 0.79, "h": 191, "l": 188, "o": 189, "pc": 189},
            )

        async with _client(handler) as client:
            quote = await FinnhubAdapter(client, api_key="secret").fetch_quote("AAPL")

        assert quote.symbol == "AAPL"
        assert quote.price == 190.5
        assert quote.change_percent == 0.79
        assert quote.previous_close == 189.0
        assert quote.asset_class is AssetClass.STOCK
        assert seen[0].url.path.endswith("/quote")
        assert seen[0].url.params["token"] == "secret"
        assert seen[0].url.params["symbol"] == "AAPL"

    @pytest.mark.asyncio
    async def test_zero_price_is_not_found(self) -> None:
        async with _client(_json({"c": 0, "d": None, "dp": None})) as client:
            with pytest.raises(ProviderError) as exc_info:
                await FinnhubAdapter(client, api_key="k").fetch_quote("ZZZZ")
        assert exc_info.value.kind is ProviderErrorKind.NOT_FOUND

    @pytest.mark.asyncio
    @pytest.mark.parametrize("literal", [b"NaN", b"Infinity", b"-1.5"])
    async def test_non_finite_or_negative_price_is_not_found(self, literal: bytes) -> None:
        body = b'{"c": ' + literal + b', "d": 0, "dp": 0}'
        async with _client(_raw_json(body)) as client:
            with pytest.raises(ProviderError) as exc_info:
                await FinnhubAdapter(client, api_key="k").fetch_quote("AAPL")
        assert exc_info.value.kind is ProviderErrorKind.NOT_FOUND

    @pytest.mark.asyncio
    async def test_soft_limit_error(self) -> None:
        body = {"error": "API limit reached. Please try again later."}
        async with _client(_json(body)) as client:
            with pytest.raises(ProviderError) as exc_info:
                await FinnhubAdapter(client, api_key="k").fetch_quote("AAPL")
        assert exc_info.value.kind is ProviderErrorKind.RATE_LIMITED

    @pytest.mark.asyncio
    async def test_search_mapping(self) -> None:
        body = {
            "count": 2,
            "result": [
                {"symbol": "AAPL", "description": "APPLE INC", "type": "Common Stock"},
                {"symbol": "AAPL.MX", "description": "APPLE INC", "type": "Common Stock"},
            ],
        }
        async with _client(_json(body)) as client:
            hits = await FinnhubAdapter(client, api_key="k").search("apple")
        assert [h.symbol for h in hits] == ["AAPL", "AAPL.MX"]
        assert hits[0].name == "APPLE INC"


# ══════════════════════════════════════════════════════════════════════
# CoinGecko
# ══════════════════════════════════════════════════════════════════════


class TestCoinGeckoAdapter:
    """Tests for CoinGecko quote and history mapping."""

    def test_absolute_change_from_percent(self) -> None:
        """A 10% rise to 110 means the price moved by 10."""
        assert absolute_change(110.0, 10.0) == pytest.approx(10.0)
        assert absolute_change(50.0, -100.0) == -50.0

    @pytest.mark.asyncio
    async def test_many_coins_in_one_request(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={
                    "bitcoin": {"usd": 66000.0, "usd_24h_change": 10.0, "usd_24h_vol": 1e9},
                    "ethereum": {"usd": 3000.0, "usd_24h_change": -1.0},
                    "solana": {"usd": 0},
                },
            )

        coins = {"bitcoin": "BTC", "ethereum": "ETH", "solana": "SOL", "tron": "TRX"}
        async with _client(handler) as client:
            quotes = await CoinGeckoAdapter(client).fetch_quotes(coins)

        assert len(seen) == 1
        assert seen[0].url.params["ids"] == "bitcoin,ethereum,solana,tron"
        assert "x_cg_demo_api_key" not in seen[0].url.params
        assert set(quotes) == {"bitcoin", "ethereum"}
        assert quotes["bitcoin"].symbol == "BTC"
        assert quotes["bitcoin"].change == pytest.approx(6000.0)
        assert quotes["bitcoin"].volume == 1e9

    @pytest.mark.asyncio
    async def test_nan_price_coin_is_omitted(self) -> None:
        body = b'{"bitcoin": {"usd": NaN}, "ethereum": {"usd": 3000.0}}'
        async with _client(_raw_json(body)) as client:
            quotes = await CoinGeckoAdapter(client).fetch_quotes(
                {"bitcoin": "BTC", "ethereum": "ETH"}
            )
        assert set(quotes) == {"ethereum"}

    @pytest.mark.asyncio
    async def test_demo_key_sent_when_configured(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"bitcoin": {"usd": 1.0}})

        async with _client(handler) as client:
            await CoinGeckoAdapter(client, api_key="demo").fetch_quotes({"bitcoin": "BTC"})
        assert seen[0].url.params["x_cg_demo_api_key"] == "demo"

    @pytest.mark.asyncio
    async def test_status_error_code_is_rate_limit(self) -> None:
        body = {"status": {"error_code": 429, "error_message": "throttled"}}
        async with _client(_json(body)) as client:
            with pytest.raises(ProviderError) as exc_info:
                await CoinGeckoAdapter(client).fetch_quotes({"bitcoin": "BTC"})
        assert exc_info.value.kind is ProviderErrorKind.RATE_LIMITED

    @pytest.mark.asyncio
    async def test_history_sorted_ascending(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"prices": [[2000, 2.0], [1000, 1.0]]})

        async with _client(handler) as client:
            points = await CoinGeckoAdapter(client).fetch_history("bitcoin", 7)

        assert points == [HistoryPoint(1000, 1.0), HistoryPoint(2000, 2.0)]
        assert seen[0].url.path.endswith("/coins/bitcoin/market_chart")
        assert seen[0].url.params["interval"] == "daily"

    @pytest.mark.asyncio
    async def test_history_drops_unusable_points(self) -> None:
        body = b'{"prices": [[1000, 1.0], [2000, NaN], [3000, null], [4000, 0], [5000, 5.0]]}'
        async with _client(_raw_json(body)) as client:
            points = await CoinGeckoAdapter(client).fetch_history("bitcoin", 7)
        assert points == [HistoryPoint(1000, 1.0), HistoryPoint(5000, 5.0)]

    @pytest.mark.asyncio
    async def test_history_without_prices_is_malformed(self) -> None:
        async with _client(_json({"market_caps": []})) as client:
            with pytest.raises(ProviderError) as exc_info:
                await CoinGeckoAdapter(client).fetch_history("bitcoin", 7)
        assert exc_info.value.kind is ProviderErrorKind.MALFORMED


# ══════════════════════════════════════════════════════════════════════
# Alpha Vantage
# ══════════════════════════════════════════════════════════════════════


class TestAlphaVantageAdapter:
    """Tests for Alpha Vantage daily series mapping."""

    SERIES = {
        "Time Series (Daily)": {
            "2024-01-03": {"4. close": "186.0"},
            "2024-01-02": {"4. close": "185.5"},
            "2024-01-01": {"4. close": "184.0"},
        }
    }

    @pytest.mark.asyncio
    async def test_keeps_newest_days_oldest_first(self) -> None:
        async with _client(_json(self.SERIES)) as client:
            points = await AlphaVantageAdapter(client, api_key="k").fetch_history("AAPL", 2)
        assert [p.price for p in points] == [185.5, 186.0]
        assert points[0].timestamp == 1_704_153_600_000

    @pytest.mark.asyncio
    async def test_unusable_closes_are_dropped(self) -> None:
        body = {
            "Time Series (Daily)": {
                "2024-01-03": {"4. close": "186.0"},
                "2024-01-02": {"4. close": "NaN"},
                "2024-01-01": {"4. close": "0.0000"},
            }
        }
        async with _client(_json(body)) as client:
            points = await AlphaVantageAdapter(client, api_key="k").fetch_history("AAPL", 3)
        assert points == [HistoryPoint(1_704_240_000_000, 186.0)]

    @pytest.mark.asyncio
    async def test_outputsize_full_beyond_one_hundred_days(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=self.SERIES)

        async with _client(handler) as client:
            adapter = AlphaVantageAdapter(client, api_key="k")
            await adapter.fetch_history("AAPL", 30)
            await adapter.fetch_history("AAPL", 365)
        assert seen[0].url.params["outputsize"] == "compact"
        assert seen[1].url.params["outputsize"] == "full"
        assert seen[1].url.params["function"] == "TIME_SERIES_DAILY"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body,kind",
        [
            ({"Note": "Thank you for using Alpha Vantage!"}, ProviderErrorKind.RATE_LIMITED),
            ({"Information": "rate limit"}, ProviderErrorKind.RATE_LIMITED),
            ({"Error Message": "Invalid API call."}, ProviderErrorKind.NOT_FOUND),
            ({"Meta Data": {}}, ProviderErrorKind.MALFORMED),
        ],
    )
    async def test_soft_errors(self, body: dict, kind: ProviderErrorKind) -> None:
        async with _client(_json(body)) as client:
            with pytest.raises(ProviderError) as exc_info:
                await AlphaVantageAdapter(client, api_key="k").fetch_history("AAPL", 30)
        assert exc_info.value.kind is kind
