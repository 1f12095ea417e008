"""
Domain rules for symbol search results.

Keeps search output to plain US-listed common stock: provider hits for
other instrument types, foreign listings, preferred shares, warrants
and units are dropped. Also holds the static list served when the
search provider is unreachable and nothing is cached.
"""

from app.domain.pricing.entities import SearchResult

MAX_RESULTS = 10
MIN_QUERY_LENGTH = 2
MAX_TICKER_LENGTH = 5

COMMON_EQUITY_TYPES = frozenset({"common stock", "equity", ""})
DISPLAY_TYPE = "Common Stock"
DISPLAY_REGION = "United States"

POPULAR_SYMBOLS: tuple[SearchResult, ...] = tuple(
    SearchResult(symbol=symbol, name=name, type=DISPLAY_TYPE, region=DISPLAY_REGION)
    for symbol, name in (
        ("AAPL", "Apple Inc."),
        ("MSFT", "Microsoft Corporation"),
        ("GOOGL", "Alphabet Inc."),
        ("AMZN", "Amazon.com Inc."),
        ("NVDA", "NVIDIA Corporation"),
        ("TSLA", "Tesla Inc."),
        ("META", "Meta Platforms Inc."),
        ("BRK.B", "Berkshire Hathaway Inc."),
        ("V", "Visa Inc."),
        ("JPM", "JPMorgan Chase & Co."),
        ("WMT", "Walmart Inc."),
        ("MA", "Mastercard Inc."),
        ("HD", "The Home Depot Inc."),
        ("DIS", "The Walt Disney Company"),
        ("NFLX", "Netflix Inc."),
        ("ADBE", "Adobe Inc."),
        ("PYPL", "PayPal Holdings Inc."),
        ("INTC", "Intel Corporation"),
        ("CSCO", "Cisco Systems Inc."),
        ("PFE", "Pfizer Inc."),
    )
)


def is_common_equity(hit: SearchResult) -> bool:
    """Return True if a raw provider hit is a plain US common stock."""
    symbol = hit.symbol or ""
    return (
        (hit.type or "").strip().lower() in COMMON_EQUITY_TYPES
        and "." not in symbol
        and "-" not in symbol
        and not symbol.endswith("W")
        and not symbol.endswith("U")
        and 0 < len(symbol) <= MAX_TICKER_LENGTH
    )


def filter_results(hits: list[SearchResult]) -> list[SearchResult]:
    """Filter raw hits to common equity, keep provider order, cap the count."""
    kept = [
        SearchResult(
            symbol=hit.symbol,
            name=hit.name,
            type=DISPLAY_TYPE,
            region=DISPLAY_REGION,
        )
        for hit in hits
        if is_common_equity(hit)
    ]
    return kept[:MAX_RESULTS]


def fallback_matches(query: str) -> list[SearchResult]:
    """Substring-match the popular list on symbol or name, case-insensitive."""
    needle = query.strip().lower()
    matches = [
        item
        for item in POPULAR_SYMBOLS
        if needle in item.symbol.lower() or needle in item.name.lower()
    ]
    return matches[:MAX_RESULTS]
