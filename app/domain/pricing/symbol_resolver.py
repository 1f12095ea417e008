"""
Domain service: symbol classification and provider id resolution.

Decides whether a ticker is a stock or a crypto asset and maps crypto
tickers to the identifier the crypto provider expects. Classification
is a static membership test so that the cache namespace, the adapter
dispatch and the resolver always agree.
"""

from app.domain.pricing.entities import AssetClass
from app.domain.pricing.errors import UnsupportedSymbolError, ValidationError

# Base ticker -> CoinGecko coin id.
CRYPTO_COIN_IDS: dict[str, str] = {
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "BNB": "binancecoin",
    "SOL": "solana",
    "XRP": "ripple",
    "ADA": "cardano",
    "DOGE": "dogecoin",
    "DOT": "polkadot",
    "AVAX": "avalanche-2",
    "LINK": "chainlink",
    "UNI": "uniswap",
    "LTC": "litecoin",
    "ATOM": "cosmos",
    "TRX": "tron",
}

# Alternative base tickers used by some venues.
CRYPTO_TICKER_SYNONYMS: dict[str, str] = {
    "XBT": "BTC",
}

QUOTE_CURRENCY_SUFFIXES = ("USD", "USDT")


def _build_alias_table() -> dict[str, str]:
    """Map every accepted crypto spelling to its base ticker."""
    bases = {base: base for base in CRYPTO_COIN_IDS}
    bases.update(CRYPTO_TICKER_SYNONYMS)

    aliases: dict[str, str] = {}
    for spelling, base in bases.items():
        aliases[spelling] = base
        for suffix in QUOTE_CURRENCY_SUFFIXES:
            aliases[f"{spelling}{suffix}"] = base
            aliases[f"{spelling}-{suffix}"] = base
    return aliases


CRYPTO_ALIASES: dict[str, str] = _build_alias_table()


def normalize_symbol(symbol: str) -> str:
    """Return the trimmed uppercase form of a ticker.

    Raises:
        ValidationError: If the symbol is blank.
    """
    if not symbol or not symbol.strip():
        raise ValidationError("symbol must be a non-empty string")
    return symbol.strip().upper()


class SymbolResolver:
    """Classifies tickers and resolves crypto provider ids.

    Pure and stateless apart from the alias tables it is built with,
    so tests can inject a reduced table.
    """

    def __init__(
        self,
        aliases: dict[str, str] | None = None,
        coin_ids: dict[str, str] | None = None,
    ) -> None:
        self._aliases = CRYPTO_ALIASES if aliases is None else aliases
        self._coin_ids = CRYPTO_COIN_IDS if coin_ids is None else coin_ids

    def classify(self, symbol: str) -> AssetClass:
        """Return CRYPTO for any known crypto spelling, STOCK otherwise."""
        if normalize_symbol(symbol) in self._aliases:
            return AssetClass.CRYPTO
        return AssetClass.STOCK

    def canonical_symbol(self, symbol: str) -> str:
        """Return the base ticker for crypto aliases, the ticker itself for stocks."""
        normalized = normalize_symbol(symbol)
        return self._aliases.get(normalized, normalized)

    def to_provider_id(self, symbol: str) -> str:
        """Return the crypto provider's coin id for a ticker.

        Raises:
            UnsupportedSymbolError: If the ticker has no coin mapping.
        """
        normalized = normalize_symbol(symbol)
        base = self._aliases.get(normalized)
        coin_id = self._coin_ids.get(base) if base else None
        if coin_id is None:
            raise UnsupportedSymbolError(normalized)
        return coin_id

    def supported_crypto(self) -> list[str]:
        """Return the supported base tickers in a stable order."""
        return sorted(self._coin_ids)
