"""
Application configuration.

Loads settings from environment variables and .env file.
All configuration is centralized here; provider keys never appear elsewhere.
"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from app.domain.pricing.entities import CacheNamespace, NamespacePolicy

MINUTE = 60
HOUR = 60 * MINUTE


class Settings(BaseSettings):
    """Application settings loaded from environment.

    Attributes:
        project_name: Display name for the API.
        version: Current API version string.
        debug: Enable debug mode. Must be False in production.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
        rate_limit_default: Default rate limit for all endpoints.
        rate_limit_heavy: Rate limit for the portfolio history endpoints.

    Provider keys are optional so the service starts without them;
    calls to a provider lacking its key fail upstream and fall back
    to the cache like any other provider error.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    project_name: str = "PaperTrade Pricing"
    version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"
    rate_limit_default: str = "120/minute"
    rate_limit_heavy: str = "20/minute"

    # Upstream providers
    finnhub_api_key: Optional[str] = None
    finnhub_base_url: str = "https://finnhub.io/api/v1"
    coingecko_api_key: Optional[str] = None
    coingecko_base_url: str = "https://api.coingecko.com/api/v3"
    alpha_vantage_api_key: Optional[str] = None
    alpha_vantage_base_url: str = "https://www.alphavantage.co/query"
    provider_timeout_seconds: float = 10.0

    # Cache freshness, in seconds
    stock_fresh_seconds: float = 5 * MINUTE
    crypto_fresh_seconds: float = 10 * MINUTE
    search_fresh_seconds: float = 5 * MINUTE
    quote_expiry_seconds: float = HOUR
    history_fresh_seconds: float = HOUR
    history_expiry_seconds: float = 24 * HOUR
    cache_sweep_interval_seconds: float = HOUR

    # Courtesy delays between successive history calls to one provider
    stock_history_delay_seconds: float = 0.2
    crypto_history_delay_seconds: float = 0.3

    def cache_policies(self) -> dict[CacheNamespace, NamespacePolicy]:
        """Build the per-namespace freshness policies.

        Crypto quotes and search results may be served as a fallback
        at any age until swept; stock quotes and history only within
        their hard expiry.
        """
        return {
            CacheNamespace.STOCKS: NamespacePolicy(
                fresh_seconds=self.stock_fresh_seconds,
                expiry_seconds=self.quote_expiry_seconds,
            ),
            CacheNamespace.CRYPTO: NamespacePolicy(
                fresh_seconds=self.crypto_fresh_seconds,
                expiry_seconds=self.quote_expiry_seconds,
                fallback_beyond_expiry=True,
            ),
            CacheNamespace.SEARCH: NamespacePolicy(
                fresh_seconds=self.search_fresh_seconds,
                expiry_seconds=self.quote_expiry_seconds,
                fallback_beyond_expiry=True,
            ),
            CacheNamespace.STOCK_HISTORY: NamespacePolicy(
                fresh_seconds=self.history_fresh_seconds,
                expiry_seconds=self.history_expiry_seconds,
            ),
            CacheNamespace.CRYPTO_HISTORY: NamespacePolicy(
                fresh_seconds=self.history_fresh_seconds,
                expiry_seconds=self.history_expiry_seconds,
            ),
        }


settings = Settings()
