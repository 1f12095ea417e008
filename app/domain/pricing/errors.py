"""
Domain-specific errors for the pricing bounded context.

All errors raised from the pricing layers must be defined here.
These are mapped to HTTP responses at the interface layer.
No framework imports allowed.
"""

from enum import Enum


class PricingDomainError(Exception):
    """Base error for all pricing domain errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)


class ProviderErrorKind(Enum):
    """Why an upstream market-data call did not produce data."""

    RATE_LIMITED = "rate_limited"
    NOT_FOUND = "not_found"
    TIMEOUT = "timeout"
    MALFORMED = "malformed"
    UNAVAILABLE = "unavailable"


class ProviderError(PricingDomainError):
    """Raised when a provider call fails for any reason.

    Transient by nature: the quote cache recovers from it whenever
    a cached value exists for the key.
    """

    def __init__(self, kind: ProviderErrorKind, provider: str, detail: str = "") -> None:
        message = f"{provider} {kind.value}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.kind = kind
        self.provider = provider
        self.detail = detail


class UnsupportedSymbolError(PricingDomainError):
    """Raised when a crypto symbol has no provider mapping. Never retried."""

    def __init__(self, symbol: str) -> None:
        super().__init__(f"Symbol not supported: {symbol}")
        self.symbol = symbol


class ValidationError(PricingDomainError):
    """Raised when caller-supplied input is rejected before any IO."""
