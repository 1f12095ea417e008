"""
Shared fixtures for the pricing tests.

The cache store is driven by a manual clock so freshness transitions
are deterministic; policies mirror the production defaults.
"""

import pytest

from app.core.config import Settings
from app.domain.pricing.entities import CacheNamespace, NamespacePolicy
from app.infrastructure.pricing.cache_store import InMemoryCacheStore

START = 1_700_000_000.0


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: float = START) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def policies() -> dict[CacheNamespace, NamespacePolicy]:
    return Settings(_env_file=None).cache_policies()


@pytest.fixture
def cache(clock: FakeClock, policies) -> InMemoryCacheStore:
    return InMemoryCacheStore(policies, sweep_interval_seconds=3600, clock=clock)
