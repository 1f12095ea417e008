"""
Use case: Cached equity symbol search.

Input: a free-text query (at least 2 characters)
Output: list[SearchResult], at most 10, in provider order
Side effects: Successful provider searches are cached per lowercased query.
Failure cases: ValidationError for short queries. Provider failures never
propagate: stale cache first, then the static popular-symbol list.
"""

import logging

from app.domain.pricing.entities import CacheNamespace, SearchResult
from app.domain.pricing.errors import ProviderError, ValidationError
from app.domain.pricing.ports import CacheStore, SymbolSearchProvider
from app.domain.pricing.search_rules import (
    MIN_QUERY_LENGTH,
    fallback_matches,
    filter_results,
)
from app.application.pricing.cache_lookup import cached_fetch

logger = logging.getLogger(__name__)


class SearchService:
    """Orchestrates symbol search with cache and static fallbacks."""

    def __init__(self, cache: CacheStore, provider: SymbolSearchProvider) -> None:
        self._cache = cache
        self._provider = provider

    async def search(self, query: str) -> list[SearchResult]:
        """Search for equity symbols matching a query.

        Args:
            query: Free text; matched by the provider on ticker and name.

        Returns:
            Up to 10 common-stock results.

        Raises:
            ValidationError: If the trimmed query is shorter than 2 characters.
        """
        text = (query or "").strip()
        if len(text) < MIN_QUERY_LENGTH:
            raise ValidationError(
                f"query must be at least {MIN_QUERY_LENGTH} characters"
            )

        async def fetch() -> list[SearchResult]:
            hits = await self._provider.search(text)
            return filter_results(hits)

        try:
            result = await cached_fetch(
                self._cache, CacheNamespace.SEARCH, text.lower(), fetch
            )
        except ProviderError as exc:
            logger.warning("Search for %r falling back to popular symbols: %s", text, exc)
            return fallback_matches(text)
        return list(result.value)
