"""
Cache-first lookup shared by every pricing service.

Resolves one key through the four-state decision order:

1. Fresh hit: entry younger than the namespace fresh duration is
   returned without any provider call.
2. Refetch: otherwise the provider is called; success replaces the
   entry wholesale.
3. Stale fallback: a failed refetch returns the existing entry if the
   namespace policy still allows it as a fallback.
4. Hard miss: with no usable entry the ProviderError propagates and the
   cache is left as it was.
"""

import logging
from typing import Awaitable, Callable, Optional, TypeVar

from app.application.pricing.dtos import CachedValue
from app.domain.pricing.entities import CacheNamespace, Freshness
from app.domain.pricing.errors import ProviderError
from app.domain.pricing.ports import CacheStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


def fresh_hit(
    store: CacheStore, namespace: CacheNamespace, key: str
) -> Optional[CachedValue]:
    """Return the cached value if it is fresh, else None."""
    entry = store.get(namespace, key)
    if entry is None:
        return None
    now = store.now()
    if entry.freshness(now, store.policy(namespace)) is not Freshness.FRESH:
        return None
    logger.debug("Cache hit (fresh) %s:%s", namespace.value, key)
    return CachedValue(
        value=entry.value, cached=True, stale=False, cache_age=int(entry.age(now))
    )


def stale_fallback(
    store: CacheStore,
    namespace: CacheNamespace,
    key: str,
) -> Optional[CachedValue]:
    """Return the cached value as a stale fallback if the policy allows it."""
    entry = store.get(namespace, key)
    if entry is None:
        return None
    now = store.now()
    if not entry.usable_as_fallback(now, store.policy(namespace)):
        return None
    logger.warning(
        "Serving stale cache for %s:%s (age=%ds)",
        namespace.value,
        key,
        int(entry.age(now)),
    )
    return CachedValue(
        value=entry.value, cached=True, stale=True, cache_age=int(entry.age(now))
    )


async def cached_fetch(
    store: CacheStore,
    namespace: CacheNamespace,
    key: str,
    fetch: Callable[[], Awaitable[T]],
) -> CachedValue:
    """Resolve one key cache-first, falling back to stale data on failure.

    Args:
        store: The shared cache.
        namespace: Namespace holding the key.
        key: Cache key within the namespace.
        fetch: Zero-argument coroutine factory calling the provider.

    Returns:
        The value with its cached/stale annotations.

    Raises:
        ProviderError: On a hard miss (refetch failed, no usable entry).
    """
    hit = fresh_hit(store, namespace, key)
    if hit is not None:
        return hit

    try:
        value = await fetch()
    except ProviderError as exc:
        logger.warning("Refetch failed for %s:%s: %s", namespace.value, key, exc)
        fallback = stale_fallback(store, namespace, key)
        if fallback is not None:
            return fallback
        raise

    store.set(namespace, key, value)
    return CachedValue(value=value, cached=False, stale=False, cache_age=0)
