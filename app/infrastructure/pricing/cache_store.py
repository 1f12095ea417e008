"""
Adapter: In-memory cache store.

Implements the CacheStore port with one dict per namespace.
Owns the background sweep task that deletes expired entries; the
sweep is the only path that removes an entry during normal operation.
"""

import asyncio
import logging
import time
from typing import Any, Callable, Optional

from app.domain.pricing.entities import (
    CacheEntry,
    CacheNamespace,
    Freshness,
    NamespacePolicy,
)
from app.domain.pricing.ports import CacheStore

logger = logging.getLogger(__name__)


class InMemoryCacheStore(CacheStore):
    """Process-wide cache of last successfully fetched values.

    Writes are a single dict assignment, so concurrent tasks on one
    event loop never observe a half-written entry and no lock is needed.

    Usage:
        store = InMemoryCacheStore(settings.cache_policies())
        await store.start()   # begin periodic sweeping
        await store.stop()    # cancel the sweep task
    """

    def __init__(
        self,
        policies: dict[CacheNamespace, NamespacePolicy],
        sweep_interval_seconds: float = 3600.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        missing = set(CacheNamespace) - set(policies)
        if missing:
            names = ", ".join(sorted(ns.value for ns in missing))
            raise ValueError(f"Missing cache policy for: {names}")
        if sweep_interval_seconds <= 0:
            raise ValueError("sweep_interval_seconds must be positive")

        self._policies = dict(policies)
        self._sweep_interval = sweep_interval_seconds
        self._clock = clock
        self._entries: dict[CacheNamespace, dict[str, CacheEntry[Any]]] = {
            namespace: {} for namespace in CacheNamespace
        }
        self._sweep_task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._sweep_task is not None and not self._sweep_task.done()

    # ------------------------------------------------------------------
    # CacheStore port
    # ------------------------------------------------------------------

    def policy(self, namespace: CacheNamespace) -> NamespacePolicy:
        return self._policies[namespace]

    def now(self) -> float:
        return self._clock()

    def get(self, namespace: CacheNamespace, key: str) -> Optional[CacheEntry[Any]]:
        return self._entries[namespace].get(key)

    def set(self, namespace: CacheNamespace, key: str, value: Any) -> CacheEntry[Any]:
        entry = CacheEntry(value=value, fetched_at=self._clock())
        self._entries[namespace][key] = entry
        return entry

    def sweep(self) -> int:
        """Delete entries older than their namespace's hard expiry."""
        now = self._clock()
        removed = 0
        for namespace, entries in self._entries.items():
            policy = self._policies[namespace]
            expired = [
                key
                for key, entry in entries.items()
                if entry.freshness(now, policy) is Freshness.EXPIRED
            ]
            for key in expired:
                del entries[key]
            removed += len(expired)
        if removed:
            logger.info("Cache sweep removed %d expired entries", removed)
        return removed

    def stats(self) -> dict[str, dict[str, Any]]:
        return {
            namespace.value: {"count": len(entries), "keys": list(entries)}
            for namespace, entries in self._entries.items()
        }

    def clear(self) -> None:
        for entries in self._entries.values():
            entries.clear()
        logger.info("Cache cleared")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start the periodic sweep task on the running event loop."""
        if self.is_running:
            logger.warning("Cache sweeper already running.")
            return
        self._sweep_task = asyncio.create_task(
            self._sweep_loop(), name="cache-sweeper"
        )
        logger.info(
            "Cache sweeper started (interval=%.0fs)", self._sweep_interval
        )

    async def stop(self) -> None:
        """Cancel the sweep task and wait for it to finish."""
        task, self._sweep_task = self._sweep_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Cache sweeper stopped.")

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            try:
                self.sweep()
            except Exception:
                logger.exception("Cache sweep failed")
