"""Asyncio flavour of the read-through cache."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar, cast

from readthrough.cache import _BaseCache
from readthrough.types import CacheEntry

T = TypeVar("T")

logger = logging.getLogger(__name__)


class AsyncCache(_BaseCache[T]):
    """Named in-memory cache for coroutine loaders.

    Coalescing futures belong to the running event loop, so an instance
    should be shared by tasks on one loop only.

    Usage:
        cache = AsyncCache("weather", CacheConfig(ttl="10m"))
        weather = await cache.get_or_load(key, lambda: client.fetch(lat, lon))
    """

    async def get(self, key: str) -> CacheEntry[T] | None:
        """Get the live entry for ``key``, or None if absent or expired."""
        self._check_key(key)
        now = self._clock()
        with self._lock:
            entry = self._lookup_locked(key, now)
            self._counters.bump("misses" if entry is None else "hits")
        if entry is None:
            return None
        return self._copy_entry(entry)

    async def get_value(self, key: str, default: Any = None) -> Any:
        """Get the live value for ``key``, or ``default``."""
        entry = await self.get(key)
        return default if entry is None else entry.value

    async def put(self, key: str, value: T) -> None:
        """Store ``value`` under ``key``, replacing any existing entry."""
        self._check_key(key)
        self._check_value(value)
        stored = self._copy(value)
        with self._lock:
            self._store_locked(key, stored)
        logger.debug("cache %s: put %s", self._name, key)

    async def evict(self, key: str) -> bool:
        """Remove the entry for ``key``. Returns True if one was removed."""
        with self._lock:
            removed = self._evict_locked(key)
        if removed:
            logger.debug("cache %s: evicted %s", self._name, key)
        return removed

    async def evict_all(self) -> int:
        """Remove every entry. Returns the number removed."""
        with self._lock:
            count = self._evict_all_locked()
        logger.debug("cache %s: evicted all (%d entries)", self._name, count)
        return count

    async def purge_expired(self) -> int:
        """Drop expired entries now instead of waiting for their next access."""
        now = self._clock()
        with self._lock:
            return self._purge_expired_locked(now)

    async def get_or_load(
        self,
        key: str,
        loader: Callable[[], Awaitable[T]],
        *,
        sync: bool = True,
    ) -> T:
        """Return the cached value for ``key``, awaiting ``loader`` on a miss.

        With ``sync=True`` concurrent misses on the same key share one
        ``loader`` call. If the leading task is cancelled, waiters receive
        ``CancelledError``; cancelling a waiter only stops that waiter.
        """
        self._check_key(key)
        loop = asyncio.get_running_loop()
        entry, flight, leader = self._lookup_or_join(key, sync, loop.create_future)
        if entry is not None:
            return self._copy_entry(entry).value
        assert flight is not None
        future: asyncio.Future[T] = flight.future

        if not leader:
            logger.debug("cache %s: waiting on in-flight load for %s", self._name, key)
            stored = await asyncio.shield(future)
            return self._copy(stored)

        logger.debug("cache %s: miss %s, loading", self._name, key)
        try:
            value = await loader()
            self._check_value(value)
        except asyncio.CancelledError as e:
            self._fail_load(key, flight, e)
            future.cancel()
            raise
        except BaseException as e:
            self._fail_load(key, flight, e)
            future.set_exception(e)
            # Marks the exception retrieved when the leader has no waiters.
            future.exception()
            raise
        stored = cast(T, self._complete_load(key, flight, value))
        future.set_result(stored)
        return value


__all__ = ["AsyncCache"]
