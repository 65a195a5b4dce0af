"""Thread-safe read-through cache with TTL expiry and request coalescing."""

from __future__ import annotations

import copy
import logging
import threading
import time
from collections.abc import Callable
from concurrent.futures import Future
from dataclasses import dataclass, replace
from typing import Any, Generic, TypeVar, cast

from readthrough.errors import CacheTypeError
from readthrough.types import CacheConfig, CacheEntry, CacheStats, StorageMode, _Counters

T = TypeVar("T")

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass(slots=True)
class _Flight:
    """A load in progress for one key.

    ``stale`` is set when the key is evicted while the load runs. The flight
    is then unregistered: waiters that already joined get its result, later
    callers start a new load, and the result is not stored.
    """

    future: Any
    stale: bool = False


class _BaseCache(Generic[T]):
    """State and bookkeeping shared by the sync and async caches.

    Every critical section runs under ``_lock`` and never blocks on a
    loader, so loads for unrelated keys proceed in parallel.
    """

    def __init__(
        self,
        name: str,
        config: CacheConfig,
        *,
        clock: Clock = time.monotonic,
    ) -> None:
        self._name = name
        self._config = config
        self._clock = clock
        self._entries: dict[str, CacheEntry[T]] = {}
        self._in_flight: dict[str, _Flight] = {}
        self._counters = _Counters()
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return self._name

    @property
    def config(self) -> CacheConfig:
        return self._config

    @property
    def stats(self) -> CacheStats:
        """Snapshot of hit/miss/load/eviction counters."""
        with self._lock:
            return self._counters.snapshot()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(cast(str, key))
            return entry is not None and entry.is_live(now)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(name={self._name!r}, ttl={self._config.ttl}, "
            f"storage_mode={self._config.storage_mode.value})"
        )

    # -------------------------------------------------------------------------
    # Contract checks and storage mode
    # -------------------------------------------------------------------------

    def _check_key(self, key: Any) -> None:
        if not isinstance(key, self._config.runtime_key_type):
            raise CacheTypeError(
                f"Cache {self._name!r} expects keys of type "
                f"{self._config.key_type!r}, got {type(key).__name__}"
            )

    def _check_value(self, value: Any) -> None:
        if not isinstance(value, self._config.runtime_value_type):
            raise CacheTypeError(
                f"Cache {self._name!r} expects values of type "
                f"{self._config.value_type!r}, got {type(value).__name__}"
            )

    def _copy(self, value: T) -> T:
        if self._config.storage_mode is StorageMode.BY_VALUE:
            return copy.deepcopy(value)
        return value

    def _copy_entry(self, entry: CacheEntry[T]) -> CacheEntry[T]:
        if self._config.storage_mode is StorageMode.BY_VALUE:
            return replace(entry, value=copy.deepcopy(entry.value))
        return entry

    # -------------------------------------------------------------------------
    # Locked helpers (caller holds self._lock)
    # -------------------------------------------------------------------------

    def _lookup_locked(self, key: str, now: float) -> CacheEntry[T] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if not entry.is_live(now):
            del self._entries[key]
            self._counters.bump("evictions")
            logger.debug("cache %s: expired %s", self._name, key)
            return None
        return entry

    def _store_locked(self, key: str, value: T) -> None:
        self._entries[key] = CacheEntry(
            key=key, value=value, created_at=self._clock(), ttl=self._config.ttl
        )

    def _finish_flight_locked(self, key: str, flight: _Flight) -> None:
        if self._in_flight.get(key) is flight:
            del self._in_flight[key]

    def _evict_locked(self, key: str) -> bool:
        flight = self._in_flight.pop(key, None)
        if flight is not None:
            # Callers arriving after the eviction start a fresh load.
            flight.stale = True
        if self._entries.pop(key, None) is None:
            return False
        self._counters.bump("evictions")
        return True

    def _evict_all_locked(self) -> int:
        for flight in self._in_flight.values():
            flight.stale = True
        self._in_flight.clear()
        count = len(self._entries)
        self._entries.clear()
        self._counters.bump("evictions", count)
        return count

    def _purge_expired_locked(self, now: float) -> int:
        expired = [k for k, e in self._entries.items() if not e.is_live(now)]
        for key in expired:
            del self._entries[key]
        self._counters.bump("evictions", len(expired))
        return len(expired)

    def _lookup_or_join(
        self, key: str, sync: bool, new_future: Callable[[], Any]
    ) -> tuple[CacheEntry[T] | None, _Flight | None, bool]:
        """Return (hit, flight, is_leader) for a get-or-load call."""
        now = self._clock()
        with self._lock:
            entry = self._lookup_locked(key, now)
            if entry is not None:
                self._counters.bump("hits")
                return entry, None, False
            self._counters.bump("misses")
            flight = self._in_flight.get(key) if sync else None
            if flight is not None:
                return None, flight, False
            flight = _Flight(new_future())
            if sync:
                self._in_flight[key] = flight
            return None, flight, True

    def _complete_load(self, key: str, flight: _Flight, value: T) -> T:
        """Record a successful load; returns the value as stored."""
        stored = self._copy(value)
        with self._lock:
            self._counters.bump("loads")
            if flight.stale:
                logger.debug("cache %s: %s evicted during load, not stored", self._name, key)
            else:
                self._store_locked(key, stored)
            self._finish_flight_locked(key, flight)
        return stored

    def _fail_load(self, key: str, flight: _Flight, error: BaseException) -> None:
        with self._lock:
            self._counters.bump("load_failures")
            self._finish_flight_locked(key, flight)
        logger.warning(
            "cache %s: load for %s failed: %s: %s",
            self._name,
            key,
            type(error).__name__,
            error,
        )


class Cache(_BaseCache[T]):
    """Named in-memory cache, safe for use from many threads.

    Usage:
        cache = Cache("weather", CacheConfig(ttl="10m", value_type=Weather))
        weather = cache.get_or_load(key, lambda: backend.fetch(lat, lon))
        cache.evict_all()
    """

    def get(self, key: str) -> CacheEntry[T] | None:
        """Get the live entry for ``key``, or None if absent or expired."""
        self._check_key(key)
        now = self._clock()
        with self._lock:
            entry = self._lookup_locked(key, now)
            self._counters.bump("misses" if entry is None else "hits")
        if entry is None:
            return None
        return self._copy_entry(entry)

    def get_value(self, key: str, default: Any = None) -> Any:
        """Get the live value for ``key``, or ``default``."""
        entry = self.get(key)
        return default if entry is None else entry.value

    def put(self, key: str, value: T) -> None:
        """Store ``value`` under ``key``, replacing any existing entry."""
        self._check_key(key)
        self._check_value(value)
        stored = self._copy(value)
        with self._lock:
            self._store_locked(key, stored)
        logger.debug("cache %s: put %s", self._name, key)

    def evict(self, key: str) -> bool:
        """Remove the entry for ``key``. Returns True if one was removed."""
        with self._lock:
            removed = self._evict_locked(key)
        if removed:
            logger.debug("cache %s: evicted %s", self._name, key)
        return removed

    def evict_all(self) -> int:
        """Remove every entry. Returns the number removed."""
        with self._lock:
            count = self._evict_all_locked()
        logger.debug("cache %s: evicted all (%d entries)", self._name, count)
        return count

    def purge_expired(self) -> int:
        """Drop expired entries now instead of waiting for their next access."""
        now = self._clock()
        with self._lock:
            return self._purge_expired_locked(now)

    def get_or_load(self, key: str, loader: Callable[[], T], *, sync: bool = True) -> T:
        """Return the cached value for ``key``, loading it on a miss.

        With ``sync=True`` concurrent misses on the same key share a single
        ``loader`` call: the first caller runs it and the rest block until it
        finishes, then receive the same value or the same exception. Failed
        loads are never cached.
        """
        self._check_key(key)
        entry, flight, leader = self._lookup_or_join(key, sync, Future)
        if entry is not None:
            return self._copy_entry(entry).value
        assert flight is not None

        if not leader:
            logger.debug("cache %s: waiting on in-flight load for %s", self._name, key)
            stored = cast(T, flight.future.result())
            return self._copy(stored)

        logger.debug("cache %s: miss %s, loading", self._name, key)
        try:
            value = loader()
            self._check_value(value)
        except BaseException as e:
            self._fail_load(key, flight, e)
            flight.future.set_exception(e)
            raise
        stored = self._complete_load(key, flight, value)
        flight.future.set_result(stored)
        return value


__all__ = ["Cache", "Clock"]
