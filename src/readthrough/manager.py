"""Cache registry and the read-through / write-invalidation decorators."""

from __future__ import annotations

import inspect
import logging
import threading
import time
from collections.abc import Awaitable, Callable, Iterator
from functools import wraps
from typing import Any, Generic, ParamSpec, TypeVar

from readthrough.async_cache import AsyncCache
from readthrough.cache import Cache, Clock
from readthrough.errors import CacheConfigurationError, CacheNotFoundError
from readthrough.keys import HashedKey, KeyPolicy
from readthrough.types import CacheConfig

P = ParamSpec("P")
R = TypeVar("R")
C = TypeVar("C", Cache[Any], AsyncCache[Any])

logger = logging.getLogger(__name__)


def _key_params(
    sig: inspect.Signature, args: tuple[Any, ...], kwargs: dict[str, Any]
) -> dict[str, Any]:
    """Bind a call's arguments by name, without the leading self/cls."""
    bound = sig.bind(*args, **kwargs)
    bound.apply_defaults()
    params = dict(bound.arguments)
    first = next(iter(sig.parameters), None)
    if first in ("self", "cls"):
        params.pop(first)
    return params


class _BaseCacheManager(Generic[C]):
    """Process-wide registry of named caches.

    Create one at startup and hand it to every component that reads or
    invalidates cached data.
    """

    _cache_type: type[C]

    def __init__(self, *, clock: Clock = time.monotonic) -> None:
        self._clock = clock
        self._caches: dict[str, C] = {}
        self._lock = threading.Lock()

    def get_or_create_cache(self, name: str, config: CacheConfig) -> C:
        """Return the cache called ``name``, creating it on first use.

        Re-declaring a cache with an equal config is a no-op. A different
        config raises CacheConfigurationError rather than picking one.
        """
        with self._lock:
            cache = self._caches.get(name)
            if cache is not None:
                if cache.config != config:
                    raise CacheConfigurationError(
                        f"Cache {name!r} already exists with {cache.config!r}, "
                        f"cannot redeclare it with {config!r}"
                    )
                return cache
            cache = self._cache_type(name, config, clock=self._clock)
            self._caches[name] = cache
        logger.info(
            "Created cache %s (ttl=%ss, storage=%s)",
            name,
            config.ttl,
            config.storage_mode.value,
        )
        return cache

    def get_cache(self, name: str) -> C | None:
        """Look up a cache without creating it."""
        with self._lock:
            return self._caches.get(name)

    def require(self, name: str) -> C:
        """Look up a cache that must already exist."""
        cache = self.get_cache(name)
        if cache is None:
            raise CacheNotFoundError(name)
        return cache

    @property
    def cache_names(self) -> list[str]:
        with self._lock:
            return list(self._caches)

    def __iter__(self) -> Iterator[C]:
        with self._lock:
            return iter(list(self._caches.values()))

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._caches

    def clear(self) -> None:
        """Drop every cache from the registry (process teardown)."""
        with self._lock:
            self._caches.clear()

    def _targets(self, names: tuple[str, ...]) -> list[C]:
        if not names:
            return list(self)
        return [self.require(name) for name in names]


class CacheManager(_BaseCacheManager[Cache[Any]]):
    """Registry of thread-safe caches.

    Usage:
        caches = CacheManager()
        caches.get_or_create_cache("notice:list", CacheConfig(ttl="60s"))

        @caches.cacheable("notice:list", key=SingletonKey("notice_list"))
        def get_notice_list() -> tuple[Notice, ...]:
            return tuple(repository.list_notices())

        @caches.evicts("notice:list")
        def insert_notice(notice: Notice) -> None:
            repository.insert_notice(notice)
    """

    _cache_type = Cache

    def evict_all(self, *names: str) -> int:
        """Empty the named caches (every cache if none are named)."""
        return sum(cache.evict_all() for cache in self._targets(names))

    def purge_expired(self) -> int:
        return sum(cache.purge_expired() for cache in self)

    def cacheable(
        self,
        name: str,
        *,
        key: KeyPolicy | None = None,
        sync: bool = True,
    ) -> Callable[[Callable[P, R]], Callable[P, R]]:
        """Decorator that serves a function's result from the named cache.

        ``key`` is called with the function's arguments by name (minus
        ``self``/``cls``). With ``sync=True`` concurrent misses on one key
        run the function once.
        """

        def decorator(fn: Callable[P, R]) -> Callable[P, R]:
            sig = inspect.signature(fn)
            policy = key or HashedKey(fn.__qualname__)

            @wraps(fn)
            def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
                cache = self.require(name)
                cache_key = policy(**_key_params(sig, args, kwargs))
                return cache.get_or_load(cache_key, lambda: fn(*args, **kwargs), sync=sync)

            return wrapper

        return decorator

    def evicts(self, *names: str) -> Callable[[Callable[P, R]], Callable[P, R]]:
        """Decorator that empties the named caches after a successful call.

        If the wrapped function raises, nothing is evicted.
        """
        if not names:
            raise ValueError("evicts() needs at least one cache name")

        def decorator(fn: Callable[P, R]) -> Callable[P, R]:
            @wraps(fn)
            def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
                result = fn(*args, **kwargs)
                self.evict_all(*names)
                return result

            return wrapper

        return decorator


class AsyncCacheManager(_BaseCacheManager[AsyncCache[Any]]):
    """Registry of asyncio caches; decorators wrap coroutine functions."""

    _cache_type = AsyncCache

    async def evict_all(self, *names: str) -> int:
        """Empty the named caches (every cache if none are named)."""
        total = 0
        for cache in self._targets(names):
            total += await cache.evict_all()
        return total

    async def purge_expired(self) -> int:
        total = 0
        for cache in self:
            total += await cache.purge_expired()
        return total

    def cacheable(
        self,
        name: str,
        *,
        key: KeyPolicy | None = None,
        sync: bool = True,
    ) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
        """Async counterpart of CacheManager.cacheable."""

        def decorator(fn: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
            if not inspect.iscoroutinefunction(fn):
                raise TypeError(f"{fn.__qualname__} must be a coroutine function")
            sig = inspect.signature(fn)
            policy = key or HashedKey(fn.__qualname__)

            @wraps(fn)
            async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
                cache = self.require(name)
                cache_key = policy(**_key_params(sig, args, kwargs))
                return await cache.get_or_load(
                    cache_key, lambda: fn(*args, **kwargs), sync=sync
                )

            return wrapper

        return decorator

    def evicts(
        self, *names: str
    ) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
        """Async counterpart of CacheManager.evicts."""
        if not names:
            raise ValueError("evicts() needs at least one cache name")

        def decorator(fn: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
            @wraps(fn)
            async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
                result = await fn(*args, **kwargs)
                await self.evict_all(*names)
                return result

            return wrapper

        return decorator


__all__ = ["AsyncCacheManager", "CacheManager"]
