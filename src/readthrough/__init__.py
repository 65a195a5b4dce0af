"""readthrough - Read-through caching with TTL expiry and stampede protection."""

# Caches
from readthrough.async_cache import AsyncCache
from readthrough.cache import Cache

# Duration parsing
from readthrough.duration import parse_duration

# Errors
from readthrough.errors import (
    BackendError,
    CacheConfigurationError,
    CacheError,
    CacheNotFoundError,
    CacheTypeError,
)

# Key policies
from readthrough.keys import HashedKey, KeyPolicy, ParameterizedKey, SingletonKey

# Registry and decorators
from readthrough.manager import AsyncCacheManager, CacheManager

# Core types
from readthrough.types import (
    CacheConfig,
    CacheEntry,
    CacheStats,
    Duration,
    StorageMode,
)

__version__ = "0.1.0"

__all__ = [
    "AsyncCache",
    "AsyncCacheManager",
    "BackendError",
    "Cache",
    "CacheConfig",
    "CacheConfigurationError",
    "CacheEntry",
    "CacheError",
    "CacheManager",
    "CacheNotFoundError",
    "CacheStats",
    "CacheTypeError",
    "Duration",
    "HashedKey",
    "KeyPolicy",
    "ParameterizedKey",
    "SingletonKey",
    "StorageMode",
    "parse_duration",
]
