"""Core types for readthrough cache library."""

from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from types import UnionType
from typing import Any, Generic, TypeVar, Union, get_origin

T = TypeVar("T")

# Duration type alias
Duration = str | int | float | timedelta  # "30s", "10m" or seconds


class StorageMode(str, Enum):
    """How a cache holds values."""

    BY_REFERENCE = "by_reference"  # shared handle, values treated as immutable
    BY_VALUE = "by_value"  # deep copy on put and on get


def _runtime_type(declared: Any) -> Any:
    """Reduce a declared type to something ``isinstance`` accepts.

    ``list[Notice]`` checks as ``list``; unions are passed through as-is.
    """
    if declared is Any:
        return object
    origin = get_origin(declared)
    if origin is None or origin in (Union, UnionType):
        return declared
    return origin


@dataclass(frozen=True, slots=True)
class CacheConfig:
    """Per-cache configuration, fixed at creation time."""

    ttl: Duration
    key_type: Any = str
    value_type: Any = object
    storage_mode: StorageMode = StorageMode.BY_REFERENCE

    def __post_init__(self) -> None:
        from readthrough.duration import parse_duration
        from readthrough.errors import CacheConfigurationError

        try:
            seconds = parse_duration(self.ttl)
        except ValueError as e:
            raise CacheConfigurationError(str(e)) from e
        if seconds <= 0:
            raise CacheConfigurationError(f"ttl must be positive, got {self.ttl!r}")
        object.__setattr__(self, "ttl", seconds)
        object.__setattr__(self, "storage_mode", StorageMode(self.storage_mode))

    @property
    def runtime_key_type(self) -> Any:
        return _runtime_type(self.key_type)

    @property
    def runtime_value_type(self) -> Any:
        return _runtime_type(self.value_type)


@dataclass(frozen=True, slots=True)
class CacheEntry(Generic[T]):
    """A cached value with its creation time and TTL (seconds)."""

    key: str
    value: T
    created_at: float
    ttl: float

    @property
    def expires_at(self) -> float:
        return self.created_at + self.ttl

    def is_live(self, now: float) -> bool:
        """Check whether the entry may still be served at ``now``."""
        return now < self.expires_at


@dataclass(frozen=True, slots=True)
class CacheStats:
    """Point-in-time counters for a single cache."""

    hits: int = 0
    misses: int = 0
    loads: int = 0
    load_failures: int = 0
    evictions: int = 0


@dataclass(slots=True)
class _Counters:
    """Mutable counters behind CacheStats; guarded by the owning cache's lock."""

    values: dict[str, int] = field(
        default_factory=lambda: dict.fromkeys(
            ("hits", "misses", "loads", "load_failures", "evictions"), 0
        )
    )

    def bump(self, name: str, amount: int = 1) -> None:
        self.values[name] += amount

    def snapshot(self) -> CacheStats:
        return CacheStats(**self.values)
