"""Backend protocols consumed by read-through callers."""

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Fetcher(Protocol):
    """Sync backend that can answer a read."""

    def fetch(self, path: str, params: Mapping[str, Any] | None = None) -> Any:
        """Fetch the data for ``path`` with query ``params``."""
        ...

    def close(self) -> None:
        """Release any connections held by the backend."""
        ...


@runtime_checkable
class AsyncFetcher(Protocol):
    """Async backend that can answer a read."""

    async def fetch(self, path: str, params: Mapping[str, Any] | None = None) -> Any:
        """Fetch the data for ``path`` with query ``params``."""
        ...

    async def close(self) -> None:
        """Release any connections held by the backend."""
        ...
