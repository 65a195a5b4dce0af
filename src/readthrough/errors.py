"""Exceptions raised by readthrough."""


class CacheError(Exception):
    """Base class for readthrough errors."""


class CacheConfigurationError(CacheError):
    """A cache was declared with an invalid or conflicting configuration."""


class CacheNotFoundError(CacheError, KeyError):
    """No cache is registered under the requested name."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"No cache named {self.name!r}"


class CacheTypeError(CacheError, TypeError):
    """A key or value does not match the cache's declared types."""


class BackendError(CacheError):
    """A backend call failed."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
