"""HTTP backends built on httpx."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import httpx

from readthrough.errors import BackendError

logger = logging.getLogger(__name__)

CLIENT_ID_HEADER = "X-Naver-Client-Id"
CLIENT_SECRET_HEADER = "X-Naver-Client-Secret"


def credential_headers(client_id: str, client_secret: str) -> dict[str, str]:
    """Headers carrying API client credentials."""
    return {CLIENT_ID_HEADER: client_id, CLIENT_SECRET_HEADER: client_secret}


def _decode(response: httpx.Response) -> Any:
    if not response.is_success:
        try:
            error = response.json().get("errorMessage", "Request failed")
        except Exception:
            error = f"HTTP {response.status_code}"
        raise BackendError(error, status_code=response.status_code)
    try:
        return response.json()
    except ValueError as e:
        raise BackendError(
            f"Invalid JSON in response: {e}", status_code=response.status_code
        ) from e


class HttpBackend:
    """Sync JSON-over-HTTP backend.

    The cache imposes no timeout of its own; ``timeout`` here bounds each
    request so a stalled upstream fails every coalesced waiter instead of
    hanging them.
    """

    def __init__(
        self,
        base_url: str,
        *,
        headers: Mapping[str, str] | None = None,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._client = client or httpx.Client(
            base_url=base_url,
            headers=dict(headers or {}),
            timeout=timeout,
        )

    @classmethod
    def with_client_credentials(
        cls, base_url: str, client_id: str, client_secret: str, **kwargs: Any
    ) -> HttpBackend:
        return cls(base_url, headers=credential_headers(client_id, client_secret), **kwargs)

    def fetch(self, path: str, params: Mapping[str, Any] | None = None) -> Any:
        """GET ``path`` and return the decoded JSON body."""
        logger.debug("GET %s %s", path, params)
        try:
            response = self._client.get(path, params=dict(params or {}))
        except httpx.HTTPError as e:
            raise BackendError(f"GET {path} failed: {e}") from e
        return _decode(response)

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()


class AsyncHttpBackend:
    """Async JSON-over-HTTP backend."""

    def __init__(
        self,
        base_url: str,
        *,
        headers: Mapping[str, str] | None = None,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            headers=dict(headers or {}),
            timeout=timeout,
        )

    @classmethod
    def with_client_credentials(
        cls, base_url: str, client_id: str, client_secret: str, **kwargs: Any
    ) -> AsyncHttpBackend:
        return cls(base_url, headers=credential_headers(client_id, client_secret), **kwargs)

    async def fetch(self, path: str, params: Mapping[str, Any] | None = None) -> Any:
        """GET ``path`` and return the decoded JSON body."""
        logger.debug("GET %s %s", path, params)
        try:
            response = await self._client.get(path, params=dict(params or {}))
        except httpx.HTTPError as e:
            raise BackendError(f"GET {path} failed: {e}") from e
        return _decode(response)

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
