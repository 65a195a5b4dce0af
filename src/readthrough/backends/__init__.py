"""Backends that cached operations load from."""

from readthrough.backends.base import AsyncFetcher, Fetcher
from readthrough.backends.http import AsyncHttpBackend, HttpBackend

__all__ = ["AsyncFetcher", "AsyncHttpBackend", "Fetcher", "HttpBackend"]
