"""Weather lookups cached per rounded coordinate."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from readthrough.backends.base import Fetcher
from readthrough.cache import Cache
from readthrough.errors import BackendError
from readthrough.keys import ParameterizedKey
from readthrough.manager import CacheManager
from readthrough.types import CacheConfig, Duration, StorageMode

logger = logging.getLogger(__name__)

WEATHER_CACHE = "weather"
# Bump the version whenever rounding, units or WeatherSnapshot change.
WEATHER_KEY = ParameterizedKey("lat", "lon", version="v1", unit="metric")


@dataclass(frozen=True, slots=True)
class WeatherSnapshot:
    lat: float
    lon: float
    temperature: float
    feels_like: float
    humidity: int
    description: str

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> WeatherSnapshot:
        """Build a snapshot from an OpenWeather-style current-weather body."""
        try:
            main = payload["main"]
            coord = payload.get("coord", {})
            conditions = payload.get("weather") or [{}]
            return cls(
                lat=float(coord.get("lat", 0.0)),
                lon=float(coord.get("lon", 0.0)),
                temperature=float(main["temp"]),
                feels_like=float(main.get("feels_like", main["temp"])),
                humidity=int(main.get("humidity", 0)),
                description=str(conditions[0].get("description", "")),
            )
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise BackendError(f"Malformed weather payload: {e}") from e


def register_weather_caches(caches: CacheManager, *, ttl: Duration = "10m") -> Cache:
    return caches.get_or_create_cache(
        WEATHER_CACHE,
        CacheConfig(
            ttl=ttl,
            value_type=WeatherSnapshot,
            storage_mode=StorageMode.BY_REFERENCE,
        ),
    )


class WeatherService:
    """Current weather by coordinate, via an HTTP backend."""

    def __init__(
        self,
        backend: Fetcher,
        caches: CacheManager,
        *,
        path: str = "/data/2.5/weather",
        units: str = "metric",
    ) -> None:
        self._backend = backend
        self._caches = caches
        self._path = path
        self._units = units
        register_weather_caches(caches)

    def get_weather(self, lat: float | None, lon: float | None) -> WeatherSnapshot:
        cache = self._caches.require(WEATHER_CACHE)
        key = WEATHER_KEY(lat=lat, lon=lon)
        return cache.get_or_load(key, lambda: self._fetch(lat, lon))

    def _fetch(self, lat: float | None, lon: float | None) -> WeatherSnapshot:
        logger.info("Fetching weather for lat=%s lon=%s", lat, lon)
        payload = self._backend.fetch(
            self._path, {"lat": lat, "lon": lon, "units": self._units}
        )
        return WeatherSnapshot.from_payload(payload)
