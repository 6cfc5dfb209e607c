"""Cache stores for weather payloads.

Stores are plain persistence: they never judge freshness. Every entry is kept
until overwritten or evicted by the backend, so the weather service can fall
back to stale data when a refresh fails.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Protocol

import structlog
from cachetools import LRUCache
from prometheus_client import Gauge
from pydantic import ValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError

from citycast.api.schemas import CanonicalWeather
from citycast.config import Settings

logger = structlog.get_logger()

# Metrics
cache_size_gauge = Gauge("cache_size", "Current number of in-memory cache entries")


class CacheStoreError(Exception):
    """Raised when the cache backend cannot be read or written."""


@dataclass
class CacheEntry:
    """Persisted payload for one city."""

    city_id: str
    payload: CanonicalWeather
    updated_at: float
    schema_version: int

    def age(self, now: float) -> float:
        """Seconds since the entry was written."""
        return now - self.updated_at

    def to_json(self) -> str:
        return json.dumps(
            {
                "cityId": self.city_id,
                "payload": self.payload.model_dump(mode="json"),
                "updatedAt": self.updated_at,
                "schemaVersion": self.schema_version,
            },
            ensure_ascii=False,
        )

    @classmethod
    def from_json(cls, raw: str | bytes) -> CacheEntry:
        data = json.loads(raw)
        return cls(
            city_id=data["cityId"],
            payload=CanonicalWeather.model_validate(data["payload"]),
            updated_at=float(data["updatedAt"]),
            schema_version=int(data.get("schemaVersion", 0)),
        )


class CachePort(Protocol):
    """Storage used by the weather service."""

    async def read(self, city_id: str) -> CacheEntry | None: ...

    async def upsert(self, entry: CacheEntry) -> None: ...

    async def is_healthy(self) -> bool: ...

    async def close(self) -> None: ...


class InMemoryCacheStore:
    """Process-local store bounded by LRU eviction."""

    def __init__(self, settings: Settings) -> None:
        """Initialize store with settings."""
        self._entries: LRUCache[str, CacheEntry] = LRUCache(maxsize=settings.cache_max_size)

    async def read(self, city_id: str) -> CacheEntry | None:
        return self._entries.get(city_id)

    async def upsert(self, entry: CacheEntry) -> None:
        self._entries[entry.city_id] = entry
        cache_size_gauge.set(len(self._entries))

    def clear(self) -> None:
        """Clear all cache entries."""
        self._entries.clear()
        cache_size_gauge.set(0)

    @property
    def size(self) -> int:
        """Return current cache size."""
        return len(self._entries)

    async def is_healthy(self) -> bool:
        return isinstance(len(self._entries), int)

    async def close(self) -> None:
        self.clear()


class RedisCacheStore:
    """Store keeping one JSON record per city in Redis."""

    key_prefix = "weather:"

    def __init__(self, client: Redis) -> None:
        self._client = client

    def _key(self, city_id: str) -> str:
        return f"{self.key_prefix}{city_id}"

    async def read(self, city_id: str) -> CacheEntry | None:
        """Load the entry for a city.

        Raises:
            CacheStoreError: If Redis is unavailable
        """
        try:
            raw = await self._client.get(self._key(city_id))
        except RedisError as e:
            raise CacheStoreError(f"Redis read failed: {e}") from e

        if raw is None:
            return None
        try:
            return CacheEntry.from_json(raw)
        except (ValueError, KeyError, ValidationError) as e:
            # Unreadable entries are treated as absent and overwritten on next refresh
            logger.warning("Discarding unreadable cache entry", city_id=city_id, error=str(e))
            return None

    async def upsert(self, entry: CacheEntry) -> None:
        """Overwrite the entry for a city.

        Raises:
            CacheStoreError: If Redis is unavailable
        """
        try:
            await self._client.set(self._key(entry.city_id), entry.to_json())
        except RedisError as e:
            raise CacheStoreError(f"Redis write failed: {e}") from e

    async def is_healthy(self) -> bool:
        try:
            return bool(await self._client.ping())
        except RedisError:
            return False

    async def close(self) -> None:
        await self._client.aclose()


def create_cache_store(settings: Settings) -> CachePort:
    """Build the store selected by ``cache_backend``."""
    if settings.cache_backend == "redis":
        return RedisCacheStore(Redis.from_url(settings.redis_url))
    return InMemoryCacheStore(settings)
