"""Catalog cache backends."""

from __future__ import annotations

from typing import Any, Protocol

from modelcatalog.cache.memory import MemoryCache
from modelcatalog.cache.redis_cache import RedisCache


class CACHE_KEYS:
    MODELS = "models"
    MODEL_STATS = "model_stats"


class Cache(Protocol):
    """Key/value store with per-entry TTL."""

    async def get(self, key: str) -> Any | None: ...

    async def set(self, key: str, value: Any, ttl_seconds: int) -> bool: ...

    async def has(self, key: str) -> bool: ...

    async def delete(self, key: str) -> bool: ...

    async def close(self) -> None: ...


def build_cache(backend: str = "memory", redis_url: str | None = None) -> Cache:
    """Pick a backend by name ("memory" or "redis").

    Raises:
        ValueError: If the backend name is unknown
    """
    if backend == "memory":
        return MemoryCache()
    if backend == "redis":
        return RedisCache(redis_url or "redis://redis:6379/0")
    raise ValueError(f"Unknown cache backend: {backend}")


__all__ = ["CACHE_KEYS", "Cache", "MemoryCache", "RedisCache", "build_cache"]
