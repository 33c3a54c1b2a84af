"""Redis cache backend for multi-worker deployments."""

from __future__ import annotations

import logging
import pickle
from typing import Any

import redis.asyncio as redis

logger = logging.getLogger(__name__)


class RedisCache:
    """Pickled values in Redis with ``SETEX`` expiry.

    Errors are logged and treated as misses; the catalog falls back to a
    fresh aggregation rather than failing the request.
    """

    def __init__(self, redis_url: str, client: redis.Redis | None = None):
        self.redis_url = redis_url
        self._client = client

    def _get_client(self) -> redis.Redis:
        if self._client is None:
            self._client = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=False,  # values are pickled bytes
            )
        return self._client

    async def get(self, key: str) -> Any | None:
        """Get value from Redis cache.

        Returns:
            Cached value (unpickled) or None if not found/expired
        """
        try:
            cached_bytes = await self._get_client().get(key)
            if cached_bytes:
                return pickle.loads(cached_bytes)
        except Exception as e:
            logger.warning(f"Redis get error for key {key}: {e}")

        return None

    async def set(self, key: str, value: Any, ttl_seconds: int = 300) -> bool:
        """Set value in Redis cache.

        Returns:
            True if successful, False otherwise
        """
        try:
            value_bytes = pickle.dumps(value)
            await self._get_client().setex(key, ttl_seconds, value_bytes)
            return True
        except Exception as e:
            logger.warning(f"Redis set error for key {key}: {e}")
            return False

    async def has(self, key: str) -> bool:
        try:
            return bool(await self._get_client().exists(key))
        except Exception as e:
            logger.warning(f"Redis exists error for key {key}: {e}")
            return False

    async def delete(self, key: str) -> bool:
        try:
            await self._get_client().delete(key)
            return True
        except Exception as e:
            logger.warning(f"Redis delete error for key {key}: {e}")
            return False

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
