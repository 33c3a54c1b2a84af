"""In-process TTL cache (single worker, tests, development)."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from typing import Any


class MemoryCache:
    """Dict-backed cache with monotonic-clock expiry.

    Expired entries are purged lazily on access and by ``cleanup()``.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._entries: dict[str, tuple[Any, float]] = {}
        self._clock = clock
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Any | None:
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    async def set(self, key: str, value: Any, ttl_seconds: int = 300) -> bool:
        async with self._lock:
            self._entries[key] = (value, self._clock() + ttl_seconds)
        return True

    async def has(self, key: str) -> bool:
        return await self.get(key) is not None

    async def delete(self, key: str) -> bool:
        async with self._lock:
            return self._entries.pop(key, None) is not None

    async def cleanup(self) -> int:
        """Drop expired entries, returning how many were removed."""
        async with self._lock:
            now = self._clock()
            expired = [k for k, (_, expires_at) in self._entries.items() if now >= expires_at]
            for key in expired:
                del self._entries[key]
            return len(expired)

    async def close(self) -> None:
        async with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
