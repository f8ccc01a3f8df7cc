# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Key-value cache abstraction for derived settings.

Services receive a ``Cache`` through their constructor. Two implementations
are provided: ``InMemoryCache`` for tests and single-process deployments and
``RedisCache`` for shared deployments.
"""

import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol

from src.infrastructure.cache.redis_client import RedisClient

if TYPE_CHECKING:
    from src.core.config.settings import Settings

logger = logging.getLogger(__name__)


class Cache(Protocol):
    """Async key-value cache with per-entry TTL."""

    async def get(self, key: str) -> Any | None: ...

    async def put(self, key: str, value: Any, ttl_seconds: int) -> None: ...

    async def delete(self, key: str) -> None: ...


class InMemoryCache:
    """Process-local cache with lazy expiry.

    Args:
        clock: Returns the current time in seconds. Defaults to
            ``time.monotonic``; tests pass a controllable clock.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}

    async def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    async def put(self, key: str, value: Any, ttl_seconds: int) -> None:
        self._entries[key] = (self._clock() + ttl_seconds, value)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)


class RedisCache:
    """Cache backed by a connected ``RedisClient``."""

    def __init__(self, client: RedisClient) -> None:
        self._client = client

    async def get(self, key: str) -> Any | None:
        return await self._client.get(key)

    async def put(self, key: str, value: Any, ttl_seconds: int) -> None:
        await self._client.set(key, value, expire_seconds=ttl_seconds)

    async def delete(self, key: str) -> None:
        await self._client.delete(key)


async def build_cache(settings: "Settings") -> tuple[Cache, RedisClient | None]:
    """Create the cache selected by ``settings.cache.backend``.

    Returns:
        The cache and, for the Redis backend, the connected client so the
        caller can close it on shutdown.

    Raises:
        RedisError: If the Redis backend is selected and unreachable.
    """
    if settings.cache.backend == "redis":
        client = RedisClient(settings)
        await client.connect()
        logger.info("Settings cache using Redis at %s:%s", settings.redis.host, settings.redis.port)
        return RedisCache(client), client

    logger.info("Settings cache using process memory")
    return InMemoryCache(), None
