# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Cache infrastructure.

Example:
    from src.infrastructure.cache import build_cache

    cache, redis_client = await build_cache(settings)
    await cache.put("class_group:1:terms", terms, ttl_seconds=300)
"""

from src.infrastructure.cache.cache import Cache, InMemoryCache, RedisCache, build_cache
from src.infrastructure.cache.redis_client import RedisClient, RedisError

__all__ = [
    "Cache",
    "InMemoryCache",
    "RedisCache",
    "RedisClient",
    "RedisError",
    "build_cache",
]
