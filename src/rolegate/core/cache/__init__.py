"""Cache stores for the cached clipboard.

Provides:
- The CacheStore protocol
- A process-local memory store
- A Redis-backed store with pooled connections
- Serialization utilities for cache values
"""

from rolegate.core.cache.memory import MemoryCacheStore
from rolegate.core.cache.redis import RedisCacheStore, close_redis_pool, redis_client
from rolegate.core.cache.serializers import deserialize, serialize
from rolegate.core.cache.store import CacheStore


__all__ = [
    "CacheStore",
    "MemoryCacheStore",
    "RedisCacheStore",
    "close_redis_pool",
    "deserialize",
    "redis_client",
    "serialize",
]
