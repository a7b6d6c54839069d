"""Redis client configuration and the Redis-backed cache store.

Provides a synchronous Redis client with connection pooling shared by
every RedisCacheStore in the process.
"""

from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

import redis
from redis.connection import ConnectionPool

from rolegate.config import settings
from rolegate.core.cache.serializers import deserialize, serialize


# Connection pool for efficient connection reuse
_pool: ConnectionPool | None = None


def _get_pool() -> ConnectionPool:
    """Get or create the Redis connection pool."""
    global _pool
    if _pool is None:
        _pool = ConnectionPool.from_url(
            str(settings.redis_url),
            max_connections=settings.redis_max_connections,
            decode_responses=True,
        )
    return _pool


@contextmanager
def redis_client() -> Generator[redis.Redis, None, None]:  # type: ignore[type-arg]
    """Context manager for a pooled Redis client.

    Usage:
        with redis_client() as client:
            client.set("key", "value")
    """
    client = redis.Redis(connection_pool=_get_pool())
    try:
        yield client
    finally:
        client.close()


def close_redis_pool() -> None:
    """Close the Redis connection pool.

    Call this during application shutdown.
    """
    global _pool
    if _pool is not None:
        _pool.disconnect()
        _pool = None


class RedisCacheStore:
    """Cache store keeping clipboard entries in Redis.

    Every key is namespaced under ``prefix``, which plays the role of the
    cache tag: ``flush`` deletes everything under the prefix with
    ``SCAN`` + ``DELETE``, so tag flushing is always available.
    """

    supports_tags = True

    def __init__(self, prefix: str | None = None, scan_count: int = 100) -> None:
        """Initialize the store.

        Args:
            prefix: Prefix for all keys (defaults to settings.cache_prefix)
            scan_count: Batch size hint for SCAN during flush
        """
        self.prefix = settings.cache_prefix if prefix is None else prefix
        self.scan_count = scan_count

    def _key(self, key: str) -> str:
        """Generate prefixed key."""
        return f"{self.prefix}{key}" if self.prefix else key

    def get(self, key: str) -> Any | None:
        """Get a value from cache.

        Args:
            key: Cache key

        Returns:
            Deserialized value or None if not found
        """
        with redis_client() as client:
            data = client.get(self._key(key))
        if data is None:
            return None
        return deserialize(data)

    def forever(self, key: str, value: Any) -> None:
        """Store a value without a TTL.

        Args:
            key: Cache key
            value: JSON-serializable value
        """
        with redis_client() as client:
            client.set(self._key(key), serialize(value))

    def forget(self, key: str) -> None:
        """Delete a key from cache."""
        with redis_client() as client:
            client.delete(self._key(key))

    def flush(self) -> None:
        """Delete every key under this store's prefix."""
        pattern = f"{self.prefix}*"
        with redis_client() as client:
            cursor = 0
            while True:
                cursor, keys = client.scan(cursor=cursor, match=pattern, count=self.scan_count)
                if keys:
                    client.delete(*keys)
                if cursor == 0:
                    break
