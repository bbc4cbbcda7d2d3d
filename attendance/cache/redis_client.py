"""
Redis cache client with connection pooling and JSON serialization.

Used for display-profile caching and token revocation lookups. Attendance
state (RSVP rows, summaries) is never cached here.
"""
import json
from typing import Optional, Any
import redis
from redis.connection import ConnectionPool
from attendance.core.config import settings
from attendance.core.logging import logger


class RedisCache:
    """Redis cache client with connection pooling."""

    def __init__(self, url: str, enabled: bool = True):
        self.url = url
        self.enabled = enabled
        self._pool: Optional[ConnectionPool] = None
        self._client: Optional[redis.Redis] = None

    def _get_client(self) -> redis.Redis:
        """Get or create Redis client with connection pooling."""
        if self._client is None:
            self._pool = redis.ConnectionPool.from_url(
                self.url,
                decode_responses=True,
                max_connections=20
            )
            self._client = redis.Redis(connection_pool=self._pool)
            logger.info("Redis connection pool created")
        return self._client

    async def get(self, key: str) -> Optional[Any]:
        """Return the decoded value for ``key`` or None on a miss."""
        if not self.enabled:
            return None
        try:
            value = self._get_client().get(key)
            if value:
                return json.loads(value)
            return None
        except redis.RedisError as e:
            logger.error(f"Redis GET error for key {key}: {e}")
            return None

    async def set(self, key: str, value: Any, expire: int = 300) -> bool:
        """
        Set value in cache with expiration.

        Args:
            key: Cache key
            value: Value to cache (will be JSON serialized)
            expire: Expiration time in seconds (default: 300)

        Returns:
            True if successful, False otherwise
        """
        if not self.enabled:
            return False
        try:
            self._get_client().setex(key, expire, json.dumps(value, default=str))
            return True
        except redis.RedisError as e:
            logger.error(f"Redis SET error for key {key}: {e}")
            return False

    async def exists(self, key: str) -> bool:
        if not self.enabled:
            return False
        try:
            return self._get_client().exists(key) > 0
        except redis.RedisError as e:
            logger.error(f"Redis EXISTS error for key {key}: {e}")
            return False

    def close(self):
        """Close Redis connection pool."""
        if self._client:
            self._client.close()
            logger.info("Redis connection pool closed")


# Create a single instance to be imported throughout the app
cache = RedisCache(settings.REDIS_URL, enabled=settings.CACHE_ENABLED)
