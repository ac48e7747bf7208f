"""Redis client, response cache and request rate limiter."""

import json
from dataclasses import dataclass
from typing import Any, cast

import redis
import structlog

from ayursutra.config import settings

logger = structlog.get_logger()

# Global Redis client instance
_redis_client: redis.Redis | None = None


def get_redis_client() -> redis.Redis:
    """
    Get or create Redis client instance.

    Returns:
        Redis client instance
    """
    global _redis_client

    if _redis_client is None:
        _redis_client = redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            username=settings.redis_username,
            password=settings.redis_password,
            decode_responses=settings.redis_decode_responses,
            socket_connect_timeout=5,
            socket_keepalive=True,
            health_check_interval=30,
        )

    return _redis_client


async def check_redis_connection() -> bool:
    """
    Check if Redis connection is healthy.

    Returns:
        True if connection is healthy, False otherwise
    """
    try:
        return bool(get_redis_client().ping())
    except redis.RedisError:
        return False


def close_redis_connection() -> None:
    """Close Redis connection."""
    global _redis_client

    if _redis_client is not None:
        _redis_client.close()
        _redis_client = None


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of one rate limit check."""

    allowed: bool
    limit: int
    remaining: int
    reset_after: int


class RateLimiter:
    """Fixed-window request counter kept in Redis."""

    def __init__(self, redis_client: redis.Redis, prefix: str = "ratelimit"):
        """Initialize rate limiter with Redis client."""
        self.redis = redis_client
        self.prefix = prefix

    def hit(self, client_key: str, limit: int, window: int) -> RateLimitResult:
        """
        Count one request for ``client_key`` in the current window.

        Args:
            client_key: Caller identity (user id or client address)
            limit: Maximum number of requests per window
            window: Window length in seconds

        Returns:
            Whether the request is allowed plus header values
        """
        key = f"{self.prefix}:{client_key}"
        try:
            pipe = self.redis.pipeline()
            pipe.set(key, 0, ex=window, nx=True)
            pipe.incr(key)
            pipe.ttl(key)
            _, count, ttl = pipe.execute()
        except redis.RedisError as e:
            # Fail open
            logger.warning("rate_limit_unavailable", error=str(e))
            return RateLimitResult(True, limit, limit, window)

        count = int(count)
        reset_after = int(ttl) if ttl and int(ttl) > 0 else window
        return RateLimitResult(
            allowed=count <= limit,
            limit=limit,
            remaining=max(limit - count, 0),
            reset_after=reset_after,
        )


class CacheManager:
    """JSON cache for practitioner and therapy lookups."""

    def __init__(self, redis_client: redis.Redis):
        """Initialize cache manager with Redis client."""
        self.redis = redis_client

    def get_json(self, key: str) -> Any | None:
        """Get and deserialize a cached value; misses and Redis errors return None."""
        try:
            value = cast(str | None, self.redis.get(key))
        except redis.RedisError as e:
            logger.warning("cache_read_failed", key=key, error=str(e))
            return None
        return json.loads(value) if value else None

    def set_json(
        self,
        key: str,
        value: Any,
        ttl: int | None = None,
    ) -> bool:
        """
        Serialize and set JSON value in cache.

        Args:
            key: Cache key
            value: Value to serialize and cache
            ttl: Time to live in seconds

        Returns:
            True if successful, False otherwise
        """
        json_value = json.dumps(value, default=str)
        try:
            if ttl:
                self.redis.setex(key, ttl, json_value)
            else:
                self.redis.set(key, json_value)
            return True
        except redis.RedisError as e:
            logger.warning("cache_write_failed", key=key, error=str(e))
            return False

    def delete(self, *keys: str) -> int:
        """Delete keys from cache."""
        try:
            return cast(int, self.redis.delete(*keys)) if keys else 0
        except redis.RedisError as e:
            logger.warning("cache_delete_failed", keys=list(keys), error=str(e))
            return 0

    def delete_pattern(self, pattern: str) -> int:
        """
        Delete all keys matching a pattern.

        Args:
            pattern: Redis key pattern (e.g., 'therapy:list:*')

        Returns:
            Number of keys deleted
        """
        try:
            keys = list(self.redis.scan_iter(match=pattern))
        except redis.RedisError as e:
            logger.warning("cache_delete_failed", pattern=pattern, error=str(e))
            return 0
        return self.delete(*keys)


def get_cache_manager() -> CacheManager | None:
    """Cache manager backed by the global client, or None when caching is disabled."""
    if not settings.cache_enabled:
        return None
    return CacheManager(get_redis_client())
