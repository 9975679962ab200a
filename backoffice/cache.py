"""
Redis caching utilities for frequently accessed data.
Permission sets are looked up on every guarded request, so they live here.
"""
import json
import logging
from typing import Any, Optional

import redis

from .config import PERMISSION_CACHE_TTL, REDIS_URL

logger = logging.getLogger(__name__)

# Redis connection
redis_client: Optional[redis.Redis] = None


def get_redis_client() -> Optional[redis.Redis]:
    """
    Get or create the Redis client.
    Returns None when REDIS_URL is not configured.
    """
    global redis_client

    if redis_client is None:
        if not REDIS_URL:
            return None

        logger.info("🔄 Initializing Redis connection for caching...")
        try:
            redis_client = redis.from_url(
                REDIS_URL,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
                health_check_interval=30,
            )
            redis_client.ping()
            logger.info("Redis connected successfully via URL")
        except Exception as e:
            logger.error(f"❌ Failed to connect to Redis via URL: {str(e)}")
            redis_client = None
            raise

    return redis_client


class Cache:
    """Redis cache wrapper with automatic serialization"""

    def __init__(self, client_factory=get_redis_client):
        self.redis_client = None
        self._client_factory = client_factory

    def _get_client(self):
        """Lazy load Redis client"""
        if self.redis_client is None:
            try:
                self.redis_client = self._client_factory()
            except Exception as e:
                logger.warning(f"⚠️ Redis cache unavailable: {e}")
                return None
        return self.redis_client

    def get(self, key: str) -> Optional[Any]:
        """Get value from cache"""
        client = self._get_client()
        if not client:
            return None

        try:
            value = client.get(key)
            if value:
                logger.debug(f"✅ Cache HIT: {key}")
                return json.loads(value)
            logger.debug(f"❌ Cache MISS: {key}")
            return None
        except Exception as e:
            logger.error(f"❌ Cache get error for {key}: {e}")
            return None

    def set(self, key: str, value: Any, ttl: int = 3600) -> bool:
        """Set value in cache with TTL (default 1 hour)"""
        client = self._get_client()
        if not client:
            return False

        try:
            client.setex(key, ttl, json.dumps(value))
            logger.debug(f"✅ Cache SET: {key} (TTL: {ttl}s)")
            return True
        except Exception as e:
            logger.error(f"❌ Cache set error for {key}: {e}")
            return False

    def delete(self, key: str) -> bool:
        """Delete key from cache"""
        client = self._get_client()
        if not client:
            return False

        try:
            client.delete(key)
            logger.debug(f"✅ Cache DELETE: {key}")
            return True
        except Exception as e:
            logger.error(f"❌ Cache delete error for {key}: {e}")
            return False


# Global cache instance
cache = Cache()


def get_user_permissions_cached(user_id: int) -> Optional[list[str]]:
    """Get a user's permission codes from cache"""
    return cache.get(f"user_permissions:{user_id}")


def set_user_permissions_cached(user_id: int, codes: list[str], ttl: int = PERMISSION_CACHE_TTL) -> bool:
    """Cache a user's permission codes (5 minute TTL by default)"""
    return cache.set(f"user_permissions:{user_id}", codes, ttl)


def invalidate_user_permissions_cache(user_id: int) -> bool:
    """Invalidate permission cache when a user's permissions change"""
    return cache.delete(f"user_permissions:{user_id}")
