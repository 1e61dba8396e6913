"""
Redis caching utilities for public, read-heavy endpoints (creator discovery,
public profiles). Every method is a no-op when Redis is unavailable.
"""
import json
import logging
from typing import Any, Optional

import redis

from .rate_limiter import get_redis_client

logger = logging.getLogger(__name__)


class Cache:
    """Redis cache wrapper with JSON serialization"""

    def _get_client(self) -> Optional[redis.Redis]:
        return get_redis_client()

    def get(self, key: str) -> Optional[Any]:
        client = self._get_client()
        if not client:
            return None

        try:
            value = client.get(key)
        except redis.RedisError as e:
            logger.error(f"❌ Cache get error for {key}: {e}")
            return None
        return json.loads(value) if value else None

    def set(self, key: str, value: Any, ttl: int = 60) -> bool:
        client = self._get_client()
        if not client:
            return False

        try:
            client.setex(key, ttl, json.dumps(value, default=str))
            return True
        except redis.RedisError as e:
            logger.error(f"❌ Cache set error for {key}: {e}")
            return False

    def delete_pattern(self, pattern: str) -> int:
        """Delete all keys matching pattern (e.g., 'creators:discover:*')"""
        client = self._get_client()
        if not client:
            return 0

        try:
            keys = list(client.scan_iter(match=pattern, count=500))
            return client.delete(*keys) if keys else 0
        except redis.RedisError as e:
            logger.error(f"❌ Cache delete pattern error for {pattern}: {e}")
            return 0


cache = Cache()


def build_discovery_key(category: Optional[str], search: Optional[str], page: int, limit: int) -> str:
    return f"creators:discover:{category or 'all'}:{(search or '').lower()}:{page}:{limit}"


def invalidate_discovery_cache() -> int:
    """Called when a public creator profile changes"""
    return cache.delete_pattern("creators:discover:*")


def get_cache_stats() -> dict:
    client = cache._get_client()
    if not client:
        return {"available": False}

    try:
        info = client.info()
    except redis.RedisError as e:
        logger.error(f"❌ Failed to get cache stats: {e}")
        return {"available": False, "error": str(e)}

    hits = info.get("keyspace_hits", 0)
    misses = info.get("keyspace_misses", 0)
    return {
        "available": True,
        "used_memory": info.get("used_memory_human"),
        "connected_clients": info.get("connected_clients"),
        "hit_rate": hits / max(hits + misses, 1) * 100,
    }
