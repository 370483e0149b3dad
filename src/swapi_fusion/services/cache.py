"""CacheService - Redis-backed cache-aside store with absolute expiry.

Every value is stored inside an envelope carrying its absolute expiry:

    {"value": <json>, "expires_at": <epoch seconds>}

Redis enforces the TTL on its own (SETEX), and the envelope lets readers
treat an entry as absent the moment its expiry passes according to the
injected clock, which keeps expiry deterministic under test.

Cache Key Types:
    - fusioned:{character_id} - Fusion results (30 min TTL)
    - rate_limit:{ip}:{method}:{path} - Rate limit window counters

Store failures never propagate: reads degrade to a miss and writes to a
no-op, both logged as warnings.
"""

import json
import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import structlog
from redis.asyncio import Redis

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    """A live cache entry."""

    key: str
    value: Any
    expires_at: float

    def ttl_remaining(self, now: float) -> int:
        """Seconds until expiry rounded up, never below 1."""
        return max(1, math.ceil(self.expires_at - now))


class CacheService:
    """TTL cache over Redis.

    Usage with FastAPI:
        ```python
        from swapi_fusion.services.cache import CacheService, get_cache_service

        @router.get("/fusion")
        async def fusion(cache: CacheService = Depends(get_cache_service)):
            ...
        ```
    """

    def __init__(self, redis: Redis, clock: Callable[[], float] = time.time) -> None:
        """Initialize the cache service.

        Args:
            redis: Async Redis client
            clock: Returns the current time in epoch seconds
        """
        self.redis = redis
        self.clock = clock

    async def get(self, cache_key: str) -> CacheEntry | None:
        """Get a live entry.

        Returns:
            The entry, or None when never set, expired or unreadable.
        """
        try:
            raw = await self.redis.get(cache_key)
        except Exception as e:
            logger.warning("cache_get_failed", cache_key=cache_key, error=str(e))
            return None

        if raw is None:
            return None

        try:
            envelope = json.loads(raw)
            value = envelope["value"]
            expires_at = float(envelope["expires_at"])
        except (ValueError, TypeError, KeyError) as e:
            logger.warning("cache_entry_unreadable", cache_key=cache_key, error=str(e))
            return None

        if expires_at <= self.clock():
            logger.debug("cache_entry_expired", cache_key=cache_key)
            return None

        return CacheEntry(key=cache_key, value=value, expires_at=expires_at)

    async def set(
        self,
        cache_key: str,
        value: Any,
        ttl_seconds: int,
        *,
        expires_at: float | None = None,
    ) -> None:
        """Store a value, overwriting any entry.

        Args:
            cache_key: Cache key
            value: Data to cache (must be JSON-serializable)
            ttl_seconds: Time to live in seconds
            expires_at: Absolute expiry to keep instead of now + ttl_seconds
        """
        try:
            envelope = {
                "value": value,
                "expires_at": expires_at
                if expires_at is not None
                else self.clock() + ttl_seconds,
            }
            await self.redis.setex(cache_key, ttl_seconds, json.dumps(envelope))
            logger.debug("cache_set", cache_key=cache_key, ttl=ttl_seconds)
        except Exception as e:
            logger.warning("cache_set_failed", cache_key=cache_key, error=str(e))

    async def ping(self) -> bool:
        """Check if Redis answers."""
        try:
            return bool(await self.redis.ping())
        except Exception as e:
            logger.error("cache_health_check_failed", error=str(e))
            return False

    # -------------------------------------------------------------------------
    # Cache Key Generators
    # -------------------------------------------------------------------------

    @staticmethod
    def fusion_key(character_id: str) -> str:
        """Generate cache key for a fusion result.

        Returns:
            Cache key (e.g., "fusioned:1")
        """
        return f"fusioned:{character_id}"

    @staticmethod
    def rate_limit_key(client_ip: str, method: str, path: str) -> str:
        """Generate cache key for a rate limit window.

        Returns:
            Cache key (e.g., "rate_limit:10.0.0.1:GET:/fusion")
        """
        return f"rate_limit:{client_ip}:{method}:{path}"


# Global Redis client (set during app startup)
_redis_client: Redis | None = None


def set_redis_client(redis: Redis | None) -> None:
    """Set the global Redis client during app startup (None on shutdown)."""
    global _redis_client
    _redis_client = redis


def get_cache_service() -> CacheService:
    """FastAPI dependency for CacheService."""
    if _redis_client is None:
        raise RuntimeError("Redis client not initialized. Call set_redis_client first.")
    return CacheService(_redis_client)
