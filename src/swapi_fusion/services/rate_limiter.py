"""Fixed-window rate limiter backed by the cache store.

Each (client ip, method, path) triple owns a counter that lives for one
window. The first request of a window stores count 1 with a TTL of the full
window; later requests keep the original absolute expiry so the window
never slides. Once the counter reaches the limit, requests are rejected until the entry
expires and a fresh window starts.

The read-then-write is not atomic, so concurrent requests can slightly
overshoot the limit. Any failure inside the limiter lets the request through.
"""

import time
from collections.abc import Callable

import structlog
from starlette.requests import Request

from swapi_fusion.core.exceptions import RateLimitExceededError
from swapi_fusion.services.cache import CacheService

logger = structlog.get_logger(__name__)

UNKNOWN_CLIENT = "unknown"


def client_ip_from_request(request: Request) -> str:
    """Resolve the client IP: first X-Forwarded-For hop, then the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN_CLIENT


class RateLimiter:
    """Fixed-window request counter."""

    def __init__(
        self,
        cache: CacheService,
        requests_limit: int,
        window_minutes: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.cache = cache
        self.requests_limit = requests_limit
        self.window_minutes = window_minutes
        self.clock = clock

    @property
    def window_seconds(self) -> int:
        return self.window_minutes * 60

    async def check(self, client_ip: str, method: str, path: str) -> int | None:
        """Count a request against its window.

        Returns:
            The updated count, or None when the limiter failed open

        Raises:
            RateLimitExceededError: If the window is already exhausted
        """
        key = CacheService.rate_limit_key(client_ip, method, path)
        try:
            entry = await self.cache.get(key)
            now = self.clock()
            count = int(entry.value.get("count", 0)) if entry else 0

            if entry is not None and count >= self.requests_limit:
                retry_after = entry.ttl_remaining(now)
                logger.warning(
                    "rate_limit_exceeded",
                    client_ip=client_ip,
                    method=method,
                    path=path,
                    count=count,
                    retry_after=retry_after,
                )
                raise RateLimitExceededError(
                    limit=self.requests_limit,
                    window_minutes=self.window_minutes,
                    retry_after=retry_after,
                )

            count += 1
            if entry is None:
                await self.cache.set(key, {"count": count}, self.window_seconds)
            else:
                await self.cache.set(
                    key,
                    {"count": count},
                    entry.ttl_remaining(now),
                    expires_at=entry.expires_at,
                )
            return count
        except RateLimitExceededError:
            raise
        except Exception as e:
            logger.error(
                "rate_limiter_failed_open",
                client_ip=client_ip,
                method=method,
                path=path,
                error=str(e),
            )
            return None
