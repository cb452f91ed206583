"""Per-client fixed-window rate limiting for quote submissions.

The default store is process-local: counters reset on restart and are not
shared between workers. Set ``RATE_LIMIT_BACKEND=redis`` to share them.
"""
import logging
import time
from typing import Dict, Optional, Tuple

from fastapi import HTTPException, Request

from movefinder.core.config import settings
from movefinder.core.metrics import rate_limit_exceeded
from movefinder.core.redis import get_redis

logger = logging.getLogger(__name__)


class MemoryRateLimitStore:
    def __init__(self, sweep_threshold: int = 1024):
        self._windows: Dict[str, Tuple[int, float]] = {}
        self.sweep_threshold = sweep_threshold

    def __len__(self):
        return len(self._windows)

    def _sweep(self, now: float):
        expired = [key for key, (_, reset_at) in self._windows.items() if now >= reset_at]
        for key in expired:
            del self._windows[key]

    async def hit(self, key: str, limit: int, window: int) -> Optional[int]:
        """Count a request. Returns seconds until reset when the limit is reached."""
        now = time.monotonic()
        if len(self._windows) >= self.sweep_threshold:
            self._sweep(now)
        current = self._windows.get(key)

        if current is None or now >= current[1]:
            self._windows[key] = (1, now + window)
            return None

        count, reset_at = current
        if count >= limit:
            return max(1, int(reset_at - now))

        self._windows[key] = (count + 1, reset_at)
        return None

    def reset(self):
        self._windows.clear()


class RedisRateLimitStore:
    async def hit(self, key: str, limit: int, window: int) -> Optional[int]:
        redis = get_redis()
        current = await redis.get(key)
        if current is None:
            await redis.set(key, "1", ex=window)
            return None
        if int(current) >= limit:
            ttl = await redis.ttl(key)
            return ttl if ttl and ttl > 0 else window
        await redis.incr(key)
        return None


memory_store = MemoryRateLimitStore()
redis_store = RedisRateLimitStore()


def get_store():
    if settings.RATE_LIMIT_BACKEND == "redis":
        try:
            get_redis()
            return redis_store
        except RuntimeError:
            logger.warning("Redis rate limit backend unavailable, counting in memory")
    return memory_store


def client_ip(request: Request) -> str:
    """Socket peer address, or the nearest untrusted X-Forwarded-For hop when the peer is a trusted proxy."""
    peer = request.client.host if request.client else "unknown"
    trusted = settings.trusted_proxies
    if peer not in trusted:
        return peer

    forwarded = request.headers.get("x-forwarded-for", "")
    hops = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
    for hop in reversed(hops):
        if hop not in trusted:
            return hop
    return peer


async def check_rate_limit(identifier: str, scope: str = "quotes"):
    key = f"rl:{scope}:{identifier}"
    retry_after = await get_store().hit(key, settings.RATE_LIMIT, settings.RATE_LIMIT_WINDOW)
    if retry_after is not None:
        rate_limit_exceeded.labels(scope=scope).inc()
        logger.warning(f"Rate limit exceeded for {identifier} on {scope}")
        raise HTTPException(
            status_code=429,
            detail="Rate limit exceeded. Please try again later.",
            headers={"Retry-After": str(retry_after)},
        )


async def enforce_quote_rate_limit(request: Request):
    await check_rate_limit(client_ip(request), scope="quotes")


def reset_rate_limits():
    memory_store.reset()
