import time
import logging
from typing import Dict, List, Optional, Protocol

import redis

from .config import settings

logger = logging.getLogger(__name__)


class RateLimiter(Protocol):
    def allow(self, key: str, max_requests: int, window_seconds: int) -> bool:
        ...


class InMemoryRateLimiter:
    """Sliding window kept in process memory (single worker only).

    Keys whose window has fully elapsed are dropped, at most once per
    ``sweep_interval`` seconds.
    """

    def __init__(self, sweep_interval: float = 60.0) -> None:
        self._hits: Dict[str, List[float]] = {}
        self._expires: Dict[str, float] = {}
        self.sweep_interval = sweep_interval
        self._next_sweep = time.time() + sweep_interval

    def allow(self, key: str, max_requests: int, window_seconds: int) -> bool:
        now = time.time()
        if now >= self._next_sweep:
            self._sweep(now)

        window_start = now - window_seconds
        hits = [t for t in self._hits.get(key, []) if t > window_start]
        if len(hits) >= max_requests:
            if hits:
                self._hits[key] = hits
            else:
                self._forget(key)
            return False
        hits.append(now)
        self._hits[key] = hits
        self._expires[key] = now + window_seconds
        return True

    def _sweep(self, now: float) -> None:
        for key in [k for k, expires in self._expires.items() if expires <= now]:
            self._forget(key)
        self._next_sweep = now + self.sweep_interval

    def _forget(self, key: str) -> None:
        self._hits.pop(key, None)
        self._expires.pop(key, None)


class RedisRateLimiter:
    """Fixed window counter shared by every worker."""

    def __init__(self, client: "redis.Redis", prefix: str = "rate_limit:") -> None:
        self.client = client
        self.prefix = prefix

    @classmethod
    def from_url(cls, url: str) -> "RedisRateLimiter":
        return cls(redis.Redis.from_url(url, decode_responses=True))

    def allow(self, key: str, max_requests: int, window_seconds: int) -> bool:
        redis_key = f"{self.prefix}{key}:{window_seconds}"
        pipe = self.client.pipeline()
        pipe.incr(redis_key, 1)
        pipe.expire(redis_key, window_seconds, nx=True)
        count, _ = pipe.execute()
        return int(count) <= max_requests


_limiter: Optional[RateLimiter] = None


def get_rate_limiter() -> RateLimiter:
    """Return the process-wide limiter, built from settings on first use."""
    global _limiter
    if _limiter is None:
        if settings.REDIS_URL:
            logger.info("Using Redis rate limiter")
            _limiter = RedisRateLimiter.from_url(settings.REDIS_URL)
        else:
            logger.info("Using in-memory rate limiter")
            _limiter = InMemoryRateLimiter()
    return _limiter
