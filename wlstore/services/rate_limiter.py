# wlstore/services/rate_limiter.py
import time

import redis
from redis.exceptions import RedisError

from wlstore.utils.retry import redis_retry
from wlstore.utils.settings import REDIS_URL, RATE_LIMIT_MAX_REQUESTS, RATE_LIMIT_WINDOW_SECONDS
from wlstore.utils.logging import get_logger

logger = get_logger(__name__)


class RateLimiter:
    """
    Fixed-window request counter per client ip.
    One redis key per (ip, window), INCR on every hit, EXPIRE set on the first
    hit so old windows clean themselves up.
    """

    def __init__(
        self,
        client: redis.Redis | None = None,
        max_requests: int = RATE_LIMIT_MAX_REQUESTS,
        window_seconds: int = RATE_LIMIT_WINDOW_SECONDS,
    ):
        self.redis = client or redis.Redis.from_url(REDIS_URL, decode_responses=True)
        self.max_requests = max_requests
        self.window_seconds = window_seconds

    def _key(self, ip: str, now: float) -> str:
        return f"ratelimit:{ip}:{int(now // self.window_seconds)}"

    @redis_retry()
    def _hit(self, key: str) -> int:
        count = self.redis.incr(key)
        if count == 1:
            self.redis.expire(key, self.window_seconds)
        return count

    def allow(self, ip: str, now: float | None = None) -> bool:
        key = self._key(ip, time.time() if now is None else now)
        try:
            count = self._hit(key)
        except RedisError as e:
            #limiter unavailable, let the request through
            logger.warning(f"Rate limiter unavailable, allowing {ip}: {e}")
            return True

        if count > self.max_requests:
            logger.warning(f"Rate limit exceeded for {ip} ({count}/{self.max_requests})")
            return False
        return True

    def ping(self) -> bool:
        try:
            return bool(self.redis.ping())
        except RedisError:
            return False

    @property
    def message(self) -> str:
        hours = self.window_seconds / 3600
        window = f"{hours:g} hours" if hours >= 1 else f"{self.window_seconds} seconds"
        return f"Too many requests. Maximum {self.max_requests} requests per {window} allowed."
