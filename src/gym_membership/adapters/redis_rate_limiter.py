"""Redis fixed-window rate limiter."""

from dataclasses import dataclass

import redis.asyncio as redis

from gym_membership.services.rate_limit import RateLimiter


@dataclass
class RedisRateLimiter(RateLimiter):
    """Counts requests per key with INCR and a window-length expiry."""

    client: redis.Redis
    prefix: str = "ratelimit:"

    async def hit(self, key: str, limit: int, window_seconds: int) -> bool:
        """Record a request and return true while under the limit."""
        redis_key = f"{self.prefix}{key}"
        async with self.client.pipeline(transaction=True) as pipe:
            pipe.incr(redis_key)
            pipe.expire(redis_key, window_seconds, nx=True)
            count, _ = await pipe.execute()
        return int(count) <= limit
