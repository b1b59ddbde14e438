"""Redis-backed key-value store."""

from dataclasses import dataclass

import redis.asyncio as redis

from gym_membership.services.cache import KeyValueStore


@dataclass
class RedisKeyValueStore(KeyValueStore):
    """Stores short-lived values in Redis with native key expiry."""

    client: redis.Redis

    @classmethod
    def from_url(cls, url: str) -> "RedisKeyValueStore":
        """Create a store with a lazily connecting Redis client."""
        return cls(client=redis.from_url(url, decode_responses=True))

    async def get(self, key: str) -> str | None:
        """Return the value for a key, if it has not expired."""
        value = await self.client.get(key)
        return str(value) if value is not None else None

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Overwrite a key with a TTL."""
        await self.client.set(key, value, ex=ttl_seconds)

    async def delete(self, key: str) -> bool:
        """Delete a key; Redis reports whether it existed."""
        return bool(await self.client.delete(key))

    async def close(self) -> None:
        """Close the Redis connection pool."""
        await self.client.aclose()
