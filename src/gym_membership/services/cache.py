"""Key-value store abstractions for short-lived records."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol


class KeyValueStore(Protocol):
    """Async key-value store with per-key expiry."""

    async def get(self, key: str) -> str | None:
        """Return the stored value if present and not expired."""

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store a value, replacing any previous one, with a TTL in seconds."""

    async def delete(self, key: str) -> bool:
        """Delete a key and return true if it existed."""


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class _Entry:
    value: str
    expires_at: datetime


@dataclass
class InMemoryKeyValueStore(KeyValueStore):
    """Single-process store used when no Redis URL is configured."""

    _entries: dict[str, _Entry]
    clock: Callable[[], datetime]

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._entries = {}
        self.clock = clock

    async def get(self, key: str) -> str | None:
        """Return a stored value if it hasn't expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self.clock() >= entry.expires_at:
            self._entries.pop(key, None)
            return None
        return entry.value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store a value with a TTL."""
        expires_at = self.clock() + timedelta(seconds=ttl_seconds)
        self._entries[key] = _Entry(value=value, expires_at=expires_at)

    async def delete(self, key: str) -> bool:
        """Remove a key if present."""
        entry = self._entries.pop(key, None)
        return entry is not None and self.clock() < entry.expires_at
