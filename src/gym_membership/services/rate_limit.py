"""Request rate limiting for sensitive account endpoints."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Protocol


class RateLimiter(Protocol):
    """Fixed-window request counter."""

    async def hit(self, key: str, limit: int, window_seconds: int) -> bool:
        """Record a request and return true while it is within the limit."""


@dataclass
class InMemoryRateLimiter(RateLimiter):
    """Single-process fixed-window limiter."""

    clock: Callable[[], datetime] = lambda: datetime.now(tz=UTC)
    windows: dict[str, tuple[datetime, int]] = field(default_factory=dict)

    async def hit(self, key: str, limit: int, window_seconds: int) -> bool:
        """Count a request in the current window for the key."""
        now = self.clock()
        started_at, count = self.windows.get(key, (now, 0))
        if now - started_at >= timedelta(seconds=window_seconds):
            started_at, count = now, 0
        count += 1
        self.windows[key] = (started_at, count)
        return count <= limit
