"""In-memory token-bucket limiter keyed by tool name or route (per-process, best-effort)."""

from __future__ import annotations

import asyncio
import time
from typing import Dict, Optional


class TokenBucket:
    def __init__(self, rate: float, capacity: float) -> None:
        self.rate = rate
        self.capacity = capacity
        self.tokens = capacity
        self.timestamp = time.monotonic()
        self._lock = asyncio.Lock()

    async def consume(self, amount: float = 1.0) -> bool:
        async with self._lock:
            now = time.monotonic()
            self.tokens = min(self.capacity, self.tokens + (now - self.timestamp) * self.rate)
            self.timestamp = now
            if self.tokens >= amount:
                self.tokens -= amount
                return True
            return False


class PerKeyRateLimiter:
    """
    One token bucket per key, created on first use.

    Keys listed in ``per_tool`` get their own rate; everything else shares the
    default rate and burst.
    """

    def __init__(
        self,
        rate_per_sec: float,
        burst: Optional[float] = None,
        *,
        per_tool: Optional[Dict[str, float]] = None,
    ) -> None:
        self.rate = rate_per_sec
        self.burst = burst if burst is not None else rate_per_sec
        self.per_tool = dict(per_tool or {})
        self._buckets: Dict[str, TokenBucket] = {}
        self._lock = asyncio.Lock()

    def _new_bucket(self, key: str) -> TokenBucket:
        override = self.per_tool.get(key)
        if override is not None:
            return TokenBucket(override, max(override, 1.0))
        return TokenBucket(self.rate, self.burst)

    async def allow(self, key: str) -> bool:
        async with self._lock:
            bucket = self._buckets.get(key)
            if bucket is None:
                bucket = self._new_bucket(key)
                self._buckets[key] = bucket
        return await bucket.consume()
