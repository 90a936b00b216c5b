"""
tenant_dashboard.edge.rate_limit

Per-key fixed-window request counters.

Responsibilities:
- Define the `RateLimitStore` interface the edge gate depends on.
- Provide an in-process implementation with atomic increment-and-compare.

A window opens on the first hit for a key and lasts `window_seconds`. Hits past
the limit are refused without being counted. Multi-process deployments need an
implementation backed by a shared atomic store behind the same interface.
"""

from __future__ import annotations

import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

RATE_LIMIT_LIMIT = "X-RateLimit-Limit"
RATE_LIMIT_REMAINING = "X-RateLimit-Remaining"
RATE_LIMIT_RESET = "X-RateLimit-Reset"


@dataclass(frozen=True, slots=True)
class QuotaClass:
    name: str
    limit: int
    window_seconds: int


@dataclass(frozen=True, slots=True)
class RateLimitState:
    allowed: bool
    limit: int
    remaining: int
    # Unix epoch seconds at which the current window closes.
    reset_at: int

    def headers(self) -> dict[str, str]:
        return {
            RATE_LIMIT_LIMIT: str(self.limit),
            RATE_LIMIT_REMAINING: str(self.remaining),
            RATE_LIMIT_RESET: str(self.reset_at),
        }


class RateLimitStore(Protocol):
    async def hit(self, key: str, *, limit: int, window_seconds: int) -> RateLimitState: ...


@dataclass(slots=True)
class _Window:
    count: int
    reset_at: float


class InMemoryRateLimitStore:
    """
    Thread-safe counter map for single-process deployments.
    The whole read-compare-increment runs under one lock.
    The map holds at most `max_keys` windows; expired ones go first.
    """

    def __init__(self, *, clock: Callable[[], float] = time.time, max_keys: int = 10_000) -> None:
        self._clock = clock
        self._max_keys = max_keys
        self._windows: dict[str, _Window] = {}
        self._lock = threading.Lock()

    async def hit(self, key: str, *, limit: int, window_seconds: int) -> RateLimitState:
        now = self._clock()
        with self._lock:
            window = self._windows.get(key)
            if window is None or now >= window.reset_at:
                if window is None and len(self._windows) >= self._max_keys:
                    self._prune(now)
                    self._evict_until_below_cap()
                window = _Window(count=0, reset_at=now + window_seconds)
                self._windows[key] = window

            allowed = window.count < limit
            if allowed:
                window.count += 1
            remaining = max(0, limit - window.count)
            reset_at = window.reset_at

        return RateLimitState(
            allowed=allowed, limit=limit, remaining=remaining, reset_at=math.ceil(reset_at)
        )

    def _prune(self, now: float) -> None:
        expired = [k for k, w in self._windows.items() if now >= w.reset_at]
        for k in expired:
            del self._windows[k]

    def _evict_until_below_cap(self) -> None:
        # Still full after pruning: drop the live windows nearest to closing.
        while self._windows and len(self._windows) >= self._max_keys:
            oldest = min(self._windows, key=lambda k: self._windows[k].reset_at)
            del self._windows[oldest]
