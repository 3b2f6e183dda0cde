"""Rate limiting abstraction for provider calls.

Responsibilities:
- Provide a single hook to enforce provider request pacing.
- Keep pacing safe when one wave issues many requests from worker threads.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from threading import Lock
from time import monotonic, sleep
from typing import Callable


@dataclass(slots=True)
class RateLimiter:
    """Per-key minimum-interval limiter shared by all threads of a process.

    Each `acquire` reserves the next free slot for its key under a lock and then
    sleeps outside the lock until that slot arrives, so concurrent callers are
    spaced by `min_interval_seconds` in reservation order.
    """

    min_interval_seconds: float = 0.05
    clock: Callable[[], float] = monotonic
    sleeper: Callable[[float], None] = sleep
    _next_allowed_at: dict[str, float] = field(default_factory=dict)
    _lock: Lock = field(default_factory=Lock)

    def acquire(self, key: str) -> None:
        """Block until the request key is allowed under the interval policy."""

        if self.min_interval_seconds <= 0.0:
            return
        with self._lock:
            now = self.clock()
            slot = max(now, self._next_allowed_at.get(key, 0.0))
            self._next_allowed_at[key] = slot + self.min_interval_seconds
        wait_seconds = slot - now
        if wait_seconds > 0.0:
            self.sleeper(wait_seconds)
