"""In-memory sliding-window rate limiting."""

from __future__ import annotations

import threading
import time
from typing import Callable


class SlidingWindowRateLimiter:
    """Allow at most ``limit`` hits per ``window_seconds`` for each key.

    Every hit counts, whatever the outcome of the request it guards. Keys
    whose window has emptied are dropped, at most once per window.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: dict[str, list[float]] = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    @property
    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._hits)

    def _sweep(self, now: float) -> None:
        if now - self._last_sweep < self.window_seconds:
            return
        self._last_sweep = now
        for key in [k for k, hits in self._hits.items() if not hits or now - hits[-1] >= self.window_seconds]:
            del self._hits[key]

    def hit(self, key: str) -> float | None:
        """Record a hit; return ``None`` if allowed, else seconds until retry."""
        now = self._clock()
        with self._lock:
            self._sweep(now)
            hits = [t for t in self._hits.get(key, []) if now - t < self.window_seconds]
            if len(hits) >= self.limit:
                self._hits[key] = hits
                return max(0.0, self.window_seconds - (now - hits[0]))
            hits.append(now)
            self._hits[key] = hits
            return None

    def reset(self, key: str | None = None) -> None:
        with self._lock:
            if key is None:
                self._hits.clear()
            else:
                self._hits.pop(key, None)
