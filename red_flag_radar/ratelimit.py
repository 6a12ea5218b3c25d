from __future__ import annotations

import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass


class RateLimiter(ABC):
    @abstractmethod
    def check(self, key: str) -> bool:
        """Consume one request for *key*; ``False`` when over the limit."""
        ...


@dataclass
class _Window:
    started_at: float
    count: int = 0


class InMemoryRateLimiter(RateLimiter):
    """Fixed-window request counter per key.

    Process-local and unsynchronised, so it is a best-effort throttle;
    durable limits belong to the store.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        prune_threshold: int = 1024,
    ) -> None:
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._prune_threshold = prune_threshold
        self._windows: dict[str, _Window] = {}

    def _expired(self, window: _Window, now: float) -> bool:
        return now - window.started_at >= self.window_seconds

    def _prune(self, now: float) -> None:
        for key in [k for k, w in self._windows.items() if self._expired(w, now)]:
            del self._windows[key]

    def _window(self, key: str) -> _Window:
        now = self._clock()
        window = self._windows.get(key)
        if window is None or self._expired(window, now):
            if len(self._windows) >= self._prune_threshold:
                self._prune(now)
            window = _Window(started_at=now)
            self._windows[key] = window
        return window

    @property
    def tracked_keys(self) -> int:
        return len(self._windows)

    def check(self, key: str) -> bool:
        window = self._window(key)
        if window.count >= self.max_requests:
            return False
        window.count += 1
        return True

    def remaining(self, key: str) -> int:
        return max(0, self.max_requests - self._window(key).count)

    def reset(self, key: str | None = None) -> None:
        if key is None:
            self._windows.clear()
        else:
            self._windows.pop(key, None)
