"""
backend/forbet/services/provider_rate_limiter.py

Purpose:
    Process-local sliding-window request counter per provider. Only requests
    recorded in the trailing 60 seconds count against a provider's budget.
    Best effort and single-process; callers check and record without
    awaiting in between, so the window stays consistent on one event loop.

Dependencies:
    - collections.deque
    - time
"""

from __future__ import annotations

import time
from collections import deque
from typing import Callable

WINDOW_SECONDS = 60.0


class ProviderRateLimiter:
    """Sliding-window limiter keyed by provider name."""

    def __init__(self, window_seconds: float = WINDOW_SECONDS, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._window = float(window_seconds)
        self._requests: dict[str, deque[float]] = {}

    @staticmethod
    def _key(provider: str) -> str:
        return str(provider or "").strip()

    def _prune(self, provider: str) -> deque[float]:
        window = self._requests.setdefault(self._key(provider), deque())
        cutoff = self._clock() - self._window
        while window and window[0] <= cutoff:
            window.popleft()
        return window

    def can_make_request(self, provider: str, limit: int) -> bool:
        """True when fewer than ``limit`` requests fall inside the window."""
        if limit is None or int(limit) <= 0:
            return False
        return len(self._prune(provider)) < int(limit)

    def record_request(self, provider: str) -> None:
        window = self._prune(provider)
        window.append(self._clock())

    def requests_in_window(self, provider: str) -> int:
        return len(self._prune(provider))

    def seconds_until_available(self, provider: str, limit: int) -> float:
        if limit is None or int(limit) <= 0:
            return float("inf")
        window = self._prune(provider)
        if len(window) < int(limit):
            return 0.0
        # The slot frees up when the oldest request that keeps us at the limit ages out.
        anchor = window[len(window) - int(limit)]
        return max(0.0, anchor + self._window - self._clock())

    def reset(self, provider: str | None = None) -> None:
        if provider is None:
            self._requests.clear()
        else:
            self._requests.pop(self._key(provider), None)
