"""Process-local signup quota, one fixed window per client.

A client's window opens with its first request and stays open for
``window_seconds``; requests refused inside the window do not extend it.
State lives in a dict guarded by a lock and vanishes on restart, so every
uvicorn worker enforces its own copy of the quota.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult


@dataclass
class _WindowState:
    window_start: float
    count: int


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Fixed-window limiter keyed by client identity (``ip:<host>``).

    Example: with ``limit=5, window_seconds=900`` a client that first posts
    at 10:00 may post four more times until 10:15; the sixth request before
    10:15 is refused with ``retry_after_seconds`` counting down to 10:15.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: int,
        clock: Callable[[], float] = time.time,
        max_tracked_keys: int = 10_000,
    ) -> None:
        """
        Args:
            limit: Requests allowed per window.
            window_seconds: Window length in seconds.
            clock: Returns the current UNIX time; tests pass a fake.
            max_tracked_keys: Key count above which expired windows are
                swept on the next consume.

        Raises:
            ValueError: If limit or window_seconds are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")

        self._limit = limit
        self._window_seconds = window_seconds
        self._clock = clock
        self._max_tracked_keys = max_tracked_keys
        self._lock = threading.RLock()
        self._state_by_key: dict[str, _WindowState] = {}

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> int:
        return self._window_seconds

    def _get_or_open_window(self, key: str, now: float) -> _WindowState:
        """Return the key's live window, opening a new one if none or expired."""
        state = self._state_by_key.get(key)
        if state is None or now >= state.window_start + self._window_seconds:
            state = _WindowState(window_start=now, count=0)
            self._state_by_key[key] = state
        return state

    def _prune_expired_locked(self, now: float) -> None:
        expired = [
            key
            for key, state in self._state_by_key.items()
            if now >= state.window_start + self._window_seconds
        ]
        for key in expired:
            del self._state_by_key[key]

    def consume(self, key: str, *, cost: int = 1) -> RateLimitResult:
        """Consume rate limit budget for the provided key.

        This method both checks the current window usage and mutates the state
        if the request is allowed.

        Args:
            key: Unique identifier for rate limiting (e.g., client IP).
            cost: Units to consume (default 1).

        Returns:
            RateLimitResult with allowance decision and metadata.

        Raises:
            ValueError: If key is empty or cost is invalid.
        """
        if cost < 1:
            raise ValueError("cost must be >= 1")
        if not key:
            raise ValueError("key must be a non-empty string")

        now = self._clock()

        with self._lock:
            if len(self._state_by_key) >= self._max_tracked_keys:
                self._prune_expired_locked(now)

            state = self._get_or_open_window(key, now)
            reset_at = state.window_start + self._window_seconds

            if state.count + cost <= self._limit:
                state.count += cost
                return RateLimitResult(
                    allowed=True,
                    limit=self._limit,
                    remaining=max(0, self._limit - state.count),
                    reset_at=int(math.ceil(reset_at)),
                    retry_after_seconds=None,
                )

            return RateLimitResult(
                allowed=False,
                limit=self._limit,
                remaining=max(0, self._limit - state.count),
                reset_at=int(math.ceil(reset_at)),
                retry_after_seconds=max(1, int(math.ceil(reset_at - now))),
            )

    def reset(self, key: str | None = None) -> None:
        """Forget one key's window, or every window when ``key`` is None."""
        with self._lock:
            if key is None:
                self._state_by_key.clear()
            else:
                self._state_by_key.pop(key, None)

    def prune(self) -> int:
        """Drop expired windows; returns how many keys remain tracked."""
        with self._lock:
            self._prune_expired_locked(self._clock())
            return len(self._state_by_key)
