"""Rate limiter contract used by the signup route.

Limiters are app-scoped objects (``app.state.rate_limiter``) rather than
module state, so each application instance, and each test, starts with an
empty quota table.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of consuming quota for one client.

    Attributes:
        allowed: False once the client has used up its window.
        limit: Requests permitted per window.
        remaining: Requests left in the current window.
        reset_at: UNIX time (seconds) at which the current window closes.
        retry_after_seconds: Seconds until the client may retry; set only
            when the request was refused.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None = None

    def as_headers(self) -> dict[str, str]:
        """``Retry-After`` (when refused) plus the ``X-RateLimit-*`` trio."""
        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset_at),
        }
        if self.retry_after_seconds is not None:
            headers["Retry-After"] = str(self.retry_after_seconds)
        return headers


class AbstractRateLimiter(ABC):
    @abstractmethod
    def consume(self, key: str, *, cost: int = 1) -> RateLimitResult:
        """Charge ``cost`` units to ``key`` and report whether it fit the quota."""
        raise NotImplementedError

    @abstractmethod
    def reset(self, key: str | None = None) -> None:
        """Forget usage for ``key``, or for every key when None."""
        raise NotImplementedError
