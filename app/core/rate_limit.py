"""Rate limiting dependency for FastAPI routes.

This module wires the rate limiting adapter into the HTTP layer.

Design goals:
- Minimal coupling: API routes depend on a dependency function only.
- Swap-friendly: storage backend can be replaced (e.g., Redis) behind an
  abstract interface.
- Explicit scope: the limiter lives on ``app.state`` and is created by the
  app factory (or injected by tests), never as a module global.

Rate limiting strategy:
- Fixed window per client IP, applied to the signup route only.
- Every request consumes budget regardless of its eventual outcome.
"""

from __future__ import annotations

import logging

from fastapi import Request

from app.adapters.rate_limit.base import AbstractRateLimiter
from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from app.core.config import AppSettings, settings
from app.core.errors import RateLimitedError
from app.core.logging import hash_for_log

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."


def build_rate_limiter(app_settings: AppSettings | None = None) -> AbstractRateLimiter:
    """Create the limiter configured for the signup route.

    Args:
        app_settings: Optional override; defaults to global settings.

    Returns:
        AbstractRateLimiter: Fresh limiter with no tracked clients.
    """

    cfg = app_settings or settings.app
    return InMemoryFixedWindowRateLimiter(
        limit=cfg.rate_limit_requests,
        window_seconds=cfg.rate_limit_window_seconds,
    )


def get_rate_limiter(request: Request) -> AbstractRateLimiter:
    """Return the limiter attached to the running application."""

    return request.app.state.rate_limiter


def _build_rate_limit_key(request: Request) -> str:
    client_host = request.client.host if request.client else "unknown"
    return f"ip:{client_host}"


async def enforce_rate_limit(request: Request) -> None:
    """FastAPI dependency enforcing the per-client signup quota.

    When enabled, consumes 1 unit from the client's budget. If the client
    exceeds the configured rate, raises RateLimitedError (HTTP 429).

    Args:
        request: FastAPI request.

    Raises:
        RateLimitedError: When the rate limit is exceeded.
    """

    if not settings.app.rate_limit_enabled:
        return

    limiter = get_rate_limiter(request)
    key = _build_rate_limit_key(request)
    key_hash = hash_for_log(key)

    result = limiter.consume(key)
    if result.allowed:
        logger.debug(
            "rate_limit.allowed",
            extra={
                "key_hash": key_hash,
                "limit": result.limit,
                "remaining": result.remaining,
            },
        )
        return

    retry_after = result.retry_after_seconds or 0
    logger.warning(
        "rate_limit.exceeded",
        extra={
            "key_hash": key_hash,
            "limit": result.limit,
            "remaining": result.remaining,
            "retry_after_s": retry_after,
        },
    )

    raise RateLimitedError(
        code="rate_limited",
        message=RATE_LIMIT_MESSAGE,
        details={"limit": result.limit, "retry_after": retry_after},
        headers=result.as_headers() if settings.app.rate_limit_include_headers else None,
    )
