"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses. Each error class
carries the HTTP status it maps to at the API boundary.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep shapes consistent across the codebase
    without forcing every error to fill all of them.
    """

    field: str
    fields: list[str]
    allowed_values: list[str]
    hint: str
    limit: int
    retry_after: int
    operation: str
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
        headers: Optional HTTP headers to attach to the error response.
    """

    code: str
    message: str
    details: ErrorDetails | None = None
    headers: dict[str, str] | None = field(default=None, repr=False)

    status_code: ClassVar[int] = 400

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when a signup payload fails validation."""


class DuplicateEmailError(AppError):
    """Raised when the store's unique email constraint rejects an insert."""


class AuthenticationAppError(AppError):
    """Raised when authentication/authorization fails."""

    status_code: ClassVar[int] = 403


class RateLimitedError(AppError):
    """Raised when a client exceeds its request quota."""

    status_code: ClassVar[int] = 429


class StoreAppError(AppError):
    """Raised when the waitlist store is unavailable or fails."""

    status_code: ClassVar[int] = 500
