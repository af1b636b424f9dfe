"""Admin API key authentication.

The entries listing exposes every registrant's email and name, so it is
gated behind an API key unless an operator explicitly opts out with
``APP_ADMIN_API_KEY_REQUIRED=false``. Keys are validated against a
comma-separated list from the environment.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Header

from app.core.config import settings
from app.core.errors import AuthenticationAppError
from app.core.logging import hash_for_log

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-API-Key"


def parse_api_keys(keys_string: str | None) -> set[str]:
    """Parse comma-separated API keys into a set.

    Args:
        keys_string: Comma-separated string of API keys, or None.

    Returns:
        Set of trimmed, non-empty API keys.

    Examples:
        >>> parse_api_keys("key1, key2 , key3 ")
        {'key1', 'key2', 'key3'}
        >>> parse_api_keys(None)
        set()
    """
    if not keys_string:
        return set()

    return {key.strip() for key in keys_string.split(",") if key.strip()}


def validate_admin_api_key(provided_key: str | None) -> None:
    """Validate that the provided key matches a configured admin key.

    Pure validation logic without FastAPI dependencies for easy testing.

    Args:
        provided_key: API key to validate (None when the header is absent).

    Raises:
        AuthenticationAppError: If the key is missing or invalid, or if
            authentication is required but no keys are configured.
    """
    if not settings.app.admin_api_key_required:
        return

    valid_keys = parse_api_keys(settings.app.admin_api_keys)

    if not valid_keys:
        logger.error(
            "auth.keys_not_configured",
            extra={"auth_required": True},
        )
        raise AuthenticationAppError(
            code="api_keys_not_configured",
            message="Admin API key authentication is enabled but no valid keys are configured",
            details={
                "hint": (
                    "Set APP_ADMIN_API_KEYS or disable the check with "
                    "APP_ADMIN_API_KEY_REQUIRED=false"
                )
            },
        )

    if not provided_key:
        logger.warning("auth.missing_key", extra={"api_key_present": False})
        raise AuthenticationAppError(
            code="invalid_api_key",
            message=f"Missing API key. Provide {API_KEY_HEADER} header.",
        )

    if provided_key not in valid_keys:
        logger.warning(
            "auth.invalid_key",
            extra={"api_key_hash": hash_for_log(provided_key)},
        )
        raise AuthenticationAppError(
            code="invalid_api_key",
            message="Invalid or missing API key",
        )


async def verify_admin_api_key(
    x_api_key: Annotated[str | None, Header(alias=API_KEY_HEADER)] = None,
) -> None:
    """FastAPI dependency guarding admin endpoints.

    Usage:
        @router.get("/entries", dependencies=[Depends(verify_admin_api_key)])

    Raises:
        AuthenticationAppError: 403 Forbidden if authentication fails.
    """
    if not settings.app.admin_api_key_required:
        logger.debug("auth.skipped", extra={"reason": "auth_required_false"})
        return

    validate_admin_api_key(x_api_key)
    logger.info("auth.success", extra={"api_key_hash": hash_for_log(x_api_key or "")})
