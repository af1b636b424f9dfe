"""Signup payload validation.

Checks required fields and enumerated values independently of the store, so
a payload is fully vetted before any write is attempted. Every function here
is pure: no I/O, no logging side effects beyond debug traces.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Mapping

from app.core.errors import ValidationAppError
from app.schemas.waitlist import FarmSize, FarmType, Interest, WaitlistSignup

logger = logging.getLogger(__name__)

REQUIRED_FIELDS: tuple[str, ...] = ("email", "name", "farmType", "farmSize", "interests")

ENUM_FIELDS: dict[str, type[Enum]] = {
    "farmType": FarmType,
    "farmSize": FarmSize,
    "interests": Interest,
}

MISSING_FIELDS_MESSAGE = "All fields are required"


def normalize_email(email: str) -> str:
    """Normalize an email into its uniqueness key.

    Examples:
        >>> normalize_email("  User@Example.COM ")
        'user@example.com'
    """
    return email.strip().lower()


def find_missing_fields(payload: Mapping[str, Any]) -> list[str]:
    """Return required fields that are absent, null, or blank, in declaration order."""
    missing: list[str] = []
    for field_name in REQUIRED_FIELDS:
        value = payload.get(field_name)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(field_name)
    return missing


def _check_enum(field_name: str, value: str) -> None:
    enum_cls = ENUM_FIELDS[field_name]
    allowed = [member.value for member in enum_cls]
    if value not in allowed:
        raise ValidationAppError(
            code="invalid_enum",
            message=f"Invalid value for {field_name}",
            details={"field": field_name, "allowed_values": allowed},
        )


def validate_signup_payload(payload: Any) -> WaitlistSignup:
    """Validate a raw signup payload and return a normalized signup.

    Args:
        payload: Decoded JSON body of the signup request.

    Returns:
        WaitlistSignup with a trimmed name and normalized email.

    Raises:
        ValidationAppError: ``invalid_payload`` if the body is not an object,
            ``missing_field`` if a required field is absent or blank,
            ``invalid_field`` if a required field is not a string,
            ``invalid_enum`` if a categorical field is outside its set.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, Mapping):
        raise ValidationAppError(
            code="invalid_payload",
            message="Request body must be a JSON object",
        )

    missing = find_missing_fields(payload)
    if missing:
        logger.debug("signup_validation.missing_fields", extra={"fields": missing})
        raise ValidationAppError(
            code="missing_field",
            message=MISSING_FIELDS_MESSAGE,
            details={"fields": missing},
        )

    for field_name in REQUIRED_FIELDS:
        if not isinstance(payload[field_name], str):
            raise ValidationAppError(
                code="invalid_field",
                message=f"Field {field_name} must be a string",
                details={"field": field_name},
            )

    # only free-text fields are trimmed; enum values must match exactly
    for field_name in ENUM_FIELDS:
        _check_enum(field_name, payload[field_name])

    return WaitlistSignup(
        email=normalize_email(payload["email"]),
        name=payload["name"].strip(),
        farm_type=FarmType(payload["farmType"]),
        farm_size=FarmSize(payload["farmSize"]),
        interests=Interest(payload["interests"]),
    )
