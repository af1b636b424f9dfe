"""OpenAPI documentation tweaks for the waitlist API.

FastAPI only documents what it can infer from signatures. This module adds
what it cannot:
- tag descriptions;
- the ``AdminApiKey`` security scheme, on the admin listing only;
- the shared error body and the non-2xx statuses each route can return
  (400 validation, 403 admin key, 429 rate limit, 500 store).
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

ADMIN_SECURITY_SCHEME = "AdminApiKey"
ADMIN_PATHS = ("/api/waitlist/entries",)

TAGS_METADATA = [
    {
        "name": "Waitlist",
        "description": "Signup, statistics and admin listing of the waitlist.",
    },
    {
        "name": "Health",
        "description": "Liveness check; does not touch the store.",
    },
]

ERROR_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["message", "code"],
    "properties": {
        "message": {"type": "string", "example": "Email already registered"},
        "code": {"type": "string", "example": "duplicate_email"},
        "request_id": {"type": "string", "nullable": True},
        "details": {"type": "object", "additionalProperties": True},
    },
}

# (path, method) -> extra documented error statuses
ERROR_RESPONSES: Dict[tuple[str, str], Dict[str, str]] = {
    ("/api/waitlist", "post"): {
        "400": "Missing field, invalid value or email already registered",
        "429": "Too many signup requests from this IP",
        "500": "Waitlist store unavailable",
    },
    ("/api/waitlist/stats", "get"): {
        "500": "Waitlist store unavailable",
    },
    ("/api/waitlist/entries", "get"): {
        "403": "Missing or invalid admin API key",
        "500": "Waitlist store unavailable",
    },
}


def _error_response(description: str) -> Dict[str, Any]:
    return {
        "description": description,
        "content": {
            "application/json": {"schema": {"$ref": "#/components/schemas/ErrorResponse"}}
        },
    }


def apply_openapi_customizations(app: FastAPI) -> None:
    """Wrap ``app.openapi`` so the generated schema is enriched once and cached."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        schema = original_openapi()
        components = schema.setdefault("components", {})

        components.setdefault("securitySchemes", {})[ADMIN_SECURITY_SCHEME] = {
            "type": "apiKey",
            "in": "header",
            "name": "X-API-Key",
            "description": "Admin API key (one of APP_ADMIN_API_KEYS).",
        }
        components.setdefault("schemas", {})["ErrorResponse"] = ERROR_SCHEMA

        known_tags = {tag.get("name") for tag in schema.setdefault("tags", [])}
        schema["tags"].extend(tag for tag in TAGS_METADATA if tag["name"] not in known_tags)

        paths = schema.get("paths", {})
        for path in ADMIN_PATHS:
            for operation in paths.get(path, {}).values():
                if isinstance(operation, dict):
                    operation["security"] = [{ADMIN_SECURITY_SCHEME: []}]

        for (path, method), statuses in ERROR_RESPONSES.items():
            operation = paths.get(path, {}).get(method)
            if not isinstance(operation, dict):
                continue
            responses = operation.setdefault("responses", {})
            # body validation errors are answered with 400, never 422
            responses.pop("422", None)
            for status_code, description in statuses.items():
                responses[status_code] = _error_response(description)

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
