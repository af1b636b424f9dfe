"""Request correlation and access logging middleware.

For every request:
- the request id comes from the incoming header (LOG_REQUEST_ID_HEADER,
  default X-Request-ID) when it is a sane token, otherwise a fresh UUID;
- the id lives in a contextvar for the duration of the request so every log
  line and error body can carry it;
- the response echoes the id and reports ``X-Request-Duration-ms``;
- one ``request.completed`` access line is logged;
- unhandled exceptions are turned into the generic 500 before the id is
  cleared.

Usage:
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import logging
import re
import time
import uuid

from fastapi import Request, Response

from app.core.config import settings
from app.core.exception_handlers import general_exception_handler
from app.core.logging import clear_request_id, set_request_id

logger = logging.getLogger("app.access")

# Client-supplied ids end up in logs; accept only short printable tokens
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._:\-]{1,128}$")


def resolve_request_id(incoming: str | None) -> str:
    """Reuse a well-formed incoming id, else mint a new one."""
    if incoming and _VALID_REQUEST_ID.match(incoming):
        return incoming
    return str(uuid.uuid4())


async def request_id_middleware(request: Request, call_next) -> Response:
    header_name = settings.log.request_id_header
    request_id = resolve_request_id(request.headers.get(header_name))
    set_request_id(request_id)

    started = time.perf_counter()
    try:
        try:
            response: Response = await call_next(request)
        except Exception as exc:
            # answered here so the 500 body and log line still carry the id
            response = await general_exception_handler(request, exc)
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        log = logger.warning if response.status_code >= 500 else logger.info
        log(
            "request.completed",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": elapsed_ms,
            },
        )
    finally:
        clear_request_id()

    response.headers[header_name] = request_id
    response.headers["X-Request-Duration-ms"] = f"{elapsed_ms:.2f}"
    return response
