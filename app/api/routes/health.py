from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter

from app.schemas.waitlist import HealthResponse

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Health check endpoint.

    Liveness only: it does not touch the store, so it stays green while the
    database is unreachable.

    Returns:
        HealthResponse: ``{"status": "OK", "timestamp": <ISO-8601 UTC>}``.
    """

    timestamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
    return HealthResponse(status="OK", timestamp=timestamp.replace("+00:00", "Z"))
