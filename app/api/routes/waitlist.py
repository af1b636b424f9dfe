from typing import Any

from fastapi import APIRouter, Body, Depends, status

from app.api.dependencies import (
    get_admin_listing_service,
    get_signup_service,
    get_stats_service,
)
from app.core.auth import verify_admin_api_key
from app.core.rate_limit import enforce_rate_limit
from app.schemas.waitlist import SignupResult, WaitlistEntry, WaitlistStats
from app.services.admin_service import AdminListingService
from app.services.signup_service import SignupService
from app.services.stats_service import StatsService

router = APIRouter(prefix="/waitlist", tags=["Waitlist"])


@router.post(
    "",
    response_model=SignupResult,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(enforce_rate_limit)],
)
async def join_waitlist(
    payload: Any = Body(
        None,
        examples=[
            {
                "email": "ann@example.com",
                "name": "Ann",
                "farmType": "vegetable",
                "farmSize": "small",
                "interests": "composting",
            }
        ],
    ),
    service: SignupService = Depends(get_signup_service),
) -> SignupResult:
    """Join the waitlist.

    The body is validated field by field so missing or out-of-range values
    produce a 400 with a readable message rather than a schema dump.

    Returns:
        SignupResult: Confirmation message and queue position.

    Raises:
        ValidationAppError: 400 when a field is missing or invalid.
        DuplicateEmailError: 400 when the email is already registered.
        RateLimitedError: 429 when the client exceeded its quota.
    """
    return await service.join(payload)


@router.get("/stats", response_model=WaitlistStats)
async def waitlist_stats(
    service: StatsService = Depends(get_stats_service),
) -> WaitlistStats:
    """Aggregate waitlist statistics: totals and per-category distributions."""
    return await service.stats()


@router.get(
    "/entries",
    response_model=list[WaitlistEntry],
    dependencies=[Depends(verify_admin_api_key)],
)
async def list_waitlist_entries(
    service: AdminListingService = Depends(get_admin_listing_service),
) -> list[WaitlistEntry]:
    """List every waitlist entry, newest first (admin API key required)."""
    return await service.list_entries()
