"""FastAPI dependencies wiring services to the app-scoped store."""

from __future__ import annotations

from fastapi import Request

from app.adapters.store.base import AbstractWaitlistStore
from app.services.admin_service import AdminListingService
from app.services.signup_service import SignupService
from app.services.stats_service import StatsService


def get_store(request: Request) -> AbstractWaitlistStore:
    return request.app.state.store


def get_signup_service(request: Request) -> SignupService:
    return SignupService(store=get_store(request))


def get_stats_service(request: Request) -> StatsService:
    return StatsService(store=get_store(request))


def get_admin_listing_service(request: Request) -> AdminListingService:
    return AdminListingService(store=get_store(request))
