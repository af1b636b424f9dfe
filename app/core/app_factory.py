from __future__ import annotations

"""Application factory for FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) and
scopes the stateful collaborators (waitlist store, rate limiter) to the app
instance so tests can inject their own.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.adapters.rate_limit.base import AbstractRateLimiter
from app.adapters.store.base import AbstractWaitlistStore
from app.adapters.store.factory import create_waitlist_store
from app.api.routes import health_router, landing_router, waitlist_router
from app.core.auth import parse_api_keys
from app.core.config import settings
from app.core.errors import StoreAppError
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.openapi import apply_openapi_customizations
from app.core.rate_limit import build_rate_limiter

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the store on startup and release it on shutdown.

    A store that fails to initialize does not stop the app unless
    DATABASE_REQUIRE_ON_STARTUP is set: the landing page and health check
    keep working and store-backed routes answer 500 until it recovers.
    """
    if app.state.store is None:
        app.state.store = create_waitlist_store()

    store: AbstractWaitlistStore = app.state.store
    try:
        await store.initialize()
    except StoreAppError:
        if settings.database.require_on_startup:
            raise
        logger.error(
            "store.initialize_failed",
            extra={"require_on_startup": False},
        )

    logger.info("app.started", extra={"app_env": settings.app_env})
    try:
        yield
    finally:
        await store.close()
        logger.info("app.stopped")


def create_app(
    *,
    store: AbstractWaitlistStore | None = None,
    rate_limiter: AbstractRateLimiter | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        store: Optional store to use instead of the one built from settings.
        rate_limiter: Optional limiter for the signup route.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="FarmTech Waitlist API",
        description=(
            "Waitlist signup service for FarmTech: collects registrations "
            "(email, name, farm type, farm size, main interest), enforces one "
            "signup per email and reports aggregate statistics."
        ),
        version="1.0.0",
        lifespan=_lifespan,
    )

    app.state.store = store
    app.state.rate_limiter = rate_limiter or build_rate_limiter(settings.app)

    if settings.app.admin_api_key_required and not parse_api_keys(settings.app.admin_api_keys):
        logger.warning(
            "auth.admin_listing_locked",
            extra={"hint": "set APP_ADMIN_API_KEYS to enable /api/waitlist/entries"},
        )

    # Middleware
    app.middleware("http")(request_id_middleware)
    origins = [origin.strip() for origin in settings.app.cors_origins.split(",") if origin.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=[settings.log.request_id_header, "Retry-After"],
    )

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(waitlist_router, prefix="/api")
    app.include_router(health_router, prefix="/api")
    app.include_router(landing_router)

    # OpenAPI customizations (tags, admin security scheme)
    apply_openapi_customizations(app)

    return app
