from __future__ import annotations

from app.api.routes.health import router as health_router
from app.api.routes.landing import router as landing_router
from app.api.routes.waitlist import router as waitlist_router

__all__ = ["health_router", "landing_router", "waitlist_router"]
