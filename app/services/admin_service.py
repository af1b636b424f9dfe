"""Admin listing of waitlist entries."""

from __future__ import annotations

from app.adapters.store.base import AbstractWaitlistStore
from app.schemas.waitlist import WaitlistEntry


class AdminListingService:
    def __init__(self, store: AbstractWaitlistStore) -> None:
        self.store = store

    async def list_entries(self) -> list[WaitlistEntry]:
        """Return every entry, newest signup first."""
        return await self.store.list_all("signupDate", "desc")
