"""Waitlist statistics service."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable

from app.adapters.store.base import AbstractWaitlistStore
from app.adapters.store.models import utc_now
from app.schemas.waitlist import WaitlistStats

logger = logging.getLogger(__name__)

RECENT_WINDOW = timedelta(days=7)


class StatsService:
    """Computes aggregate statistics over the waitlist.

    The four figures come from independent store queries; they are not a
    transactional snapshot and may disagree slightly under concurrent writes.
    """

    def __init__(
        self,
        store: AbstractWaitlistStore,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self._clock = clock

    async def stats(self) -> WaitlistStats:
        """Return total, last-7-days and per-category counts.

        Raises:
            StoreAppError: If the store is unavailable.
        """
        # "now" is read once so every figure uses the same threshold
        now = self._clock()
        week_ago = now - RECENT_WINDOW

        total_signups = await self.store.count()
        this_week = await self.store.count(signed_up_since=week_ago)
        farm_type_stats = await self.store.group_by("farmType")
        interest_stats = await self.store.group_by("interests")

        logger.debug(
            "stats.computed",
            extra={
                "total_signups": total_signups,
                "this_week": this_week,
                "farm_type_groups": len(farm_type_stats),
                "interest_groups": len(interest_stats),
            },
        )

        return WaitlistStats(
            total_signups=total_signups,
            this_week=this_week,
            farm_type_stats=farm_type_stats,
            interest_stats=interest_stats,
        )
