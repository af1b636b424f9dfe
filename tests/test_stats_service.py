"""Tests for StatsService and AdminListingService."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.adapters.store.base import AbstractWaitlistStore
from app.schemas.waitlist import (
    CategoryCount,
    FarmSize,
    FarmType,
    Interest,
    WaitlistSignup,
    WaitlistStats,
)
from app.services.admin_service import AdminListingService
from app.services.stats_service import RECENT_WINDOW, StatsService

NOW = datetime(2026, 5, 20, 12, 0, tzinfo=timezone.utc)


def _signup(email: str, farm_type: FarmType, interests: Interest) -> WaitlistSignup:
    return WaitlistSignup(
        email=email,
        name="Grower",
        farm_type=farm_type,
        farm_size=FarmSize.MEDIUM,
        interests=interests,
    )


class TestStatsService:
    @pytest.mark.asyncio
    async def test_empty_store(self, store) -> None:
        stats = await StatsService(store, clock=lambda: NOW).stats()

        assert stats.total_signups == 0
        assert stats.this_week == 0
        assert stats.farm_type_stats == []
        assert stats.interest_stats == []

    @pytest.mark.asyncio
    async def test_counts_and_groups(self, store) -> None:
        await store.insert_unique(
            _signup("old@x.io", FarmType.GRAIN, Interest.SOIL_HEALTH),
            signup_date=NOW - timedelta(days=8),
        )
        await store.insert_unique(
            _signup("mid@x.io", FarmType.GRAIN, Interest.COMPOSTING),
            signup_date=NOW - timedelta(days=3),
        )
        await store.insert_unique(
            _signup("new@x.io", FarmType.FRUIT, Interest.COMPOSTING),
            signup_date=NOW - timedelta(hours=1),
        )

        stats = await StatsService(store, clock=lambda: NOW).stats()

        assert stats.total_signups == 3
        assert stats.this_week == 2
        assert stats.this_week <= stats.total_signups
        assert [(c.value, c.count) for c in stats.farm_type_stats] == [("grain", 2), ("fruit", 1)]
        assert [(c.value, c.count) for c in stats.interest_stats] == [
            ("composting", 2),
            ("soil-health", 1),
        ]
        assert sum(c.count for c in stats.farm_type_stats) == stats.total_signups
        assert sum(c.count for c in stats.interest_stats) == stats.total_signups

    @pytest.mark.asyncio
    async def test_reads_clock_once_and_queries_with_week_threshold(self) -> None:
        store = MagicMock(spec=AbstractWaitlistStore)
        store.count = AsyncMock(side_effect=[4, 1])
        store.group_by = AsyncMock(return_value=[CategoryCount(value="grain", count=4)])
        clock = MagicMock(return_value=NOW)

        stats = await StatsService(store, clock=clock).stats()

        clock.assert_called_once_with()
        assert store.count.await_args_list[0].kwargs == {}
        assert store.count.await_args_list[1].kwargs == {"signed_up_since": NOW - RECENT_WINDOW}
        assert [call.args[0] for call in store.group_by.await_args_list] == ["farmType", "interests"]
        assert (stats.total_signups, stats.this_week) == (4, 1)

    def test_serializes_with_camel_case_and_underscore_id(self) -> None:
        stats = WaitlistStats(
            total_signups=1,
            this_week=1,
            farm_type_stats=[CategoryCount(value="fruit", count=1)],
            interest_stats=[CategoryCount(value="composting", count=1)],
        )

        body = stats.model_dump(by_alias=True)

        assert body == {
            "totalSignups": 1,
            "thisWeek": 1,
            "farmTypeStats": [{"_id": "fruit", "count": 1}],
            "interestStats": [{"_id": "composting", "count": 1}],
        }


class TestAdminListingService:
    @pytest.mark.asyncio
    async def test_lists_newest_first(self, store) -> None:
        await store.insert_unique(
            _signup("older@x.io", FarmType.OTHER, Interest.SUSTAINABILITY),
            signup_date=NOW - timedelta(days=2),
        )
        await store.insert_unique(
            _signup("newer@x.io", FarmType.OTHER, Interest.SUSTAINABILITY),
            signup_date=NOW,
        )

        entries = await AdminListingService(store).list_entries()

        assert [e.email for e in entries] == ["newer@x.io", "older@x.io"]

    @pytest.mark.asyncio
    async def test_delegates_sort_to_store(self) -> None:
        store = MagicMock(spec=AbstractWaitlistStore)
        store.list_all = AsyncMock(return_value=[])

        assert await AdminListingService(store).list_entries() == []
        store.list_all.assert_awaited_once_with("signupDate", "desc")
