"""Tests for the SQLAlchemy waitlist store."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from app.adapters.store.sqlalchemy_store import SQLAlchemyWaitlistStore, _is_email_conflict
from app.core.errors import DuplicateEmailError, StoreAppError
from app.schemas.waitlist import EntryStatus, FarmSize, FarmType, Interest, WaitlistSignup


def _signup(
    email: str = "a@b.com",
    name: str = "Ann",
    farm_type: FarmType = FarmType.VEGETABLE,
    farm_size: FarmSize = FarmSize.SMALL,
    interests: Interest = Interest.COMPOSTING,
) -> WaitlistSignup:
    return WaitlistSignup(
        email=email,
        name=name,
        farm_type=farm_type,
        farm_size=farm_size,
        interests=interests,
    )


NOW = datetime(2026, 5, 20, 12, 0, tzinfo=timezone.utc)


class TestInsertUnique:
    @pytest.mark.asyncio
    async def test_insert_returns_id_and_stores_active_entry(self, store) -> None:
        entry_id = await store.insert_unique(_signup())

        entries = await store.list_all()
        assert len(entries) == 1
        assert entries[0].id == entry_id
        assert entries[0].email == "a@b.com"
        assert entries[0].status is EntryStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_signup_date_defaults_to_store_clock(self) -> None:
        clocked_store = SQLAlchemyWaitlistStore.from_url("sqlite+aiosqlite://", clock=lambda: NOW)
        await clocked_store.initialize()
        try:
            await clocked_store.insert_unique(_signup())
            [entry] = await clocked_store.list_all()
        finally:
            await clocked_store.close()

        assert entry.signup_date == NOW
        assert entry.signup_date.tzinfo is not None

    @pytest.mark.asyncio
    async def test_duplicate_email_is_rejected(self, store) -> None:
        await store.insert_unique(_signup())

        with pytest.raises(DuplicateEmailError) as exc_info:
            await store.insert_unique(_signup(name="Someone Else"))

        assert exc_info.value.message == "Email already registered"
        assert await store.count() == 1

    @pytest.mark.asyncio
    async def test_email_uniqueness_ignores_case_and_whitespace(self, store) -> None:
        await store.insert_unique(_signup(email="User@Example.com "))

        with pytest.raises(DuplicateEmailError):
            await store.insert_unique(_signup(email="user@example.com"))

        [entry] = await store.list_all()
        assert entry.email == "user@example.com"

    @pytest.mark.asyncio
    async def test_concurrent_duplicates_store_only_one(self, tmp_path) -> None:
        file_store = SQLAlchemyWaitlistStore.from_url(
            f"sqlite+aiosqlite:///{tmp_path / 'waitlist.db'}"
        )
        await file_store.initialize()
        try:
            results = await asyncio.gather(
                *(file_store.insert_unique(_signup()) for _ in range(4)),
                return_exceptions=True,
            )
            total = await file_store.count()
        finally:
            await file_store.close()

        successes = [r for r in results if isinstance(r, int)]
        duplicates = [r for r in results if isinstance(r, DuplicateEmailError)]
        assert len(successes) == 1
        assert len(duplicates) == 3
        assert total == 1


class TestCount:
    @pytest.mark.asyncio
    async def test_empty_store_counts_zero(self, store) -> None:
        assert await store.count() == 0
        assert await store.count(signed_up_since=NOW) == 0

    @pytest.mark.asyncio
    async def test_count_since_filters_by_signup_date(self, store) -> None:
        await store.insert_unique(_signup(email="old@farm.io"), signup_date=NOW - timedelta(days=8))
        await store.insert_unique(_signup(email="new@farm.io"), signup_date=NOW - timedelta(days=1))

        assert await store.count() == 2
        assert await store.count(signed_up_since=NOW - timedelta(days=7)) == 1

    @pytest.mark.asyncio
    async def test_count_since_is_inclusive(self, store) -> None:
        boundary = NOW - timedelta(days=7)
        await store.insert_unique(_signup(), signup_date=boundary)

        assert await store.count(signed_up_since=boundary) == 1


class TestGroupBy:
    @pytest.mark.asyncio
    async def test_groups_sorted_by_count_then_value(self, store) -> None:
        await store.insert_unique(_signup(email="1@x.io", farm_type=FarmType.FRUIT))
        await store.insert_unique(_signup(email="2@x.io", farm_type=FarmType.GRAIN))
        await store.insert_unique(_signup(email="3@x.io", farm_type=FarmType.GRAIN))
        await store.insert_unique(_signup(email="4@x.io", farm_type=FarmType.URBAN))

        groups = await store.group_by("farmType")

        assert [(g.value, g.count) for g in groups] == [
            ("grain", 2),
            ("fruit", 1),
            ("urban", 1),
        ]

    @pytest.mark.asyncio
    async def test_group_counts_sum_to_total(self, store) -> None:
        for i, interest in enumerate([Interest.COMPOSTING, Interest.SOIL_HEALTH, Interest.COMPOSTING]):
            await store.insert_unique(_signup(email=f"{i}@x.io", interests=interest))

        groups = await store.group_by("interests")

        assert sum(g.count for g in groups) == await store.count()
        assert all(g.count >= 1 for g in groups)

    @pytest.mark.asyncio
    async def test_empty_store_has_no_groups(self, store) -> None:
        assert await store.group_by("farmSize") == []

    @pytest.mark.asyncio
    async def test_unknown_field_raises(self, store) -> None:
        with pytest.raises(ValueError, match="Cannot group by"):
            await store.group_by("email")


class TestListAll:
    @pytest.mark.asyncio
    async def test_newest_first_by_default(self, store) -> None:
        await store.insert_unique(_signup(email="first@x.io"), signup_date=NOW - timedelta(hours=2))
        await store.insert_unique(_signup(email="second@x.io"), signup_date=NOW - timedelta(hours=1))
        await store.insert_unique(_signup(email="third@x.io"), signup_date=NOW)

        entries = await store.list_all()

        assert [e.email for e in entries] == ["third@x.io", "second@x.io", "first@x.io"]

    @pytest.mark.asyncio
    async def test_ascending_and_other_fields(self, store) -> None:
        await store.insert_unique(_signup(email="b@x.io", name="Zed"), signup_date=NOW)
        await store.insert_unique(_signup(email="a@x.io", name="Amy"), signup_date=NOW)

        assert [e.name for e in await store.list_all("name", "asc")] == ["Amy", "Zed"]
        assert [e.email for e in await store.list_all("email", "desc")] == ["b@x.io", "a@x.io"]

    @pytest.mark.asyncio
    async def test_invalid_sort_arguments_raise(self, store) -> None:
        with pytest.raises(ValueError, match="Cannot sort by"):
            await store.list_all("farmType")
        with pytest.raises(ValueError, match="direction"):
            await store.list_all("signupDate", "sideways")


class TestStoreFailures:
    @pytest.mark.asyncio
    async def test_unreachable_database_raises_store_error(self, tmp_path) -> None:
        missing_dir = tmp_path / "does-not-exist" / "waitlist.db"
        broken_store = SQLAlchemyWaitlistStore.from_url(f"sqlite+aiosqlite:///{missing_dir}")

        try:
            with pytest.raises(StoreAppError) as exc_info:
                await broken_store.initialize()
        finally:
            await broken_store.close()

        assert exc_info.value.code == "store_unavailable"
        assert exc_info.value.status_code == 500


class TestEmailConflictDetection:
    @pytest.mark.parametrize(
        "driver_message",
        [
            "UNIQUE constraint failed: waitlist_entries.email",
            'duplicate key value violates unique constraint "uq_waitlist_entries_email"',
        ],
    )
    def test_unique_email_violations_are_conflicts(self, driver_message: str) -> None:
        exc = IntegrityError("INSERT INTO waitlist_entries", {}, Exception(driver_message))

        assert _is_email_conflict(exc) is True

    @pytest.mark.parametrize(
        "driver_message",
        [
            "NOT NULL constraint failed: waitlist_entries.email",
            'null value in column "email" of relation "waitlist_entries" violates not-null constraint',
            "CHECK constraint failed: waitlist_entries",
        ],
    )
    def test_other_integrity_failures_are_not_conflicts(self, driver_message: str) -> None:
        exc = IntegrityError("INSERT INTO waitlist_entries", {}, Exception(driver_message))

        assert _is_email_conflict(exc) is False
