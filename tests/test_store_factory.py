"""Tests for store construction from configuration."""

import pytest

from app.adapters.store.factory import create_waitlist_store, resolve_database_url
from app.adapters.store.sqlalchemy_store import SQLAlchemyWaitlistStore
from app.core.config import DatabaseSettings
from app.core.errors import ValidationAppError


class TestResolveDatabaseURL:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("sqlite:///./waitlist.db", "sqlite+aiosqlite:///./waitlist.db"),
            ("sqlite+aiosqlite://", "sqlite+aiosqlite://"),
            (
                "postgres://user:pw@db:5432/waitlist",
                "postgresql+asyncpg://user:pw@db:5432/waitlist",
            ),
            (
                "postgresql://user:pw@db/waitlist",
                "postgresql+asyncpg://user:pw@db/waitlist",
            ),
        ],
    )
    def test_upgrades_sync_drivers(self, raw: str, expected: str) -> None:
        assert resolve_database_url(raw) == expected

    def test_strips_quotes_from_env_files(self) -> None:
        assert resolve_database_url('"sqlite:///./waitlist.db"') == "sqlite+aiosqlite:///./waitlist.db"

    @pytest.mark.parametrize("raw", ["", "   ", "''"])
    def test_empty_url_is_rejected(self, raw: str) -> None:
        with pytest.raises(ValidationAppError) as exc_info:
            resolve_database_url(raw)

        assert exc_info.value.code == "database_url_missing"

    def test_unparseable_url_is_rejected(self) -> None:
        with pytest.raises(ValidationAppError) as exc_info:
            resolve_database_url("not a url")

        assert exc_info.value.code == "database_url_invalid"


class TestCreateWaitlistStore:
    @pytest.mark.asyncio
    async def test_builds_sqlalchemy_store_from_settings(self) -> None:
        store = create_waitlist_store(DatabaseSettings(url="sqlite://"))

        assert isinstance(store, SQLAlchemyWaitlistStore)
        await store.initialize()
        try:
            assert await store.count() == 0
        finally:
            await store.close()
