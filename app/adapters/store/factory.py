"""Factory for creating waitlist store instances."""

from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

from app.adapters.store.base import AbstractWaitlistStore
from app.adapters.store.sqlalchemy_store import SQLAlchemyWaitlistStore
from app.core.config import DatabaseSettings, settings
from app.core.errors import ValidationAppError

# Sync driver names mapped to their asyncio counterparts
_ASYNC_DRIVERS = {
    "sqlite": "sqlite+aiosqlite",
    "postgres": "postgresql+asyncpg",
    "postgresql": "postgresql+asyncpg",
}


def resolve_database_url(url: str) -> str:
    """Normalize a database URL into one the asyncio engine accepts.

    Strips surrounding quotes copied from .env files and upgrades bare
    driver names (``sqlite://``, ``postgres://``) to their async drivers.

    Raises:
        ValidationAppError: If the URL is empty or cannot be parsed.
    """
    url = (url or "").strip().strip("\"'")
    if not url:
        raise ValidationAppError(
            code="database_url_missing",
            message="DATABASE_URL is empty",
        )

    try:
        parsed = make_url(url)
    except ArgumentError as exc:
        raise ValidationAppError(
            code="database_url_invalid",
            message="DATABASE_URL could not be parsed",
        ) from exc

    async_driver = _ASYNC_DRIVERS.get(parsed.drivername)
    if async_driver:
        parsed = parsed.set(drivername=async_driver)

    return parsed.render_as_string(hide_password=False)


def create_waitlist_store(database_settings: DatabaseSettings | None = None) -> AbstractWaitlistStore:
    """Instantiate the waitlist store from configuration.

    Args:
        database_settings: Optional override; defaults to global settings.

    Returns:
        AbstractWaitlistStore: Store ready to be initialized.
    """
    cfg = database_settings or settings.database
    return SQLAlchemyWaitlistStore.from_url(
        resolve_database_url(cfg.url),
        echo=cfg.echo,
    )
