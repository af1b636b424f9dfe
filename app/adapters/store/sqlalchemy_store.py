"""SQLAlchemy (asyncio) implementation of the waitlist store.

Notes:
- Uniqueness is enforced by the ``uq_waitlist_entries_email`` constraint; an
  insert that violates it is reported as ``DuplicateEmailError``. There is no
  existence check before the insert, so concurrent signups for the same
  address cannot both succeed.
- Timestamps are stored and compared in UTC. SQLite drops tzinfo on the way
  in, so values read back without tzinfo are treated as UTC.
- Each operation uses its own short-lived session; no transaction spans
  more than one call.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable

from sqlalchemy import func, select
from sqlalchemy.engine import make_url
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.adapters.store.base import (
    GROUPABLE_FIELDS,
    SORTABLE_FIELDS,
    AbstractWaitlistStore,
    SortDirection,
)
from app.adapters.store.models import (
    EMAIL_UNIQUE_CONSTRAINT,
    Base,
    WaitlistEntryRecord,
    utc_now,
)
from app.core.errors import DuplicateEmailError, StoreAppError
from app.core.logging import hash_for_log
from app.schemas.waitlist import CategoryCount, EntryStatus, WaitlistEntry, WaitlistSignup
from app.utils.signup_validators import normalize_email

logger = logging.getLogger(__name__)

DUPLICATE_EMAIL_MESSAGE = "Email already registered"
_SQLITE_EMAIL_UNIQUE = "unique constraint failed: waitlist_entries.email"

_GROUP_COLUMNS = {
    "farmType": WaitlistEntryRecord.farm_type,
    "farmSize": WaitlistEntryRecord.farm_size,
    "interests": WaitlistEntryRecord.interests,
    "status": WaitlistEntryRecord.status,
}

_SORT_COLUMNS = {
    "signupDate": WaitlistEntryRecord.signup_date,
    "email": WaitlistEntryRecord.email,
    "name": WaitlistEntryRecord.name,
}


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _is_in_memory_sqlite(url: str) -> bool:
    parsed = make_url(url)
    return parsed.drivername.startswith("sqlite") and parsed.database in (None, "", ":memory:")


def _is_email_conflict(exc: IntegrityError) -> bool:
    """Tell a unique-email violation apart from other integrity failures.

    SQLite reports ``UNIQUE constraint failed: waitlist_entries.email``;
    Postgres names the constraint. A NOT NULL failure on the email column is
    not a duplicate.
    """
    message = str(exc.orig).lower()
    return EMAIL_UNIQUE_CONSTRAINT in message or _SQLITE_EMAIL_UNIQUE in message


def _store_error(operation: str, exc: Exception) -> StoreAppError:
    logger.error(
        "store.operation_failed",
        extra={
            "operation": operation,
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
        },
    )
    return StoreAppError(
        code="store_unavailable",
        message="Waitlist store is unavailable",
        details={"operation": operation},
    )


def _to_entry(record: WaitlistEntryRecord) -> WaitlistEntry:
    return WaitlistEntry(
        id=record.id,
        email=record.email,
        name=record.name,
        farm_type=record.farm_type,
        farm_size=record.farm_size,
        interests=record.interests,
        signup_date=_as_utc(record.signup_date),
        status=record.status,
    )


class SQLAlchemyWaitlistStore(AbstractWaitlistStore):
    """Waitlist store backed by a SQLAlchemy async engine."""

    def __init__(
        self,
        engine: AsyncEngine,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the store.

        Args:
            engine: Async engine bound to the target database.
            clock: Source of the default signup timestamp.
        """
        self._engine = engine
        self._session_factory = async_sessionmaker(engine, expire_on_commit=False)
        self._clock = clock

    @classmethod
    def from_url(
        cls,
        url: str,
        *,
        echo: bool = False,
        clock: Callable[[], datetime] = utc_now,
    ) -> "SQLAlchemyWaitlistStore":
        """Build a store from a SQLAlchemy async URL.

        In-memory SQLite URLs get a StaticPool so every session in the process
        shares the same database.
        """
        engine_kwargs: dict[str, Any] = {"echo": echo}
        if _is_in_memory_sqlite(url):
            engine_kwargs["poolclass"] = StaticPool
            engine_kwargs["connect_args"] = {"check_same_thread": False}
        elif not make_url(url).drivername.startswith("sqlite"):
            engine_kwargs["pool_pre_ping"] = True

        return cls(create_async_engine(url, **engine_kwargs), clock=clock)

    async def initialize(self) -> None:
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as exc:
            raise _store_error("initialize", exc) from exc

        logger.info(
            "store.initialized",
            extra={"backend": self._engine.url.get_backend_name()},
        )

    async def close(self) -> None:
        await self._engine.dispose()

    async def insert_unique(
        self,
        entry: WaitlistSignup,
        *,
        signup_date: datetime | None = None,
    ) -> int:
        email = normalize_email(entry.email)
        record = WaitlistEntryRecord(
            email=email,
            name=entry.name,
            farm_type=entry.farm_type.value,
            farm_size=entry.farm_size.value,
            interests=entry.interests.value,
            signup_date=_as_utc(signup_date or self._clock()),
            status=EntryStatus.ACTIVE.value,
        )

        async with self._session_factory() as session:
            session.add(record)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                if not _is_email_conflict(exc):
                    raise _store_error("insert", exc) from exc
                logger.info(
                    "store.duplicate_email",
                    extra={"email_hash": hash_for_log(email)},
                )
                raise DuplicateEmailError(
                    code="duplicate_email",
                    message=DUPLICATE_EMAIL_MESSAGE,
                ) from None
            except SQLAlchemyError as exc:
                await session.rollback()
                raise _store_error("insert", exc) from exc

            return record.id

    async def count(self, *, signed_up_since: datetime | None = None) -> int:
        stmt = select(func.count()).select_from(WaitlistEntryRecord)
        if signed_up_since is not None:
            stmt = stmt.where(WaitlistEntryRecord.signup_date >= _as_utc(signed_up_since))

        try:
            async with self._session_factory() as session:
                total = await session.scalar(stmt)
        except SQLAlchemyError as exc:
            raise _store_error("count", exc) from exc

        return int(total or 0)

    async def group_by(self, field: str) -> list[CategoryCount]:
        if field not in GROUPABLE_FIELDS:
            raise ValueError(
                f"Cannot group by '{field}'. Supported fields: {', '.join(sorted(GROUPABLE_FIELDS))}"
            )

        column = _GROUP_COLUMNS[field]
        count_col = func.count(WaitlistEntryRecord.id).label("count")
        stmt = (
            select(column, count_col)
            .group_by(column)
            .order_by(count_col.desc(), column.asc())
        )

        try:
            async with self._session_factory() as session:
                rows = (await session.execute(stmt)).all()
        except SQLAlchemyError as exc:
            raise _store_error("group_by", exc) from exc

        return [CategoryCount(value=value, count=count) for value, count in rows]

    async def list_all(
        self,
        sort_field: str = "signupDate",
        direction: SortDirection = "desc",
    ) -> list[WaitlistEntry]:
        if sort_field not in SORTABLE_FIELDS:
            raise ValueError(
                f"Cannot sort by '{sort_field}'. Supported fields: {', '.join(sorted(SORTABLE_FIELDS))}"
            )
        if direction not in ("asc", "desc"):
            raise ValueError("direction must be 'asc' or 'desc'")

        column = _SORT_COLUMNS[sort_field]
        if direction == "desc":
            order = (column.desc(), WaitlistEntryRecord.id.desc())
        else:
            order = (column.asc(), WaitlistEntryRecord.id.asc())

        try:
            async with self._session_factory() as session:
                records = (await session.scalars(select(WaitlistEntryRecord).order_by(*order))).all()
        except SQLAlchemyError as exc:
            raise _store_error("list_all", exc) from exc

        return [_to_entry(record) for record in records]
