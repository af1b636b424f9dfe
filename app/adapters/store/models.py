"""SQLAlchemy ORM mapping for the waitlist collection."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from app.schemas.waitlist import EntryStatus

EMAIL_UNIQUE_CONSTRAINT = "uq_waitlist_entries_email"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class WaitlistEntryRecord(Base):
    """Waitlist signup row.

    ``email`` always holds the normalized address; the unique constraint on it
    is the single source of truth for registrant uniqueness.
    """

    __tablename__ = "waitlist_entries"
    __table_args__ = (
        UniqueConstraint("email", name=EMAIL_UNIQUE_CONSTRAINT),
        Index("ix_waitlist_entries_signup_date", "signup_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    farm_type: Mapped[str] = mapped_column(String(32), nullable=False)
    farm_size: Mapped[str] = mapped_column(String(32), nullable=False)
    interests: Mapped[str] = mapped_column(String(32), nullable=False)
    signup_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=EntryStatus.ACTIVE.value,
    )
