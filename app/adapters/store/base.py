"""Waitlist store interface.

The service layer depends on this abstraction (not the concrete
implementation) so the persistence engine can be swapped without touching
business logic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Literal

from app.schemas.waitlist import CategoryCount, WaitlistEntry, WaitlistSignup

SortDirection = Literal["asc", "desc"]

# Public (camelCase) field names accepted by group_by / list_all
GROUPABLE_FIELDS: frozenset[str] = frozenset({"farmType", "farmSize", "interests", "status"})
SORTABLE_FIELDS: frozenset[str] = frozenset({"signupDate", "email", "name"})


class AbstractWaitlistStore(ABC):
    """Interface for the persistent collection of waitlist entries."""

    @abstractmethod
    async def initialize(self) -> None:
        """Create the collection and its unique email index (idempotent)."""
        raise NotImplementedError

    @abstractmethod
    async def close(self) -> None:
        """Release connections held by the store."""
        raise NotImplementedError

    @abstractmethod
    async def insert_unique(
        self,
        entry: WaitlistSignup,
        *,
        signup_date: datetime | None = None,
    ) -> int:
        """Insert an entry, relying on the storage-level unique email constraint.

        Args:
            entry: Validated signup.
            signup_date: Creation timestamp; defaults to the current UTC time.

        Returns:
            The id assigned to the new entry.

        Raises:
            DuplicateEmailError: If an entry with the same normalized email exists.
            StoreAppError: If the store is unavailable.
        """
        raise NotImplementedError

    @abstractmethod
    async def count(self, *, signed_up_since: datetime | None = None) -> int:
        """Count entries, optionally only those with signupDate >= signed_up_since."""
        raise NotImplementedError

    @abstractmethod
    async def group_by(self, field: str) -> list[CategoryCount]:
        """Count entries per distinct value of a categorical field.

        Results are sorted by count descending, ties by value ascending.

        Raises:
            ValueError: If ``field`` is not one of GROUPABLE_FIELDS.
        """
        raise NotImplementedError

    @abstractmethod
    async def list_all(
        self,
        sort_field: str = "signupDate",
        direction: SortDirection = "desc",
    ) -> list[WaitlistEntry]:
        """Return every entry sorted by ``sort_field``.

        Raises:
            ValueError: If ``sort_field`` or ``direction`` is not supported.
        """
        raise NotImplementedError
