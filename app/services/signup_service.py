"""Waitlist signup service.

Handles the write path for new registrants:
- Payload validation and email normalization
- Insert guarded by the store's unique email constraint
- Queue position reporting

``position`` is the total entry count read right after the insert. The count
is a separate store call, so under concurrent signups it can include entries
stored after this one; it is reported as an approximate queue position, not
a strict sequence number.
"""

from __future__ import annotations

import logging
from typing import Any

from app.adapters.store.base import AbstractWaitlistStore
from app.core.errors import DuplicateEmailError
from app.core.logging import hash_for_log
from app.schemas.waitlist import SignupResult
from app.utils.signup_validators import validate_signup_payload

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Successfully joined waitlist!"


class SignupService:
    """Service orchestrating validation and persistence of signups.

    Attributes:
        store: Waitlist store adapter.
    """

    def __init__(self, store: AbstractWaitlistStore) -> None:
        self.store = store

    async def join(self, payload: Any) -> SignupResult:
        """Register a new waitlist entry.

        Args:
            payload: Decoded JSON body with email, name, farmType, farmSize
                and interests.

        Returns:
            SignupResult with a confirmation message and queue position.

        Raises:
            ValidationAppError: If a required field is missing or invalid.
            DuplicateEmailError: If the normalized email is already registered.
            StoreAppError: If the store is unavailable.
        """
        # Step 1: Validate and normalize
        signup = validate_signup_payload(payload)
        email_hash = hash_for_log(signup.email)

        # Step 2: Insert; the unique constraint decides duplicates
        try:
            entry_id = await self.store.insert_unique(signup)
        except DuplicateEmailError:
            logger.info("signup.duplicate", extra={"email_hash": email_hash})
            raise

        # Step 3: Position is a point-in-time count after the insert
        position = await self.store.count()

        logger.info(
            "signup.created",
            extra={
                "entry_id": entry_id,
                "email_hash": email_hash,
                "farm_type": signup.farm_type.value,
                "position": position,
            },
        )

        return SignupResult(message=SUCCESS_MESSAGE, position=position)
