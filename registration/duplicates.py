"""Duplicate detection for auction pool registrations."""

import logging
from typing import Any, Protocol

from pydantic import BaseModel

from .exceptions import DuplicateError
from .models import AuctionPlayerRecord

logger = logging.getLogger(__name__)


class AuctionPlayerLookup(Protocol):
    def find_auction_player(
        self, tournament_id: str, name: str, phone: str, email: str
    ) -> AuctionPlayerRecord | None: ...


class DuplicateCheckResult(BaseModel):
    """Outcome of a duplicate lookup."""

    exists: bool
    matched_record: dict[str, Any] | None = None


class DuplicateGuard:
    """Refuses a second auction registration with the same identity.

    A candidate is a duplicate when a record in the same tournament has the
    same name, phone and email after trimming. Runs before validation and
    before any upload, so a duplicate never costs a write.
    """

    def __init__(self, store: AuctionPlayerLookup):
        self.store = store

    def check_duplicate(
        self, tournament_id: str, name: str, phone: str, email: str
    ) -> DuplicateCheckResult:
        name, phone, email = name.strip(), phone.strip(), email.strip()
        # Blank identity fields are reported by validation instead
        if not name or not phone:
            return DuplicateCheckResult(exists=False)

        existing = self.store.find_auction_player(tournament_id, name, phone, email)
        if existing is None:
            return DuplicateCheckResult(exists=False)

        return DuplicateCheckResult(
            exists=True,
            matched_record={
                "id": existing.id,
                "name": existing.name,
                "phone": existing.phone,
                "email": existing.email,
            },
        )

    def ensure_unique(
        self, tournament_id: str, name: str, phone: str, email: str
    ) -> None:
        """Raise :class:`DuplicateError` when the candidate is already registered."""
        result = self.check_duplicate(tournament_id, name, phone, email)
        if result.exists:
            logger.info(f"Duplicate registration refused for {name.strip()} in {tournament_id}")
            raise DuplicateError(
                f"{name.strip()} is already registered for this tournament with "
                f"phone {phone.strip()} and email {email.strip()}",
                matched=result.matched_record,
            )
