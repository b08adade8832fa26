"""Registration pipeline errors.

Every user-facing error carries a list of messages so a form can surface
all violations in one pass.
"""

from typing import Any


class RegistrationError(Exception):
    """Base class for registration pipeline failures."""

    def __init__(self, messages: list[str] | str):
        if isinstance(messages, str):
            messages = [messages]
        self.messages: list[str] = list(messages)
        super().__init__("; ".join(self.messages))


class ValidationError(RegistrationError):
    """Missing or malformed fields. Nothing is persisted."""


class DuplicateError(RegistrationError):
    """A participant with the same identity is already registered."""

    def __init__(self, message: str, matched: dict[str, Any] | None = None):
        super().__init__(message)
        self.matched = matched


class RegistrationClosedError(RegistrationError):
    """Deadline passed, status not open, or capacity reached."""


class NotFoundError(RegistrationError):
    """A referenced tournament, player or owner does not exist."""


class TournamentNotFoundError(NotFoundError):
    """The requested tournament does not exist."""

    def __init__(self, tournament_id: str):
        super().__init__(f"Tournament {tournament_id} not found")
        self.tournament_id = tournament_id


class PersistenceError(RegistrationError):
    """The store failed to commit a registration."""


class InvalidStatusError(RegistrationError):
    """The record has already left the status this change requires."""
