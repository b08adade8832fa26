"""Tournament registration for team and auction competitions."""

from .api import AlertSettingsAPI, RegistrationAPI
from .classifier import available_roles, classify, describe_competition, describe_format
from .database import RegistrationDatabaseManager, RegistrationStore
from .dispatcher import (
    AuctionPlayerWorkflow,
    RegistrationDispatcher,
    RegistrationWorkflow,
    TeamOwnerWorkflow,
    TeamRegistrationWorkflow,
)
from .duplicates import DuplicateCheckResult, DuplicateGuard
from .exceptions import (
    DuplicateError,
    NotFoundError,
    PersistenceError,
    RegistrationClosedError,
    RegistrationError,
    TournamentNotFoundError,
    ValidationError,
)
from .models import (
    AuctionPlayerCandidate,
    AuctionPlayerRecord,
    AuctionStatus,
    CompetitionType,
    PlayerSlot,
    RegistrationIntent,
    RegistrationRegime,
    RegistrationResult,
    RegistrationRole,
    Roster,
    TeamOwnerCandidate,
    TeamOwnerRecord,
    TeamRegistrationRecord,
    TeamRegistrationRequest,
    Tournament,
    TournamentStatus,
)
from .notifications import RegistrationNotifier

__all__ = [
    "AlertSettingsAPI",
    "RegistrationAPI",
    "available_roles",
    "classify",
    "describe_competition",
    "describe_format",
    "RegistrationDatabaseManager",
    "RegistrationStore",
    "AuctionPlayerWorkflow",
    "RegistrationDispatcher",
    "RegistrationWorkflow",
    "TeamOwnerWorkflow",
    "TeamRegistrationWorkflow",
    "DuplicateCheckResult",
    "DuplicateGuard",
    "DuplicateError",
    "NotFoundError",
    "PersistenceError",
    "RegistrationClosedError",
    "RegistrationError",
    "TournamentNotFoundError",
    "ValidationError",
    "AuctionPlayerCandidate",
    "AuctionPlayerRecord",
    "AuctionStatus",
    "CompetitionType",
    "PlayerSlot",
    "RegistrationIntent",
    "RegistrationRegime",
    "RegistrationResult",
    "RegistrationRole",
    "Roster",
    "TeamOwnerCandidate",
    "TeamOwnerRecord",
    "TeamRegistrationRecord",
    "TeamRegistrationRequest",
    "Tournament",
    "TournamentStatus",
    "RegistrationNotifier",
]
