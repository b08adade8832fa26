"""Pytest configuration and shared fixtures.

This file is automatically loaded by pytest and provides:
- Hand-written fakes for the email transport and the registration store
- Tournament, payload and service fixtures shared by the test modules
- Pytest configuration hooks
"""

import threading
import time
from typing import Any, Callable

import pytest

from notifications.alert_settings import (
    DEFAULT_ALERT_SETTINGS,
    EmailAlertSetting,
    StaticAlertSettingsProvider,
)
from notifications.gate import EmailActivity, NotificationGate
from notifications.notifier import Notifier
from registration.dispatcher import RegistrationDispatcher
from registration.models import (
    AuctionPlayerRecord,
    AuctionStatus,
    RegistrationStatus,
    TeamOwnerRecord,
    TeamRegistrationRecord,
    Tournament,
    TournamentStatus,
)
from registration.notifications import RegistrationNotifier

ADMIN_EMAIL = "admin@club.test"


# =============================================================================
# FAKES
# =============================================================================


class FakeTransport:
    """Records sends instead of talking to an SMTP server."""

    def __init__(
        self,
        fail_for: set[str] | None = None,
        raise_for: set[str] | None = None,
        delay: float = 0.0,
    ):
        self.fail_for = fail_for or set()
        self.raise_for = raise_for or set()
        self.delay = delay
        self.sent: list[tuple[str, str]] = []
        self._lock = threading.Lock()

    def send_email(self, to_email: str, subject: str, html_body: str,
                   text_body: str | None = None) -> bool:
        if self.delay:
            time.sleep(self.delay)
        if to_email in self.raise_for:
            raise ConnectionError("SMTP connection refused")
        if to_email in self.fail_for:
            return False
        with self._lock:
            self.sent.append((to_email, subject))
        return True

    @property
    def recipients(self) -> list[str]:
        return [to for to, _ in self.sent]


class RecordingActivityLog:
    """Keeps audit entries in memory."""

    def __init__(self):
        self.entries: list[EmailActivity] = []

    def record(self, entry: EmailActivity) -> None:
        self.entries.append(entry)


class FakeStore:
    """In-memory registration store that remembers which methods ran."""

    def __init__(self, tournaments: list[Tournament] | None = None):
        self.tournaments = {t.id: t for t in tournaments or []}
        self.players: dict[str, AuctionPlayerRecord] = {}
        self.teams: dict[str, TeamRegistrationRecord] = {}
        self.owners: dict[str, TeamOwnerRecord] = {}
        self.calls: list[str] = []

    def get_tournament(self, tournament_id: str) -> Tournament | None:
        return self.tournaments.get(tournament_id)

    def list_tournaments(self) -> list[Tournament]:
        return list(self.tournaments.values())

    def find_auction_player(self, tournament_id, name, phone, email):
        self.calls.append("find_auction_player")
        for player in self.players.values():
            if (player.tournament_id, player.name, player.phone, player.email) == (
                tournament_id, name, phone, email
            ):
                return player
        return None

    def count_auction_players(self, tournament_id: str) -> int:
        return sum(1 for p in self.players.values() if p.tournament_id == tournament_id)

    def create_auction_player(self, record: AuctionPlayerRecord) -> AuctionPlayerRecord:
        self.calls.append("create_auction_player")
        self.players[record.id] = record
        return record

    def get_auction_player(self, player_id: str) -> AuctionPlayerRecord | None:
        return self.players.get(player_id)

    def list_auction_players(self, tournament_id, status=None):
        return [
            p for p in self.players.values()
            if p.tournament_id == tournament_id
            and (status is None or p.auction_status is status)
        ]

    def update_auction_player_status(
        self, player_id, status, sold_price=None, team_owner_id=None
    ):
        self.calls.append("update_auction_player_status")
        player = self.players.get(player_id)
        if player is None:
            return None
        if status is not AuctionStatus.SOLD:
            sold_price, team_owner_id = None, None
        updated = player.model_copy(
            update={
                "auction_status": status,
                "sold_price": sold_price,
                "auction_team_id": team_owner_id,
            }
        )
        self.players[player_id] = updated
        return updated

    def count_team_registrations(self, tournament_id: str, status=None) -> int:
        return sum(
            1 for t in self.teams.values()
            if t.tournament_id == tournament_id and (status is None or t.status is status)
        )

    def create_team_registration(self, record: TeamRegistrationRecord):
        self.calls.append("create_team_registration")
        self.teams[record.id] = record
        return record

    def get_team_registration(self, registration_id: str):
        return self.teams.get(registration_id)

    def update_team_registration_status(
        self, registration_id, status, reviewed_by=None, rejection_reason=None
    ):
        self.calls.append("update_team_registration_status")
        team = self.teams.get(registration_id)
        if team is None:
            return None
        if status is not RegistrationStatus.REJECTED:
            rejection_reason = None
        updated = team.model_copy(
            update={
                "status": status,
                "reviewed_by": reviewed_by,
                "rejection_reason": rejection_reason,
            }
        )
        self.teams[registration_id] = updated
        return updated

    def count_team_owners(self, tournament_id: str) -> int:
        return sum(1 for o in self.owners.values() if o.tournament_id == tournament_id)

    def next_team_index(self, tournament_id: str) -> int:
        indexes = [o.team_index for o in self.owners.values() if o.tournament_id == tournament_id]
        return max(indexes, default=0) + 1

    def create_team_owner(self, record: TeamOwnerRecord) -> TeamOwnerRecord:
        self.calls.append("create_team_owner")
        self.owners[record.id] = record
        return record

    def get_team_owner(self, owner_id: str) -> TeamOwnerRecord | None:
        return self.owners.get(owner_id)

    def update_team_owner_verification(self, owner_id, verified, auction_token):
        self.calls.append("update_team_owner_verification")
        owner = self.owners.get(owner_id)
        if owner is None:
            return None
        changes = {"verified": verified, "auction_token": auction_token}
        if not verified:
            changes.update(entry_fee_paid=False, auction_token=None)
        updated = owner.model_copy(update=changes)
        self.owners[owner_id] = updated
        return updated

    def list_team_owners(self, tournament_id: str) -> list[TeamOwnerRecord]:
        return sorted(
            (o for o in self.owners.values() if o.tournament_id == tournament_id),
            key=lambda o: o.team_index,
        )


# =============================================================================
# SHARED FIXTURES - Available to all test modules
# =============================================================================


@pytest.fixture
def league_tournament() -> Tournament:
    """Team-regime league with 11 players and up to 4 substitutes."""
    return Tournament(
        id="league-2026",
        name="Summer League",
        competition_type="LEAGUE",
        format="T20",
        status=TournamentStatus.REGISTRATION_OPEN,
        max_teams=16,
        team_size=11,
        substitutes=4,
        team_entry_fee=5000,
    )


@pytest.fixture
def auction_tournament() -> Tournament:
    """Auction-regime league with a player pool and team owners."""
    return Tournament(
        id="auction-2026",
        name="Premier Auction League",
        competition_type="AUCTION_LEAGUE",
        format="T10",
        status=TournamentStatus.REGISTRATION_OPEN,
        player_pool_size=100,
        auction_team_count=8,
        player_entry_fee=500,
        team_entry_fee=20000,
        is_auction_based=True,
    )


@pytest.fixture
def all_enabled_settings() -> list[EmailAlertSetting]:
    """Default alert types with every recipient class switched on."""
    return [
        setting.model_copy(
            update={
                "enabled_for_players": True,
                "enabled_for_admins": True,
                "enabled_for_team_owners": True,
            }
        )
        for setting in DEFAULT_ALERT_SETTINGS
    ]


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def activity_log() -> RecordingActivityLog:
    return RecordingActivityLog()


@pytest.fixture
def gate(all_enabled_settings, activity_log) -> NotificationGate:
    return NotificationGate(
        StaticAlertSettingsProvider(all_enabled_settings), activity_log=activity_log
    )


@pytest.fixture
def notifier(gate, transport) -> Notifier:
    return Notifier(gate, transport, send_timeout=2.0, max_concurrency=3)


@pytest.fixture
def registration_notifier(notifier) -> RegistrationNotifier:
    return RegistrationNotifier(notifier, [ADMIN_EMAIL])


@pytest.fixture
def store(league_tournament, auction_tournament) -> FakeStore:
    return FakeStore([league_tournament, auction_tournament])


@pytest.fixture
def dispatcher(store, registration_notifier) -> RegistrationDispatcher:
    return RegistrationDispatcher(store, registration_notifier)


@pytest.fixture
def make_team_payload() -> Callable[..., dict[str, Any]]:
    """Build a team registration payload with filled roster slots."""

    def build(main_players: int = 11, substitutes: int = 0) -> dict[str, Any]:
        slots = []
        for i in range(main_players + substitutes):
            slots.append({
                "slot_index": i,
                "name": f"Player {i + 1}",
                "phone": f"98765432{i:02d}",
                "email": f"player{i + 1}@club.test" if i == 0 else "",
                "position": "ALL_ROUNDER",
                "is_substitute": i >= main_players,
            })
        return {
            "team_name": "Riverside Strikers",
            "team_city": "Pune",
            "roster": {"slots": slots},
            "emergency_contact": {"name": "Asha Rao", "phone": "9000000001", "relation": "Sister"},
        }

    return build


@pytest.fixture
def make_player_payload() -> Callable[..., dict[str, Any]]:
    """Build an auction player payload."""

    def build(**overrides: Any) -> dict[str, Any]:
        payload = {
            "name": "Rohan Mehta",
            "phone": "9876543210",
            "email": "rohan@club.test",
            "city": "Nashik",
            "position": "BOWLER",
            "experience": "ADVANCED",
            "age": 24,
            "emergency_contact": "Meera Mehta",
            "emergency_phone": "9123456780",
        }
        payload.update(overrides)
        return payload

    return build


@pytest.fixture
def make_owner_payload() -> Callable[..., dict[str, Any]]:
    """Build a team owner payload."""

    def build(**overrides: Any) -> dict[str, Any]:
        payload = {
            "owner_name": "Vikram Shah",
            "owner_phone": "9811122233",
            "owner_email": "vikram@club.test",
            "owner_city": "Mumbai",
            "owner_age": 41,
            "team_name": "Harbour Kings",
            "emergency_contact": "Neha Shah",
            "emergency_phone": "9811122244",
        }
        payload.update(overrides)
        return payload

    return build


# =============================================================================
# PYTEST CONFIGURATION HOOKS
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
