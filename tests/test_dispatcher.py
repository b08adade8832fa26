"""Tests for registration routing and the per-role workflows."""

import asyncio
from datetime import datetime

import pytest

from notifications.alert_settings import StaticAlertSettingsProvider
from notifications.gate import NotificationGate
from notifications.notifier import Notifier
from registration.dispatcher import RegistrationDispatcher
from registration.exceptions import (
    DuplicateError,
    InvalidStatusError,
    NotFoundError,
    RegistrationClosedError,
    TournamentNotFoundError,
    ValidationError,
)
from registration.models import (
    AuctionPlayerRecord,
    AuctionStatus,
    ProfilePhoto,
    RegistrationIntent,
    RegistrationRegime,
    RegistrationRole,
    RegistrationStatus,
    TeamOwnerRecord,
    TournamentStatus,
)
from registration.notifications import RegistrationNotifier

from conftest import ADMIN_EMAIL, FakeTransport

PNG_PHOTO = ProfilePhoto(filename="me.png", content_type="image/png", content=b"\x89PNG\r\n")


class StubUploader:
    def __init__(self):
        self.uploads = []

    def upload(self, tournament_id: str, photo: ProfilePhoto) -> str:
        self.uploads.append(photo.filename)
        return f"/uploads/players/{tournament_id}_photo.png"


class FailingUploader:
    def upload(self, tournament_id: str, photo: ProfilePhoto) -> str:
        raise OSError("bucket unavailable")


class ExplodingNotifier:
    """Registration notifier whose every call fails outright."""

    async def notify_player_registered(self, tournament, player):
        raise RuntimeError("template missing")

    async def notify_team_registered(self, tournament, team):
        raise RuntimeError("template missing")

    async def notify_owner_registered(self, tournament, owner):
        raise RuntimeError("template missing")

    async def notify_team_reviewed(self, tournament, team):
        raise RuntimeError("template missing")

    async def notify_owner_reviewed(self, tournament, owner, auction_link=None):
        raise RuntimeError("template missing")


def _submit(dispatcher, tournament_id, payload, role=None, photo=None):
    intent = RegistrationIntent(tournament_id=tournament_id, role=role, payload=payload)
    return asyncio.run(dispatcher.submit(intent, photo))


# Team regime


def test_league_team_with_two_substitutes_registers(
    dispatcher, store, transport, make_team_payload
) -> None:
    result = _submit(dispatcher, "league-2026", make_team_payload(11, 2))

    assert result.role is RegistrationRole.TEAM
    assert result.regime is RegistrationRegime.TEAM
    assert result.message == "Team Riverside Strikers registered successfully"

    record = store.teams[result.registration_id]
    assert len(record.roster.main_slots) == 11
    assert len(record.roster.substitute_slots) == 2
    assert record.roster.captain.email == "player1@club.test"
    assert record.payment_amount == 5000

    assert sorted(transport.recipients) == [ADMIN_EMAIL, "player1@club.test"]
    assert result.notifications.sent == 2
    assert result.notifications.ok


def test_short_league_roster_names_missing_player(
    dispatcher, store, make_team_payload
) -> None:
    with pytest.raises(ValidationError) as exc_info:
        _submit(dispatcher, "league-2026", make_team_payload(10, 0))

    assert "Player 11 is required (team size is 11)" in exc_info.value.messages
    assert store.teams == {}


def test_roster_size_always_follows_the_tournament(
    dispatcher, store, make_team_payload
) -> None:
    payload = make_team_payload(11, 0)
    payload["roster"]["team_size"] = 5
    payload["roster"]["substitutes"] = 0

    result = _submit(dispatcher, "league-2026", payload)
    roster = store.teams[result.registration_id].roster
    assert roster.team_size == 11
    assert roster.substitutes == 4


def test_team_tournament_ignores_requested_role(dispatcher, store, make_team_payload) -> None:
    result = _submit(dispatcher, "league-2026", make_team_payload(), role="PLAYER")
    assert result.role is RegistrationRole.TEAM
    assert store.players == {}


def test_missing_team_fields_are_all_reported(dispatcher, make_team_payload) -> None:
    payload = make_team_payload()
    payload["team_name"] = " "
    payload["emergency_contact"] = {}

    with pytest.raises(ValidationError) as exc_info:
        _submit(dispatcher, "league-2026", payload)

    assert exc_info.value.messages == [
        "Team name is required",
        "Emergency contact name is required",
        "Emergency contact phone is required",
    ]


def test_malformed_payload_is_a_validation_error(dispatcher) -> None:
    with pytest.raises(ValidationError) as exc_info:
        _submit(dispatcher, "league-2026", {"team_name": "X", "roster": {"slots": "many"}})
    assert any(message.startswith("roster.slots") for message in exc_info.value.messages)


# Registration window


def test_deadline_status_and_capacity_close_registration(
    store, registration_notifier, league_tournament, make_team_payload
) -> None:
    store.tournaments["league-2026"] = league_tournament.model_copy(
        update={
            "registration_deadline": datetime(2026, 4, 30, 23, 59),
            "status": TournamentStatus.ONGOING,
            "max_teams": 0,
        }
    )
    dispatcher = RegistrationDispatcher(
        store, registration_notifier, clock=lambda: datetime(2026, 5, 1, 9, 0)
    )

    with pytest.raises(RegistrationClosedError) as exc_info:
        _submit(dispatcher, "league-2026", make_team_payload())

    assert exc_info.value.messages == [
        "Registration deadline has passed",
        "Registration is not open for this tournament (status ONGOING)",
        "Tournament is full (0 of 0 teams registered)",
    ]
    assert store.calls == []


def test_deadline_in_future_is_open(
    store, registration_notifier, league_tournament, make_team_payload
) -> None:
    store.tournaments["league-2026"] = league_tournament.model_copy(
        update={"registration_deadline": datetime(2026, 5, 2)}
    )
    dispatcher = RegistrationDispatcher(
        store, registration_notifier, clock=lambda: datetime(2026, 5, 1)
    )
    assert _submit(dispatcher, "league-2026", make_team_payload()).registration_id


def test_unknown_tournament(dispatcher) -> None:
    with pytest.raises(TournamentNotFoundError, match="Tournament nope not found"):
        _submit(dispatcher, "nope", {})


# Auction players


def test_auction_player_registers_with_entry_fee(
    dispatcher, store, transport, make_player_payload
) -> None:
    result = _submit(dispatcher, "auction-2026", make_player_payload())

    assert result.role is RegistrationRole.PLAYER
    assert result.regime is RegistrationRegime.AUCTION
    record = store.players[result.registration_id]
    assert record.auction_status is AuctionStatus.AVAILABLE
    assert record.payment_amount == 500
    assert sorted(transport.recipients) == [ADMIN_EMAIL, "rohan@club.test"]


def test_duplicate_auction_player_rejected_before_any_write(
    dispatcher, store, make_player_payload
) -> None:
    _submit(dispatcher, "auction-2026", make_player_payload())
    store.calls.clear()

    # Invalid city proves the duplicate check runs before field validation
    with pytest.raises(DuplicateError) as exc_info:
        _submit(
            dispatcher,
            "auction-2026",
            make_player_payload(name=" Rohan Mehta ", city=""),
        )

    assert store.calls == ["find_auction_player"]
    assert len(store.players) == 1
    assert exc_info.value.matched["name"] == "Rohan Mehta"


def test_invalid_player_fields(dispatcher, store, make_player_payload) -> None:
    payload = make_player_payload(age=15, email="rohan-at-club", phone="12345")

    with pytest.raises(ValidationError) as exc_info:
        _submit(dispatcher, "auction-2026", payload)

    assert exc_info.value.messages == [
        "Player must be at least 16 years old",
        "Email format is invalid",
        "Phone number must be 10 digits",
    ]
    assert store.players == {}


def test_player_photo_is_uploaded(store, registration_notifier, make_player_payload) -> None:
    uploader = StubUploader()
    dispatcher = RegistrationDispatcher(store, registration_notifier, uploader=uploader)

    result = _submit(dispatcher, "auction-2026", make_player_payload(), photo=PNG_PHOTO)

    assert uploader.uploads == ["me.png"]
    assert store.players[result.registration_id].profile_image_url == (
        "/uploads/players/auction-2026_photo.png"
    )


def test_invalid_photo_is_rejected(store, registration_notifier, make_player_payload) -> None:
    uploader = StubUploader()
    dispatcher = RegistrationDispatcher(store, registration_notifier, uploader=uploader)
    gif = ProfilePhoto(filename="me.gif", content_type="image/gif", content=b"GIF89a")

    with pytest.raises(ValidationError) as exc_info:
        _submit(dispatcher, "auction-2026", make_player_payload(), photo=gif)

    assert exc_info.value.messages == ["Profile photo must be a JPEG, PNG or WebP image"]
    assert uploader.uploads == []


def test_failed_upload_still_registers(store, registration_notifier, make_player_payload) -> None:
    dispatcher = RegistrationDispatcher(
        store, registration_notifier, uploader=FailingUploader()
    )
    result = _submit(dispatcher, "auction-2026", make_player_payload(), photo=PNG_PHOTO)
    assert store.players[result.registration_id].profile_image_url is None


def test_player_pool_can_register_while_upcoming(
    store, registration_notifier, auction_tournament, make_player_payload
) -> None:
    store.tournaments["auction-2026"] = auction_tournament.model_copy(
        update={"status": TournamentStatus.UPCOMING}
    )
    dispatcher = RegistrationDispatcher(store, registration_notifier)
    assert _submit(dispatcher, "auction-2026", make_player_payload()).registration_id


# Team owners


def test_owner_takes_next_team_index_and_notifies_owners_and_admins(
    dispatcher, store, transport, activity_log, make_owner_payload
) -> None:
    first = _submit(dispatcher, "auction-2026", make_owner_payload(), role="owner")
    second = _submit(
        dispatcher,
        "auction-2026",
        make_owner_payload(owner_email="second@club.test", team_name="Lake Lions"),
        role="OWNER",
    )

    assert first.role is RegistrationRole.OWNER
    assert store.owners[first.registration_id].team_index == 1
    assert store.owners[second.registration_id].team_index == 2
    assert store.owners[first.registration_id].payment_amount == 20000
    assert "vikram@club.test" in transport.recipients
    assert "second@club.test" in transport.recipients
    assert transport.recipients.count(ADMIN_EMAIL) == 2
    assert {entry.recipient_class for entry in activity_log.entries} == {"teamOwners", "admins"}


def test_owner_requires_open_status(
    store, registration_notifier, auction_tournament, make_owner_payload
) -> None:
    store.tournaments["auction-2026"] = auction_tournament.model_copy(
        update={"status": TournamentStatus.UPCOMING}
    )
    dispatcher = RegistrationDispatcher(store, registration_notifier)

    with pytest.raises(RegistrationClosedError):
        _submit(dispatcher, "auction-2026", make_owner_payload(), role="OWNER")


def test_owner_slots_fill_up(
    store, registration_notifier, auction_tournament, make_owner_payload
) -> None:
    store.tournaments["auction-2026"] = auction_tournament.model_copy(
        update={"auction_team_count": 1}
    )
    dispatcher = RegistrationDispatcher(store, registration_notifier)
    _submit(dispatcher, "auction-2026", make_owner_payload(), role="OWNER")

    with pytest.raises(RegistrationClosedError) as exc_info:
        _submit(dispatcher, "auction-2026", make_owner_payload(), role="OWNER")
    assert exc_info.value.messages == ["All 1 team owner slots are taken"]


def test_underage_owner(dispatcher, make_owner_payload) -> None:
    with pytest.raises(ValidationError) as exc_info:
        _submit(dispatcher, "auction-2026", make_owner_payload(owner_age=17), role="OWNER")
    assert exc_info.value.messages == ["Team owner must be at least 18 years old"]


# Notification failures never fail a registration


def test_notification_exception_does_not_fail_registration(
    store, make_player_payload
) -> None:
    dispatcher = RegistrationDispatcher(store, ExplodingNotifier())

    result = _submit(dispatcher, "auction-2026", make_player_payload())

    assert result.registration_id in store.players
    assert result.notifications.failed == 1
    assert not result.notifications.ok


def test_delivery_failures_are_reported_not_raised(
    store, gate, make_team_payload
) -> None:
    transport = FakeTransport(raise_for={ADMIN_EMAIL, "player1@club.test"})
    notifier = RegistrationNotifier(Notifier(gate, transport), [ADMIN_EMAIL])
    dispatcher = RegistrationDispatcher(store, notifier)

    result = _submit(dispatcher, "league-2026", make_team_payload())

    assert result.registration_id in store.teams
    assert result.notifications.failed == 2
    assert result.notifications.sent == 0


def test_testing_mode_registers_without_sending(
    store, transport, all_enabled_settings, make_player_payload
) -> None:
    settings = [s.model_copy(update={"testing_mode": True}) for s in all_enabled_settings]
    gate = NotificationGate(StaticAlertSettingsProvider(settings))
    dispatcher = RegistrationDispatcher(
        store, RegistrationNotifier(Notifier(gate, transport), [ADMIN_EMAIL])
    )

    result = _submit(dispatcher, "auction-2026", make_player_payload())

    assert transport.sent == []
    assert result.notifications.testing_mode == 2
    assert result.notifications.ok


# Registration options


def test_registration_options(dispatcher, store) -> None:
    auction = dispatcher.registration_options(store.tournaments["auction-2026"])
    assert auction["regime"] == "AUCTION"
    assert auction["roles"] == ["PLAYER", "OWNER"]
    assert auction["default_role"] == "PLAYER"
    assert auction["format_label"] == "10 Overs"
    assert auction["fees"] == {"team": 20000, "player": 500}

    league = dispatcher.registration_options(store.tournaments["league-2026"])
    assert league["roles"] == ["TEAM"]
    assert league["competition_label"] == "League Tournament"


# Auction results


@pytest.fixture
def auction_roster(store):
    """Two owners and a pool of players in mixed auction states."""
    owners = [
        TeamOwnerRecord(
            id=f"o-{i}", tournament_id="auction-2026", team_index=i,
            owner_name=f"Owner {i}", owner_email=f"owner{i}@club.test",
            team_name=f"Team {i}",
        )
        for i in (1, 2)
    ]
    for owner in owners:
        store.owners[owner.id] = owner

    players = [
        ("p-1", AuctionStatus.SOLD, 4000, "o-1"),
        ("p-2", AuctionStatus.SOLD, 2500, "o-1"),
        ("p-3", AuctionStatus.SOLD, 3000, "o-2"),
        ("p-4", AuctionStatus.UNSOLD, None, None),
        ("p-5", AuctionStatus.AVAILABLE, None, None),
    ]
    for player_id, status, price, owner_id in players:
        store.players[player_id] = AuctionPlayerRecord(
            id=player_id, tournament_id="auction-2026", name=f"Player {player_id}",
            phone="9000000000", email=f"{player_id}@club.test", position="BOWLER",
            auction_status=status, sold_price=price, auction_team_id=owner_id,
        )
    return store


def test_sold_status_notifies_player(dispatcher, auction_roster, transport) -> None:
    player, report = asyncio.run(dispatcher.update_auction_status(
        "auction-2026", "p-5", AuctionStatus.SOLD, sold_price=1500, team_owner_id="o-2"
    ))

    assert player.auction_status is AuctionStatus.SOLD
    assert player.sold_price == 1500
    assert transport.sent == [("p-5@club.test", "Sold to Team 2 - Premier Auction League")]
    assert report.sent == 1


def test_sold_status_requires_price_and_owner(dispatcher, auction_roster) -> None:
    with pytest.raises(ValidationError) as exc_info:
        asyncio.run(dispatcher.update_auction_status(
            "auction-2026", "p-5", AuctionStatus.SOLD, team_owner_id="o-missing"
        ))
    assert exc_info.value.messages == [
        "Sold price is required for a sold player",
        "Team owner o-missing not found in tournament",
    ]
    assert auction_roster.players["p-5"].auction_status is AuctionStatus.AVAILABLE


def test_unsold_status_clears_sale(dispatcher, auction_roster, transport) -> None:
    player, _ = asyncio.run(dispatcher.update_auction_status(
        "auction-2026", "p-1", AuctionStatus.UNSOLD, sold_price=100, team_owner_id="o-1"
    ))
    assert player.sold_price is None
    assert player.auction_team_id is None
    assert transport.recipients == ["p-1@club.test"]


def test_status_update_for_unknown_player(dispatcher, auction_roster) -> None:
    with pytest.raises(NotFoundError):
        asyncio.run(dispatcher.update_auction_status(
            "auction-2026", "p-404", AuctionStatus.APPROVED
        ))
    with pytest.raises(NotFoundError):
        asyncio.run(dispatcher.update_auction_status(
            "league-2026", "p-1", AuctionStatus.APPROVED
        ))


def test_auction_completion_fans_out_with_partial_failure(
    store, gate, auction_roster
) -> None:
    transport = FakeTransport(raise_for={"owner2@club.test"})
    notifier = RegistrationNotifier(Notifier(gate, transport, max_concurrency=2), [ADMIN_EMAIL])
    dispatcher = RegistrationDispatcher(store, notifier)

    report = asyncio.run(dispatcher.notify_auction_completion("auction-2026"))

    # Two owners, three sold players and one unsold player
    assert report.attempted == 6
    assert report.sent == 5
    assert report.failed == 1
    assert report.reasons == ["Delivery failed for owner2@club.test"]
    assert "p-5@club.test" not in transport.recipients
    assert ("owner1@club.test", "Your squad for Premier Auction League") in transport.sent


def test_submitted_slot_order_sets_slot_indexes(dispatcher, store, make_team_payload) -> None:
    payload = make_team_payload(11, 2)
    for slot in payload["roster"]["slots"]:
        del slot["slot_index"]

    result = _submit(dispatcher, "league-2026", payload)

    slots = store.teams[result.registration_id].roster.slots
    assert [slot.slot_index for slot in slots] == list(range(13))


def test_rejected_player_is_told(dispatcher, auction_roster, transport) -> None:
    player, report = asyncio.run(dispatcher.update_auction_status(
        "auction-2026", "p-5", AuctionStatus.REJECTED
    ))

    assert player.auction_status is AuctionStatus.REJECTED
    assert transport.sent == [("p-5@club.test", "Registration update - Premier Auction League")]
    assert report.sent == 1


# Team review


def _pending_team(dispatcher, make_team_payload) -> str:
    return _submit(dispatcher, "league-2026", make_team_payload()).registration_id


def test_approving_a_team_emails_the_captain(
    dispatcher, store, transport, make_team_payload
) -> None:
    team_id = _pending_team(dispatcher, make_team_payload)
    transport.sent.clear()

    team, report = asyncio.run(dispatcher.update_team_registration_status(
        "league-2026", team_id, RegistrationStatus.APPROVED, reviewed_by="ops@club.test"
    ))

    assert team.status is RegistrationStatus.APPROVED
    assert team.reviewed_by == "ops@club.test"
    assert store.teams[team_id].status is RegistrationStatus.APPROVED
    assert transport.sent == [
        ("player1@club.test", "Team registration approved - Summer League")
    ]
    assert report.sent == 1


def test_rejecting_a_team_keeps_the_reason_and_only_happens_once(
    dispatcher, store, transport, make_team_payload
) -> None:
    team_id = _pending_team(dispatcher, make_team_payload)
    transport.sent.clear()

    team, _ = asyncio.run(dispatcher.update_team_registration_status(
        "league-2026", team_id, RegistrationStatus.REJECTED,
        rejection_reason="Payment not received",
    ))
    assert team.rejection_reason == "Payment not received"
    assert transport.sent == [("player1@club.test", "Registration update - Summer League")]

    with pytest.raises(InvalidStatusError) as exc_info:
        asyncio.run(dispatcher.update_team_registration_status(
            "league-2026", team_id, RegistrationStatus.APPROVED
        ))
    assert exc_info.value.messages == ["Registration is already rejected"]
    assert store.teams[team_id].status is RegistrationStatus.REJECTED


def test_approval_respects_tournament_capacity(
    dispatcher, store, league_tournament, make_team_payload
) -> None:
    store.tournaments["league-2026"] = league_tournament.model_copy(update={"max_teams": 1})
    first = _pending_team(dispatcher, make_team_payload)
    asyncio.run(dispatcher.update_team_registration_status(
        "league-2026", first, RegistrationStatus.APPROVED
    ))

    waiting = store.teams[first].model_copy(
        update={"id": "team-late", "status": RegistrationStatus.PENDING}
    )
    store.teams[waiting.id] = waiting

    with pytest.raises(RegistrationClosedError) as exc_info:
        asyncio.run(dispatcher.update_team_registration_status(
            "league-2026", "team-late", RegistrationStatus.APPROVED
        ))
    assert exc_info.value.messages == ["Tournament has reached maximum capacity"]
    assert store.teams["team-late"].status is RegistrationStatus.PENDING


def test_team_review_errors(dispatcher, make_team_payload) -> None:
    team_id = _pending_team(dispatcher, make_team_payload)

    with pytest.raises(ValidationError):
        asyncio.run(dispatcher.update_team_registration_status(
            "league-2026", team_id, RegistrationStatus.PENDING
        ))
    with pytest.raises(NotFoundError):
        asyncio.run(dispatcher.update_team_registration_status(
            "league-2026", "team-404", RegistrationStatus.APPROVED
        ))
    with pytest.raises(NotFoundError):
        asyncio.run(dispatcher.update_team_registration_status(
            "auction-2026", team_id, RegistrationStatus.APPROVED
        ))


# Team owner verification


def test_verified_owner_gets_auction_link(dispatcher, auction_roster, transport) -> None:
    owner, report = asyncio.run(dispatcher.verify_team_owner("auction-2026", "o-1"))

    assert owner.verified
    assert owner.auction_token.startswith("auction_")
    assert transport.sent == [
        ("owner1@club.test", "You are verified for the Premier Auction League auction")
    ]
    assert report.sent == 1

    again, _ = asyncio.run(dispatcher.verify_team_owner("auction-2026", "o-1"))
    assert again.auction_token == owner.auction_token


def test_auction_link_uses_configured_base(dispatcher, auction_tournament) -> None:
    assert (
        dispatcher.auction_link(auction_tournament, "tok")
        == "http://localhost:3000/auction/auction-2026?token=tok"
    )


def test_rejected_owner_loses_token(dispatcher, auction_roster, transport) -> None:
    asyncio.run(dispatcher.verify_team_owner("auction-2026", "o-2"))
    transport.sent.clear()

    owner, _ = asyncio.run(dispatcher.verify_team_owner("auction-2026", "o-2", verified=False))

    assert not owner.verified
    assert owner.auction_token is None
    assert transport.sent == [
        ("owner2@club.test", "Team owner registration update - Premier Auction League")
    ]


def test_owner_verification_survives_notification_failure(auction_roster) -> None:
    dispatcher = RegistrationDispatcher(auction_roster, ExplodingNotifier())

    owner, report = asyncio.run(dispatcher.verify_team_owner("auction-2026", "o-1"))

    assert auction_roster.owners["o-1"].verified
    assert owner.verified
    assert report.failed == 1
    assert report.reasons == ["Notification error: template missing"]


def test_verifying_unknown_owner(dispatcher, auction_roster) -> None:
    with pytest.raises(NotFoundError):
        asyncio.run(dispatcher.verify_team_owner("auction-2026", "o-404"))
    assert "update_team_owner_verification" not in auction_roster.calls
