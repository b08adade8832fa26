"""Registration routing and the per-role registration workflows."""

import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Awaitable, Callable, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from config.settings import RegistrationConfig
from notifications.delivery import DeliveryReport

from .classifier import (
    available_roles,
    classify,
    describe_competition,
    describe_format,
)
from .database import RegistrationStore
from .duplicates import DuplicateGuard
from .exceptions import (
    InvalidStatusError,
    NotFoundError,
    RegistrationClosedError,
    TournamentNotFoundError,
    ValidationError,
)
from .models import (
    AuctionPlayerCandidate,
    AuctionPlayerRecord,
    AuctionStatus,
    ProfilePhoto,
    RegistrationIntent,
    RegistrationRegime,
    RegistrationResult,
    RegistrationRole,
    RegistrationStatus,
    TeamOwnerCandidate,
    TeamOwnerRecord,
    TeamRegistrationRecord,
    TeamRegistrationRequest,
    Tournament,
    TournamentStatus,
)
from .notifications import RegistrationNotifier
from .uploads import PhotoUploader
from .validation import (
    validate_owner_candidate,
    validate_photo,
    validate_player_candidate,
    validate_team_request,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

OPEN_STATUSES = frozenset({TournamentStatus.REGISTRATION_OPEN, TournamentStatus.UPCOMING})


def parse_payload(model_class: type[ModelT], payload: dict[str, Any]) -> ModelT:
    """Validate a raw payload, turning pydantic errors into itemised messages."""
    try:
        return model_class.model_validate(payload)
    except PydanticValidationError as e:
        messages = []
        for error in e.errors():
            location = ".".join(str(part) for part in error["loc"])
            messages.append(f"{location}: {error['msg']}" if location else error["msg"])
        raise ValidationError(messages) from e


def _as_aware(moment: datetime) -> datetime:
    return moment if moment.tzinfo else moment.astimezone()


def _new_id() -> str:
    return uuid.uuid4().hex


async def deliver(send: Awaitable[DeliveryReport], context: str) -> DeliveryReport:
    """Await a notification step. Failures are logged and reported, never raised."""
    try:
        return await send
    except Exception as e:
        logger.error(f"Notification failed after {context}: {e}")
        return DeliveryReport(failed=1, reasons=[f"Notification error: {e}"])


class RegistrationWorkflow(ABC):
    """One role's path from raw payload to stored, announced registration."""

    role: RegistrationRole
    allowed_statuses: frozenset[TournamentStatus] = OPEN_STATUSES

    def __init__(
        self,
        store: RegistrationStore,
        notifier: RegistrationNotifier,
        config: RegistrationConfig,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.notifier = notifier
        self.config = config
        self.clock = clock

    @abstractmethod
    def capacity_errors(self, tournament: Tournament) -> list[str]:
        """Messages when the tournament has no room left for this role."""

    @abstractmethod
    async def run(
        self,
        tournament: Tournament,
        payload: dict[str, Any],
        photo: ProfilePhoto | None = None,
    ) -> RegistrationResult:
        """Register one participant."""

    def check_registration_window(self, tournament: Tournament) -> None:
        """Raise :class:`RegistrationClosedError` unless registration is open."""
        errors: list[str] = []

        deadline = tournament.registration_deadline
        if deadline is not None and _as_aware(self.clock()) > _as_aware(deadline):
            errors.append("Registration deadline has passed")

        if tournament.status not in self.allowed_statuses:
            errors.append(
                f"Registration is not open for this tournament "
                f"(status {tournament.status.value})"
            )

        errors.extend(self.capacity_errors(tournament))
        if errors:
            raise RegistrationClosedError(errors)

    async def announce(self, send: Awaitable[DeliveryReport]) -> DeliveryReport:
        return await deliver(send, f"{self.role.value} registration")

    def result(
        self, tournament: Tournament, registration_id: str, message: str,
        report: DeliveryReport,
    ) -> RegistrationResult:
        return RegistrationResult(
            registration_id=registration_id,
            tournament_id=tournament.id,
            role=self.role,
            regime=classify(tournament),
            message=message,
            notifications=report,
        )


class TeamRegistrationWorkflow(RegistrationWorkflow):
    """Captain registers a full roster."""

    role = RegistrationRole.TEAM

    def capacity_errors(self, tournament: Tournament) -> list[str]:
        registered = self.store.count_team_registrations(tournament.id)
        if registered >= tournament.max_teams:
            return [f"Tournament is full ({registered} of {tournament.max_teams} teams registered)"]
        return []

    def parse(self, tournament: Tournament, payload: dict[str, Any]) -> TeamRegistrationRequest:
        data = dict(payload)
        roster = data.get("roster") or {}
        if isinstance(roster, list):
            roster = {"slots": roster}
        elif isinstance(roster, BaseModel):
            roster = roster.model_dump()
        # Roster size always follows the tournament
        data["roster"] = {
            **roster,
            "team_size": tournament.team_size,
            "substitutes": tournament.substitutes,
        }
        request = parse_payload(TeamRegistrationRequest, data)
        # Slot order is authoritative, submitted indexes are not
        for position, slot in enumerate(request.roster.slots):
            slot.slot_index = position
        return request

    async def run(
        self,
        tournament: Tournament,
        payload: dict[str, Any],
        photo: ProfilePhoto | None = None,
    ) -> RegistrationResult:
        request = self.parse(tournament, payload)
        self.check_registration_window(tournament)

        errors = validate_team_request(request)
        if errors:
            raise ValidationError(errors)

        if request.payment_amount is None:
            request.payment_amount = tournament.team_entry_fee or tournament.entry_fee

        record = TeamRegistrationRecord(
            id=_new_id(),
            tournament_id=tournament.id,
            **request.model_dump(exclude={"roster"}),
            roster=request.roster,
        )
        record = self.store.create_team_registration(record)

        report = await self.announce(
            self.notifier.notify_team_registered(tournament, record)
        )
        return self.result(
            tournament,
            record.id,
            f"Team {record.team_name} registered successfully",
            report,
        )


class AuctionPlayerWorkflow(RegistrationWorkflow):
    """Individual player enters the auction pool."""

    role = RegistrationRole.PLAYER

    def __init__(
        self,
        store: RegistrationStore,
        notifier: RegistrationNotifier,
        config: RegistrationConfig,
        clock: Callable[[], datetime] = datetime.now,
        uploader: PhotoUploader | None = None,
    ):
        super().__init__(store, notifier, config, clock)
        self.guard = DuplicateGuard(store)
        self.uploader = uploader

    def capacity_errors(self, tournament: Tournament) -> list[str]:
        registered = self.store.count_auction_players(tournament.id)
        if registered >= tournament.player_pool_size:
            return [
                f"Player pool is full ({registered} of "
                f"{tournament.player_pool_size} players registered)"
            ]
        return []

    def upload_photo(self, tournament: Tournament, photo: ProfilePhoto) -> str | None:
        if self.uploader is None:
            logger.warning("No photo uploader configured, continuing without photo")
            return None
        try:
            return self.uploader.upload(tournament.id, photo)
        except Exception as e:
            logger.warning(f"Profile photo upload failed, continuing without photo: {e}")
            return None

    async def run(
        self,
        tournament: Tournament,
        payload: dict[str, Any],
        photo: ProfilePhoto | None = None,
    ) -> RegistrationResult:
        candidate = parse_payload(AuctionPlayerCandidate, payload)
        candidate.name = candidate.name.strip()
        candidate.phone = candidate.phone.strip()
        candidate.email = candidate.email.strip()

        self.check_registration_window(tournament)
        self.guard.ensure_unique(
            tournament.id, candidate.name, candidate.phone, candidate.email
        )

        errors = validate_player_candidate(candidate, self.config.min_player_age)
        if photo is not None:
            errors.extend(
                validate_photo(
                    photo, self.config.max_photo_bytes, self.config.allowed_photo_types
                )
            )
        if errors:
            raise ValidationError(errors)

        image_url = candidate.profile_image_url
        if photo is not None:
            image_url = self.upload_photo(tournament, photo) or image_url

        record = AuctionPlayerRecord(
            id=_new_id(),
            tournament_id=tournament.id,
            **candidate.model_dump(exclude={"profile_image_url", "payment_amount"}),
            profile_image_url=image_url,
            payment_amount=(
                candidate.payment_amount
                if candidate.payment_amount is not None
                else tournament.player_entry_fee or tournament.entry_fee
            ),
        )
        record = self.store.create_auction_player(record)

        report = await self.announce(
            self.notifier.notify_player_registered(tournament, record)
        )
        return self.result(
            tournament,
            record.id,
            f"{record.name} registered for the {tournament.name} auction pool",
            report,
        )


class TeamOwnerWorkflow(RegistrationWorkflow):
    """Owner takes the next franchise slot of an auction tournament."""

    role = RegistrationRole.OWNER
    allowed_statuses = frozenset({TournamentStatus.REGISTRATION_OPEN})

    def capacity_errors(self, tournament: Tournament) -> list[str]:
        registered = self.store.count_team_owners(tournament.id)
        if registered >= tournament.auction_team_count:
            return [f"All {tournament.auction_team_count} team owner slots are taken"]
        return []

    async def run(
        self,
        tournament: Tournament,
        payload: dict[str, Any],
        photo: ProfilePhoto | None = None,
    ) -> RegistrationResult:
        candidate = parse_payload(TeamOwnerCandidate, payload)
        self.check_registration_window(tournament)

        errors = validate_owner_candidate(candidate, self.config.min_owner_age)
        if errors:
            raise ValidationError(errors)

        record = TeamOwnerRecord(
            id=_new_id(),
            tournament_id=tournament.id,
            team_index=self.store.next_team_index(tournament.id),
            **candidate.model_dump(exclude={"payment_amount"}),
            payment_amount=(
                candidate.payment_amount
                if candidate.payment_amount is not None
                else tournament.team_entry_fee or tournament.entry_fee
            ),
        )
        record = self.store.create_team_owner(record)

        report = await self.announce(
            self.notifier.notify_owner_registered(tournament, record)
        )
        return self.result(
            tournament,
            record.id,
            f"{record.owner_name} registered as owner of {record.team_name}",
            report,
        )


class RegistrationDispatcher:
    """Routes each registration to the workflow its tournament calls for."""

    def __init__(
        self,
        store: RegistrationStore,
        notifier: RegistrationNotifier,
        config: RegistrationConfig | None = None,
        uploader: PhotoUploader | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.notifier = notifier
        self.config = config or RegistrationConfig()
        self.team_workflow = TeamRegistrationWorkflow(store, notifier, self.config, clock)
        self.player_workflow = AuctionPlayerWorkflow(
            store, notifier, self.config, clock, uploader
        )
        self.owner_workflow = TeamOwnerWorkflow(store, notifier, self.config, clock)

    def get_tournament(self, tournament_id: str) -> Tournament:
        tournament = self.store.get_tournament(tournament_id)
        if tournament is None:
            raise TournamentNotFoundError(tournament_id)
        return tournament

    def dispatch(
        self, tournament: Tournament, requested_role: RegistrationRole | None = None
    ) -> RegistrationWorkflow:
        """Pick the workflow for a tournament and requested role.

        TEAM tournaments always take a team registration. AUCTION tournaments
        take an owner when asked for one and a player otherwise.
        """
        if classify(tournament) is RegistrationRegime.TEAM:
            return self.team_workflow
        if requested_role is RegistrationRole.OWNER:
            return self.owner_workflow
        return self.player_workflow

    def registration_options(self, tournament: Tournament) -> dict[str, Any]:
        """What a registration form needs to render for the tournament."""
        regime = classify(tournament)
        return {
            "tournament_id": tournament.id,
            "tournament_name": tournament.name,
            "regime": regime.value,
            "roles": [role.value for role in available_roles(regime)],
            "default_role": self.dispatch(tournament).role.value,
            "competition_label": describe_competition(tournament),
            "format_label": describe_format(tournament),
            "status": tournament.status.value,
            "registration_deadline": (
                tournament.registration_deadline.isoformat()
                if tournament.registration_deadline
                else None
            ),
            "team_size": tournament.team_size,
            "substitutes": tournament.substitutes,
            "fees": {
                "team": tournament.team_entry_fee or tournament.entry_fee,
                "player": tournament.player_entry_fee or tournament.entry_fee,
            },
        }

    async def submit(
        self, intent: RegistrationIntent, photo: ProfilePhoto | None = None
    ) -> RegistrationResult:
        tournament = self.get_tournament(intent.tournament_id)
        workflow = self.dispatch(tournament, intent.role)
        logger.info(
            f"Registering {workflow.role.value} for tournament {tournament.id} "
            f"({classify(tournament).value})"
        )
        return await workflow.run(tournament, intent.payload, photo)

    async def update_auction_status(
        self,
        tournament_id: str,
        player_id: str,
        status: AuctionStatus,
        sold_price: int | None = None,
        team_owner_id: str | None = None,
    ) -> tuple[AuctionPlayerRecord, DeliveryReport]:
        """Persist a player's auction status, then tell the player."""
        tournament = self.get_tournament(tournament_id)
        player = self.store.get_auction_player(player_id)
        if player is None or player.tournament_id != tournament_id:
            raise NotFoundError(f"Player {player_id} not found in tournament {tournament_id}")

        owner = None
        if status is AuctionStatus.SOLD:
            errors = []
            if sold_price is None or sold_price < 0:
                errors.append("Sold price is required for a sold player")
            if not team_owner_id:
                errors.append("Team owner is required for a sold player")
            else:
                owner = self.store.get_team_owner(team_owner_id)
                if owner is None or owner.tournament_id != tournament_id:
                    errors.append(f"Team owner {team_owner_id} not found in tournament")
            if errors:
                raise ValidationError(errors)

        updated = self.store.update_auction_player_status(
            player_id, status, sold_price, team_owner_id
        )
        if updated is None:
            raise NotFoundError(f"Player {player_id} not found in tournament {tournament_id}")

        report = await deliver(
            self.notifier.notify_auction_status(tournament, updated, owner),
            f"auction status update of {player_id}",
        )
        return updated, report

    async def notify_auction_completion(self, tournament_id: str) -> DeliveryReport:
        """Send every owner their squad and every pool player their result."""
        tournament = self.get_tournament(tournament_id)
        owners = self.store.list_team_owners(tournament_id)
        players = self.store.list_auction_players(tournament_id)
        return await self.notifier.notify_auction_completion(tournament, owners, players)

    async def update_team_registration_status(
        self,
        tournament_id: str,
        registration_id: str,
        status: RegistrationStatus,
        reviewed_by: str | None = None,
        rejection_reason: str | None = None,
    ) -> tuple[TeamRegistrationRecord, DeliveryReport]:
        """Approve or reject a pending team, then tell the captain.

        Approval needs a free place among the tournament's approved teams.
        """
        if status is RegistrationStatus.PENDING:
            raise ValidationError("A team registration can only be approved or rejected")

        tournament = self.get_tournament(tournament_id)
        team = self.store.get_team_registration(registration_id)
        if team is None or team.tournament_id != tournament_id:
            raise NotFoundError(
                f"Team registration {registration_id} not found in tournament {tournament_id}"
            )
        if team.status is not RegistrationStatus.PENDING:
            raise InvalidStatusError(
                f"Registration is already {team.status.value.lower()}"
            )

        if status is RegistrationStatus.APPROVED:
            approved = self.store.count_team_registrations(
                tournament_id, RegistrationStatus.APPROVED
            )
            if approved >= tournament.max_teams:
                raise RegistrationClosedError("Tournament has reached maximum capacity")

        updated = self.store.update_team_registration_status(
            registration_id, status, reviewed_by, rejection_reason
        )
        if updated is None:
            raise NotFoundError(
                f"Team registration {registration_id} not found in tournament {tournament_id}"
            )

        report = await deliver(
            self.notifier.notify_team_reviewed(tournament, updated),
            f"review of team registration {registration_id}",
        )
        return updated, report

    def auction_link(self, tournament: Tournament, token: str) -> str:
        base = self.config.auction_link_base.rstrip("/")
        return f"{base}/{tournament.id}?token={token}"

    async def verify_team_owner(
        self, tournament_id: str, owner_id: str, verified: bool = True
    ) -> tuple[TeamOwnerRecord, DeliveryReport]:
        """Verify an owner and send their auction link, or reject them.

        Verification keeps an existing auction token. Rejection revokes it.
        """
        tournament = self.get_tournament(tournament_id)
        owner = self.store.get_team_owner(owner_id)
        if owner is None or owner.tournament_id != tournament_id:
            raise NotFoundError(f"Team owner {owner_id} not found in tournament {tournament_id}")

        token = None
        if verified:
            token = owner.auction_token or f"auction_{_new_id()}"
        updated = self.store.update_team_owner_verification(owner_id, verified, token)
        if updated is None:
            raise NotFoundError(f"Team owner {owner_id} not found in tournament {tournament_id}")

        link = self.auction_link(tournament, token) if token else None
        report = await deliver(
            self.notifier.notify_owner_reviewed(tournament, updated, link),
            f"verification of team owner {owner_id}",
        )
        return updated, report

    def list_tournaments(self) -> list[dict[str, Any]]:
        """Every tournament with the registration regime it runs under."""
        return [
            {
                "id": tournament.id,
                "name": tournament.name,
                "status": tournament.status.value,
                "regime": classify(tournament).value,
                "competition_label": describe_competition(tournament),
            }
            for tournament in self.store.list_tournaments()
        ]
