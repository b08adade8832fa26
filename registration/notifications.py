"""Registration and auction emails built on the gated notifier."""

import asyncio
import logging
from typing import Awaitable

from notifications.alert_settings import AlertType, RecipientClass
from notifications.delivery import DeliveryReport, EmailMessage
from notifications.email_service import build_message
from notifications.notifier import Notifier

from .models import (
    AuctionPlayerRecord,
    AuctionStatus,
    RegistrationStatus,
    TeamOwnerRecord,
    TeamRegistrationRecord,
    Tournament,
)

logger = logging.getLogger(__name__)


def format_amount(amount: int | None) -> str:
    return f"₹{amount or 0:,}"


class RegistrationNotifier:
    """Sends the emails that follow registrations and auction results.

    Registrant and admin emails for one registration go out concurrently;
    their reports are merged into one.
    """

    def __init__(self, notifier: Notifier, admin_recipients: list[str] | None = None):
        self.notifier = notifier
        self.admin_recipients = list(admin_recipients or [])

    async def _gather(self, sends: list[Awaitable[DeliveryReport]]) -> DeliveryReport:
        semaphore = asyncio.Semaphore(self.notifier.max_concurrency)

        async def bounded(send: Awaitable[DeliveryReport]) -> DeliveryReport:
            async with semaphore:
                return await send

        reports = await asyncio.gather(*(bounded(send) for send in sends))
        return DeliveryReport.combine(list(reports))

    def _notify_admins(
        self,
        alert_type: str,
        tournament: Tournament,
        role_label: str,
        registrant_name: str,
        phone: str,
        email: str,
        registration_id: str,
        details: str,
    ) -> Awaitable[DeliveryReport]:
        message = build_message(
            "admin_registration",
            {
                "role_label": role_label,
                "tournament_name": tournament.name,
                "registrant_name": registrant_name,
                "contact_phone": phone,
                "contact_email": email,
                "registration_id": registration_id,
                "details": details,
            },
            subject=f"New {role_label} registration - {tournament.name}",
        )
        return self.notifier.notify(
            alert_type, RecipientClass.ADMINS, self.admin_recipients, message
        )

    async def notify_player_registered(
        self, tournament: Tournament, player: AuctionPlayerRecord
    ) -> DeliveryReport:
        message = build_message(
            "player_registration",
            {
                "player_name": player.name,
                "tournament_name": tournament.name,
                "position": player.position,
                "registration_id": player.id,
                "entry_fee": format_amount(player.payment_amount),
            },
            subject=f"Registration received - {tournament.name}",
        )
        return await self._gather([
            self.notifier.notify(
                AlertType.PLAYER_REGISTRATION,
                RecipientClass.PLAYERS,
                [player.email],
                message,
            ),
            self._notify_admins(
                AlertType.PLAYER_REGISTRATION,
                tournament,
                "player",
                player.name,
                player.phone,
                player.email,
                player.id,
                f"{player.position} from {player.city}, {player.experience.lower()} level",
            ),
        ])

    async def notify_team_registered(
        self, tournament: Tournament, team: TeamRegistrationRecord
    ) -> DeliveryReport:
        captain = team.roster.captain
        captain_name = captain.name if captain else ""
        captain_email = captain.email if captain else ""
        captain_phone = captain.phone if captain else ""
        message = build_message(
            "team_registration",
            {
                "captain_name": captain_name,
                "team_name": team.team_name,
                "tournament_name": tournament.name,
                "player_count": str(len(team.roster.slots)),
                "registration_id": team.id,
                "entry_fee": format_amount(team.payment_amount),
            },
            subject=f"Team registration received - {team.team_name}",
        )
        return await self._gather([
            self.notifier.notify(
                AlertType.TEAM_REGISTRATION,
                RecipientClass.PLAYERS,
                [captain_email],
                message,
            ),
            self._notify_admins(
                AlertType.TEAM_REGISTRATION,
                tournament,
                "team",
                f"{team.team_name} (captain {captain_name})",
                captain_phone,
                captain_email,
                team.id,
                f"{len(team.roster.main_slots)} players and "
                f"{len(team.roster.substitute_slots)} substitutes",
            ),
        ])

    async def notify_owner_registered(
        self, tournament: Tournament, owner: TeamOwnerRecord
    ) -> DeliveryReport:
        message = build_message(
            "team_owner_registration",
            {
                "owner_name": owner.owner_name,
                "team_name": owner.team_name,
                "tournament_name": tournament.name,
                "team_index": str(owner.team_index),
                "entry_fee": format_amount(owner.payment_amount),
            },
            subject=f"Team owner registration received - {tournament.name}",
        )
        return await self._gather([
            self.notifier.notify(
                AlertType.TEAM_OWNER_REGISTRATION,
                RecipientClass.TEAM_OWNERS,
                [owner.owner_email],
                message,
            ),
            self._notify_admins(
                AlertType.TEAM_OWNER_REGISTRATION,
                tournament,
                "team owner",
                owner.owner_name,
                owner.owner_phone,
                owner.owner_email,
                owner.id,
                f"Franchise {owner.team_name}, team slot {owner.team_index}",
            ),
        ])

    async def notify_auction_status(
        self,
        tournament: Tournament,
        player: AuctionPlayerRecord,
        owner: TeamOwnerRecord | None = None,
    ) -> DeliveryReport:
        """Tell a player about an approval, a rejection or an auction result."""
        if player.auction_status is AuctionStatus.APPROVED:
            alert_type = AlertType.PLAYER_APPROVAL
            message = build_message(
                "player_approved",
                {"player_name": player.name, "tournament_name": tournament.name},
                subject=f"You are in the {tournament.name} auction pool",
            )
        elif player.auction_status is AuctionStatus.SOLD:
            team_name = owner.team_name if owner else "your new team"
            alert_type = AlertType.AUCTION_PLAYER_SOLD
            message = build_message(
                "player_sold",
                {
                    "player_name": player.name,
                    "tournament_name": tournament.name,
                    "team_name": team_name,
                    "sold_price": format_amount(player.sold_price),
                },
                subject=f"Sold to {team_name} - {tournament.name}",
            )
        elif player.auction_status is AuctionStatus.UNSOLD:
            alert_type = AlertType.AUCTION_PLAYER_UNSOLD
            message = self._unsold_message(tournament, player)
        elif player.auction_status is AuctionStatus.REJECTED:
            alert_type = AlertType.PLAYER_REJECTION
            message = build_message(
                "player_rejected",
                {"player_name": player.name, "tournament_name": tournament.name},
                subject=f"Registration update - {tournament.name}",
            )
        else:
            return DeliveryReport()

        return await self.notifier.notify(
            alert_type, RecipientClass.PLAYERS, [player.email], message
        )

    async def notify_team_reviewed(
        self, tournament: Tournament, team: TeamRegistrationRecord
    ) -> DeliveryReport:
        """Tell the captain the team was approved or rejected."""
        captain = team.roster.captain
        variables = {
            "captain_name": (captain.name if captain else "") or "Team Captain",
            "team_name": team.team_name,
            "tournament_name": tournament.name,
        }
        if team.status is RegistrationStatus.APPROVED:
            alert_type = AlertType.TEAM_APPROVAL
            message = build_message(
                "team_approved",
                variables,
                subject=f"Team registration approved - {tournament.name}",
            )
        elif team.status is RegistrationStatus.REJECTED:
            alert_type = AlertType.TEAM_REJECTION
            message = build_message(
                "team_rejected",
                {**variables, "rejection_reason": team.rejection_reason or "Not specified"},
                subject=f"Registration update - {tournament.name}",
            )
        else:
            return DeliveryReport()

        return await self.notifier.notify(
            alert_type,
            RecipientClass.PLAYERS,
            [captain.email if captain else ""],
            message,
        )

    async def notify_owner_reviewed(
        self,
        tournament: Tournament,
        owner: TeamOwnerRecord,
        auction_link: str | None = None,
    ) -> DeliveryReport:
        """Send a verified owner their auction link, or a rejected owner the news."""
        variables = {
            "owner_name": owner.owner_name,
            "team_name": owner.team_name,
            "tournament_name": tournament.name,
        }
        if owner.verified:
            alert_type = AlertType.TEAM_OWNER_APPROVAL
            message = build_message(
                "owner_verified",
                {
                    **variables,
                    "team_index": str(owner.team_index),
                    "auction_link": auction_link or "",
                },
                subject=f"You are verified for the {tournament.name} auction",
            )
        else:
            alert_type = AlertType.TEAM_OWNER_REJECTION
            message = build_message(
                "owner_rejected",
                variables,
                subject=f"Team owner registration update - {tournament.name}",
            )

        return await self.notifier.notify(
            alert_type, RecipientClass.TEAM_OWNERS, [owner.owner_email], message
        )

    def _unsold_message(
        self, tournament: Tournament, player: AuctionPlayerRecord
    ) -> EmailMessage:
        return build_message(
            "player_unsold",
            {"player_name": player.name, "tournament_name": tournament.name},
            subject=f"Auction result - {tournament.name}",
        )

    async def notify_auction_completion(
        self,
        tournament: Tournament,
        owners: list[TeamOwnerRecord],
        players: list[AuctionPlayerRecord],
    ) -> DeliveryReport:
        """Fan out auction results to every owner and every pool player.

        Each recipient is an independent send; one failure never stops the
        others and the merged report carries the counts.
        """
        owners_by_id = {owner.id: owner for owner in owners}
        sold = [p for p in players if p.auction_status is AuctionStatus.SOLD]
        unsold = [p for p in players if p.auction_status is AuctionStatus.UNSOLD]

        sends: list[Awaitable[DeliveryReport]] = []
        for owner in owners:
            squad = [p for p in sold if p.auction_team_id == owner.id]
            roster = "\n".join(
                f"{i}. {p.name} ({p.position}) - {format_amount(p.sold_price)}"
                for i, p in enumerate(squad, start=1)
            ) or "No players bought"
            message = build_message(
                "owner_roster",
                {
                    "owner_name": owner.owner_name,
                    "team_name": owner.team_name,
                    "tournament_name": tournament.name,
                    "player_count": str(len(squad)),
                    "total_spent": format_amount(sum(p.sold_price or 0 for p in squad)),
                    "roster": roster,
                },
                subject=f"Your squad for {tournament.name}",
            )
            sends.append(self.notifier.notify(
                AlertType.AUCTION_PLAYER_SOLD,
                RecipientClass.TEAM_OWNERS,
                [owner.owner_email],
                message,
            ))

        for player in sold:
            sends.append(self.notify_auction_status(
                tournament, player, owners_by_id.get(player.auction_team_id or "")
            ))

        for player in unsold:
            sends.append(self.notifier.notify(
                AlertType.AUCTION_PLAYER_UNSOLD,
                RecipientClass.PLAYERS,
                [player.email],
                self._unsold_message(tournament, player),
            ))

        report = await self._gather(sends)
        logger.info(
            f"Auction completion emails for {tournament.id}: {report.sent} sent, "
            f"{report.failed} failed, {report.skipped + report.testing_mode} skipped"
        )
        return report
