"""Registration API endpoint handlers."""

import logging
from contextlib import contextmanager
from typing import Any, Callable

from fastapi import HTTPException

from notifications.alert_settings import (
    AlertSettingsAdmin,
    AlertSettingUpdate,
    BulkAction,
)
from notifications.exceptions import AlertSettingNotFoundError
from notifications.gate import NotificationGate

from . import roster as roster_ops
from .dispatcher import RegistrationDispatcher
from .duplicates import DuplicateGuard
from .exceptions import (
    DuplicateError,
    InvalidStatusError,
    NotFoundError,
    RegistrationClosedError,
    RegistrationError,
    ValidationError,
)
from .models import (
    AuctionStatus,
    ProfilePhoto,
    RegistrationIntent,
    RegistrationStatus,
    Roster,
)

logger = logging.getLogger(__name__)


def to_http_exception(error: RegistrationError) -> HTTPException:
    """Map a registration error to its HTTP status and itemised body."""
    detail: dict[str, Any] = {"errors": error.messages}
    if isinstance(error, ValidationError):
        return HTTPException(status_code=422, detail=detail)
    if isinstance(error, DuplicateError):
        detail["matched"] = error.matched
        return HTTPException(status_code=409, detail=detail)
    if isinstance(error, (RegistrationClosedError, InvalidStatusError)):
        return HTTPException(status_code=400, detail=detail)
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=404, detail=detail)
    return HTTPException(status_code=500, detail=detail)


@contextmanager
def translate_errors(action: str):
    """Turn domain errors raised inside the block into HTTP errors."""
    try:
        yield
    except HTTPException:
        raise
    except RegistrationError as e:
        logger.info(f"Failed to {action}: {e}")
        raise to_http_exception(e) from e
    except AlertSettingNotFoundError as e:
        raise HTTPException(status_code=404, detail={"errors": [str(e)]}) from e
    except ValueError as e:
        raise HTTPException(status_code=400, detail={"errors": [str(e)]}) from e
    except Exception as e:
        logger.error(f"Failed to {action}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error") from e


class RegistrationAPI:
    """FastAPI endpoint handlers for registration operations."""

    def __init__(self, dispatcher: RegistrationDispatcher):
        self.dispatcher = dispatcher
        self.guard = DuplicateGuard(dispatcher.store)

    async def get_registration_options(self, tournament_id: str) -> dict[str, Any]:
        with translate_errors("load registration options"):
            tournament = self.dispatcher.get_tournament(tournament_id)
            return self.dispatcher.registration_options(tournament)

    async def submit_registration(
        self,
        tournament_id: str,
        role: str | None,
        payload: dict[str, Any],
        photo: ProfilePhoto | None = None,
    ) -> dict[str, Any]:
        with translate_errors("submit registration"):
            intent = RegistrationIntent(
                tournament_id=tournament_id, role=role, payload=payload
            )
            result = await self.dispatcher.submit(intent, photo)
            return {"success": True, **result.model_dump(mode="json")}

    async def check_duplicate(
        self, tournament_id: str, name: str, phone: str, email: str
    ) -> dict[str, Any]:
        with translate_errors("check duplicate registration"):
            self.dispatcher.get_tournament(tournament_id)
            result = self.guard.check_duplicate(tournament_id, name, phone, email)
            return result.model_dump()

    async def init_roster(self, tournament_id: str) -> dict[str, Any]:
        with translate_errors("initialise roster"):
            tournament = self.dispatcher.get_tournament(tournament_id)
            return roster_ops.init_roster(tournament).model_dump(mode="json")

    async def sync_captain(self, roster: Roster, field: str, value: Any) -> dict[str, Any]:
        with translate_errors("update captain"):
            return roster_ops.sync_captain(roster, field, value).model_dump(mode="json")

    async def update_slot(
        self, roster: Roster, index: int, field: str, value: Any
    ) -> dict[str, Any]:
        with translate_errors("update roster slot"):
            return roster_ops.update_slot(roster, index, field, value).model_dump(
                mode="json"
            )

    async def add_substitute(self, roster: Roster) -> dict[str, Any]:
        with translate_errors("add substitute"):
            return roster_ops.add_substitute(roster).model_dump(mode="json")

    async def remove_slot(self, roster: Roster, index: int) -> dict[str, Any]:
        with translate_errors("remove roster slot"):
            return roster_ops.remove_slot(roster, index).model_dump(mode="json")

    async def validate_roster(self, roster: Roster) -> dict[str, Any]:
        with translate_errors("validate roster"):
            errors = roster_ops.validate_roster(roster)
            return {"valid": not errors, "errors": errors}

    async def update_auction_status(
        self,
        tournament_id: str,
        player_id: str,
        status: AuctionStatus,
        sold_price: int | None = None,
        team_owner_id: str | None = None,
    ) -> dict[str, Any]:
        with translate_errors("update auction status"):
            player, report = await self.dispatcher.update_auction_status(
                tournament_id, player_id, status, sold_price, team_owner_id
            )
            return {
                "success": True,
                "player": player.model_dump(mode="json"),
                "notifications": report.model_dump(mode="json"),
            }

    async def list_tournaments(self) -> dict[str, Any]:
        with translate_errors("list tournaments"):
            return {"tournaments": self.dispatcher.list_tournaments()}

    async def update_team_registration_status(
        self,
        tournament_id: str,
        registration_id: str,
        status: RegistrationStatus,
        reviewed_by: str | None = None,
        rejection_reason: str | None = None,
    ) -> dict[str, Any]:
        with translate_errors("review team registration"):
            team, report = await self.dispatcher.update_team_registration_status(
                tournament_id, registration_id, status, reviewed_by, rejection_reason
            )
            action = "approved" if status is RegistrationStatus.APPROVED else "rejected"
            return {
                "success": True,
                "message": f"Registration {action} successfully",
                "registration": team.model_dump(mode="json"),
                "notifications": report.model_dump(mode="json"),
            }

    async def verify_team_owner(
        self, tournament_id: str, owner_id: str, verified: bool
    ) -> dict[str, Any]:
        with translate_errors("review team owner"):
            owner, report = await self.dispatcher.verify_team_owner(
                tournament_id, owner_id, verified
            )
            return {
                "success": True,
                "message": f"Team owner {'verified' if verified else 'rejected'} successfully",
                "owner": owner.model_dump(mode="json"),
                "notifications": report.model_dump(mode="json"),
            }

    async def notify_auction_completion(self, tournament_id: str) -> dict[str, Any]:
        with translate_errors("send auction completion notifications"):
            report = await self.dispatcher.notify_auction_completion(tournament_id)
            return {
                "success": report.ok,
                "message": (
                    f"{report.sent} emails sent, {report.failed} failed, "
                    f"{report.skipped + report.testing_mode} skipped"
                ),
                "notifications": report.model_dump(mode="json"),
            }


class AlertSettingsAPI:
    """FastAPI endpoint handlers for email alert administration."""

    def __init__(
        self,
        admin: AlertSettingsAdmin,
        gate: NotificationGate,
        activity_reader: Callable[[int], list[dict[str, Any]]] | None = None,
    ):
        self.admin = admin
        self.gate = gate
        self.activity_reader = activity_reader

    async def list_settings(self) -> dict[str, Any]:
        with translate_errors("list email alert settings"):
            settings = self.admin.list_settings()
            return {
                "success": True,
                "alertSettings": [s.model_dump(mode="json") for s in settings],
            }

    async def initialize_defaults(self, modified_by: str | None = None) -> dict[str, Any]:
        with translate_errors("initialise email alert settings"):
            created = self.admin.initialize_defaults(modified_by)
            return {
                "success": True,
                "created": created,
                "message": (
                    f"Created {created} default alert settings"
                    if created
                    else "Alert settings already exist"
                ),
            }

    async def update_setting(
        self,
        alert_type: str,
        update: AlertSettingUpdate,
        modified_by: str | None = None,
    ) -> dict[str, Any]:
        with translate_errors("update email alert setting"):
            setting = self.admin.update_setting(alert_type, update, modified_by)
            return {
                "success": True,
                "alertSetting": setting.model_dump(mode="json"),
                "message": f'Alert setting for "{setting.alert_name}" updated successfully',
            }

    async def bulk_action(
        self,
        action: str,
        alert_types: list[str] | None = None,
        modified_by: str | None = None,
    ) -> dict[str, Any]:
        with translate_errors("apply bulk email alert action"):
            try:
                bulk = BulkAction(action)
            except ValueError as e:
                raise ValueError("Invalid action specified") from e
            message = self.admin.bulk(bulk, alert_types, modified_by)
            return {"success": True, "message": message}

    async def preview(self, alert_type: str) -> dict[str, Any]:
        with translate_errors("preview email alert decision"):
            return {"alert_type": alert_type, "decisions": self.gate.preview(alert_type)}

    async def list_activity(self, limit: int = 100) -> dict[str, Any]:
        """Most recent gated email decisions, newest first."""
        with translate_errors("list email activity"):
            if self.activity_reader is None:
                raise NotFoundError("Email activity is not stored in this deployment")
            return {"success": True, "activity": self.activity_reader(limit)}
