"""Email alert enablement matrix and the providers that serve it.

Each alert type has one :class:`EmailAlertSetting` row: a global switch,
one switch per recipient class, and a testing-mode flag that suppresses
delivery while still logging what would have been sent.
"""

import logging
import time
from datetime import datetime
from enum import Enum
from typing import Callable, Iterable, Protocol

from pydantic import BaseModel, Field

from .exceptions import AlertSettingNotFoundError

logger = logging.getLogger(__name__)


class RecipientClass(Enum):
    """Audience of an email."""

    PLAYERS = "players"
    ADMINS = "admins"
    TEAM_OWNERS = "teamOwners"


class AlertType:
    """Known alert type identifiers. Stored rows may carry others."""

    PLAYER_REGISTRATION = "player_registration"
    TEAM_REGISTRATION = "team_registration"
    TEAM_OWNER_REGISTRATION = "team_owner_registration"
    PLAYER_APPROVAL = "player_approval"
    PLAYER_REJECTION = "player_rejection"
    TEAM_APPROVAL = "team_approval"
    TEAM_REJECTION = "team_rejection"
    TEAM_OWNER_APPROVAL = "team_owner_approval"
    TEAM_OWNER_REJECTION = "team_owner_rejection"
    AUCTION_PLAYER_SOLD = "auction_player_sold"
    AUCTION_PLAYER_UNSOLD = "auction_player_unsold"
    PAYMENT_RECEIVED = "payment_received"
    PAYMENT_PENDING = "payment_pending"
    TOURNAMENT_REMINDER = "tournament_reminder"
    SYSTEM_ALERT = "system_alert"


class EmailAlertSetting(BaseModel):
    """Enablement row for one alert type."""

    alert_type: str
    alert_name: str
    description: str = ""
    is_enabled: bool = True
    enabled_for_players: bool = True
    enabled_for_admins: bool = True
    enabled_for_team_owners: bool = True
    testing_mode: bool = False
    last_modified_by: str | None = None
    updated_at: datetime | None = None

    def enabled_for(self, recipient: RecipientClass) -> bool:
        if recipient is RecipientClass.PLAYERS:
            return self.enabled_for_players
        if recipient is RecipientClass.ADMINS:
            return self.enabled_for_admins
        return self.enabled_for_team_owners


class AlertSettingUpdate(BaseModel):
    """Partial update of one alert setting. Unset fields are left alone."""

    alert_name: str | None = None
    description: str | None = None
    is_enabled: bool | None = None
    enabled_for_players: bool | None = None
    enabled_for_admins: bool | None = None
    enabled_for_team_owners: bool | None = None
    testing_mode: bool | None = None


class BulkAction(Enum):
    """Bulk operations over the alert matrix."""

    BULK_ENABLE = "bulk_enable"
    BULK_DISABLE = "bulk_disable"
    ENABLE_TESTING_MODE = "enable_testing_mode"
    DISABLE_TESTING_MODE = "disable_testing_mode"


def _default(
    alert_type: str,
    alert_name: str,
    description: str,
    players: bool,
    admins: bool,
    team_owners: bool,
) -> EmailAlertSetting:
    return EmailAlertSetting(
        alert_type=alert_type,
        alert_name=alert_name,
        description=description,
        enabled_for_players=players,
        enabled_for_admins=admins,
        enabled_for_team_owners=team_owners,
    )


DEFAULT_ALERT_SETTINGS: list[EmailAlertSetting] = [
    _default(AlertType.PLAYER_REGISTRATION, "Player Registration",
             "Triggered when a new player registers for a tournament", True, True, False),
    _default(AlertType.TEAM_REGISTRATION, "Team Registration",
             "Triggered when a new team registers for a tournament", True, True, False),
    _default(AlertType.PLAYER_APPROVAL, "Player Approval",
             "Triggered when a player registration is approved", True, False, False),
    _default(AlertType.PLAYER_REJECTION, "Player Rejection",
             "Triggered when a player registration is rejected", True, False, False),
    _default(AlertType.TEAM_APPROVAL, "Team Approval",
             "Triggered when a team registration is approved", True, False, False),
    _default(AlertType.TEAM_REJECTION, "Team Rejection",
             "Triggered when a team registration is rejected", True, False, False),
    _default(AlertType.TEAM_OWNER_REGISTRATION, "Team Owner Registration",
             "Triggered when a team owner registers for auction tournament", False, True, True),
    _default(AlertType.TEAM_OWNER_APPROVAL, "Team Owner Approval",
             "Triggered when a team owner registration is approved", False, False, True),
    _default(AlertType.TEAM_OWNER_REJECTION, "Team Owner Rejection",
             "Triggered when a team owner registration is rejected", False, False, True),
    _default(AlertType.AUCTION_PLAYER_SOLD, "Auction - Player Sold",
             "Triggered when a player is sold in auction", True, False, True),
    _default(AlertType.AUCTION_PLAYER_UNSOLD, "Auction - Player Unsold",
             "Triggered when a player goes unsold in auction", True, False, False),
    _default(AlertType.PAYMENT_RECEIVED, "Payment Received",
             "Triggered when team/player payment is received", True, True, True),
    _default(AlertType.PAYMENT_PENDING, "Payment Pending Reminder",
             "Triggered to remind about pending payments", True, True, True),
    _default(AlertType.TOURNAMENT_REMINDER, "Tournament Reminder",
             "Triggered to send tournament reminders", True, False, True),
    _default(AlertType.SYSTEM_ALERT, "System Alerts",
             "Important system notifications and announcements", False, True, False),
]


class AlertSettingsProvider(Protocol):
    """Source of alert settings consulted by the notification gate."""

    def get_setting(self, alert_type: str) -> EmailAlertSetting | None: ...


class AlertSettingsStore(Protocol):
    """Persistent alert settings table."""

    def list_alert_settings(self) -> list[EmailAlertSetting]: ...

    def get_alert_setting(self, alert_type: str) -> EmailAlertSetting | None: ...

    def save_alert_setting(self, setting: EmailAlertSetting) -> None: ...

    def update_alert_setting(
        self, alert_type: str, changes: dict, modified_by: str | None
    ) -> EmailAlertSetting | None: ...

    def set_alerts_enabled(
        self, alert_types: list[str], enabled: bool, modified_by: str | None
    ) -> int: ...

    def set_testing_mode(self, enabled: bool, modified_by: str | None) -> int: ...


class StaticAlertSettingsProvider:
    """Fixed in-memory settings, for tests and config-driven deployments."""

    def __init__(self, settings: Iterable[EmailAlertSetting] = ()):
        self._settings: dict[str, EmailAlertSetting] = {
            setting.alert_type: setting for setting in settings
        }

    def get_setting(self, alert_type: str) -> EmailAlertSetting | None:
        return self._settings.get(alert_type)

    def set(self, setting: EmailAlertSetting) -> None:
        self._settings[setting.alert_type] = setting

    def remove(self, alert_type: str) -> None:
        self._settings.pop(alert_type, None)


class CachedAlertSettingsProvider:
    """Serves settings from a loader, reloading after ``ttl_seconds``.

    Loader errors propagate to the caller so the gate can apply its
    error policy. A failed reload leaves the previous snapshot expired.
    """

    def __init__(
        self,
        loader: Callable[[], list[EmailAlertSetting]],
        ttl_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._loader = loader
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._settings: dict[str, EmailAlertSetting] | None = None
        self._loaded_at = 0.0

    @property
    def is_stale(self) -> bool:
        if self._settings is None:
            return True
        return self._clock() - self._loaded_at >= self.ttl_seconds

    def refresh(self) -> None:
        """Reload every setting from the loader now."""
        settings = self._loader()
        self._settings = {setting.alert_type: setting for setting in settings}
        self._loaded_at = self._clock()
        logger.debug(f"Loaded {len(self._settings)} email alert settings")

    def invalidate(self) -> None:
        """Drop the snapshot; the next lookup reloads."""
        self._settings = None

    def get_setting(self, alert_type: str) -> EmailAlertSetting | None:
        if self.is_stale:
            self.refresh()
        assert self._settings is not None
        return self._settings.get(alert_type)


class AlertSettingsAdmin:
    """Admin operations over the stored alert matrix.

    Every write invalidates the cached provider so the gate sees it on the
    next lookup.
    """

    def __init__(
        self,
        store: AlertSettingsStore,
        provider: CachedAlertSettingsProvider | None = None,
    ):
        self.store = store
        self.provider = provider

    def _invalidate(self) -> None:
        if self.provider is not None:
            self.provider.invalidate()

    def list_settings(self) -> list[EmailAlertSetting]:
        return sorted(self.store.list_alert_settings(), key=lambda s: s.alert_name)

    def initialize_defaults(self, modified_by: str | None = None) -> int:
        """Seed the default matrix when the table is empty. Returns rows added."""
        if self.store.list_alert_settings():
            return 0
        for default in DEFAULT_ALERT_SETTINGS:
            self.store.save_alert_setting(
                default.model_copy(
                    update={"last_modified_by": modified_by, "updated_at": datetime.now()}
                )
            )
        self._invalidate()
        logger.info(f"Created {len(DEFAULT_ALERT_SETTINGS)} default email alert settings")
        return len(DEFAULT_ALERT_SETTINGS)

    def update_setting(
        self,
        alert_type: str,
        update: AlertSettingUpdate,
        modified_by: str | None = None,
    ) -> EmailAlertSetting:
        changes = update.model_dump(exclude_none=True)
        if not changes:
            raise ValueError("No updates provided")

        updated = self.store.update_alert_setting(alert_type, changes, modified_by)
        if updated is None:
            raise AlertSettingNotFoundError(alert_type)

        self._invalidate()
        logger.info(f"Email alert setting {alert_type} updated: {changes}")
        return updated

    def bulk(
        self,
        action: BulkAction,
        alert_types: list[str] | None = None,
        modified_by: str | None = None,
    ) -> str:
        """Apply a bulk action and return a summary message."""
        if action in (BulkAction.BULK_ENABLE, BulkAction.BULK_DISABLE):
            if alert_types is None:
                raise ValueError("Alert types array is required for bulk operations")
            enabled = action is BulkAction.BULK_ENABLE
            self.store.set_alerts_enabled(alert_types, enabled, modified_by)
            self._invalidate()
            state = "enabled" if enabled else "disabled"
            return f"{len(alert_types)} alert settings {state} successfully"

        enabled = action is BulkAction.ENABLE_TESTING_MODE
        self.store.set_testing_mode(enabled, modified_by)
        self._invalidate()
        state = "enabled" if enabled else "disabled"
        logger.warning(f"Testing mode {state} for all email alerts")
        return f"Testing mode {state} for all email alerts"
