"""Per-send enablement decisions and the email activity audit trail."""

import logging
from enum import Enum
from typing import Any, Protocol

from pydantic import BaseModel, Field

from .alert_settings import AlertSettingsProvider, RecipientClass

logger = logging.getLogger(__name__)
activity_logger = logging.getLogger("notifications.activity")


class GateOutcome(Enum):
    """Which branch of the gate produced a decision."""

    SEND = "send"
    MISSING_DEFAULT = "missing_default"
    GLOBALLY_DISABLED = "globally_disabled"
    RECIPIENT_DISABLED = "recipient_disabled"
    TESTING_MODE = "testing_mode"
    ERROR_DEFAULT = "error_default"


class GateDecision(BaseModel):
    """Whether to send one alert to one recipient class, and why."""

    send: bool
    testing_mode: bool = False
    reason: str | None = None
    outcome: GateOutcome


class FailOpenPolicy(BaseModel):
    """What the gate does when it cannot read a setting.

    Both default to sending: a missing row or an unreadable settings store
    must not silence registration emails.
    """

    send_when_missing: bool = True
    send_on_error: bool = True


class EmailActivity(BaseModel):
    """Audit entry for one gated email decision."""

    alert_type: str
    recipient_class: str
    recipients: list[str] = Field(default_factory=list)
    subject: str
    sent: bool
    reason: str | None = None
    testing_mode: bool = False


class EmailActivityLog(Protocol):
    """Sink for email audit entries."""

    def record(self, entry: EmailActivity) -> None: ...


class EmailActivityStore(Protocol):
    def record_email_activity(self, entry: EmailActivity) -> None: ...


class LoggingActivityLog:
    """Writes audit entries to the ``notifications.activity`` logger."""

    def record(self, entry: EmailActivity) -> None:
        recipients = ", ".join(entry.recipients)
        if entry.testing_mode:
            activity_logger.info(
                f"[TESTING MODE] Would send {entry.alert_type} to "
                f"{entry.recipient_class} ({recipients}): {entry.subject}"
            )
        elif entry.sent:
            activity_logger.info(
                f"Sent {entry.alert_type} to {entry.recipient_class} "
                f"({recipients}): {entry.subject}"
            )
        else:
            activity_logger.info(
                f"Skipped {entry.alert_type} for {entry.recipient_class} "
                f"({recipients}): {entry.reason}"
            )


class DatabaseActivityLog(LoggingActivityLog):
    """Logs audit entries and stores them in the ``email_activity`` table."""

    def __init__(self, store: EmailActivityStore):
        self.store = store

    def record(self, entry: EmailActivity) -> None:
        super().record(entry)
        self.store.record_email_activity(entry)


class NotificationGate:
    """Decides per alert type and recipient class whether email goes out.

    Checks run in a fixed order: missing setting, global switch, recipient
    switch, testing mode. Missing settings and provider errors follow the
    :class:`FailOpenPolicy`.
    """

    def __init__(
        self,
        provider: AlertSettingsProvider,
        policy: FailOpenPolicy | None = None,
        activity_log: EmailActivityLog | None = None,
    ):
        self.provider = provider
        self.policy = policy or FailOpenPolicy()
        self.activity_log = activity_log or LoggingActivityLog()

    def should_send(
        self, alert_type: str, recipient_class: RecipientClass
    ) -> GateDecision:
        try:
            setting = self.provider.get_setting(alert_type)
        except Exception as e:
            logger.error(f"Error checking email alert settings for {alert_type}: {e}")
            return GateDecision(
                send=self.policy.send_on_error,
                reason="Error occurred while checking settings, defaulting to "
                + ("enabled" if self.policy.send_on_error else "disabled"),
                outcome=GateOutcome.ERROR_DEFAULT,
            )

        if setting is None:
            logger.warning(
                f"No email alert settings found for {alert_type}, "
                f"defaulting to {'enabled' if self.policy.send_when_missing else 'disabled'}"
            )
            return GateDecision(
                send=self.policy.send_when_missing,
                reason=f"No settings found for alert type '{alert_type}'",
                outcome=GateOutcome.MISSING_DEFAULT,
            )

        if not setting.is_enabled:
            return GateDecision(
                send=False,
                reason=f"Alert type '{setting.alert_name}' is globally disabled",
                outcome=GateOutcome.GLOBALLY_DISABLED,
            )

        if not setting.enabled_for(recipient_class):
            return GateDecision(
                send=False,
                reason=(
                    f"Alert type '{setting.alert_name}' is disabled for "
                    f"{recipient_class.value}"
                ),
                outcome=GateOutcome.RECIPIENT_DISABLED,
            )

        if setting.testing_mode:
            return GateDecision(
                send=False,
                testing_mode=True,
                reason=f"Testing mode is enabled for '{setting.alert_name}'",
                outcome=GateOutcome.TESTING_MODE,
            )

        return GateDecision(send=True, outcome=GateOutcome.SEND)

    def evaluate(
        self,
        alert_type: str,
        recipient_class: RecipientClass,
        recipients: list[str],
        subject: str,
    ) -> GateDecision:
        """Decide, and record the decision when nothing will be sent."""
        decision = self.should_send(alert_type, recipient_class)
        if not decision.send:
            self.record(
                alert_type,
                recipient_class,
                recipients,
                subject,
                sent=False,
                reason=decision.reason,
                testing_mode=decision.testing_mode,
            )
        return decision

    def record(
        self,
        alert_type: str,
        recipient_class: RecipientClass,
        recipients: list[str],
        subject: str,
        sent: bool,
        reason: str | None = None,
        testing_mode: bool = False,
    ) -> None:
        """Write an audit entry. Sink failures are logged, never raised."""
        entry = EmailActivity(
            alert_type=alert_type,
            recipient_class=recipient_class.value,
            recipients=list(recipients),
            subject=subject,
            sent=sent,
            reason=reason,
            testing_mode=testing_mode,
        )
        try:
            self.activity_log.record(entry)
        except Exception as e:
            logger.error(f"Failed to record email activity for {alert_type}: {e}")

    def preview(self, alert_type: str) -> dict[str, Any]:
        """Decision for every recipient class, for admin inspection."""
        return {
            recipient.value: self.should_send(alert_type, recipient).model_dump(mode="json")
            for recipient in RecipientClass
        }
