"""Gated email notifications."""

from .alert_settings import (
    DEFAULT_ALERT_SETTINGS,
    AlertSettingsAdmin,
    AlertSettingsProvider,
    AlertType,
    CachedAlertSettingsProvider,
    EmailAlertSetting,
    RecipientClass,
    StaticAlertSettingsProvider,
)
from .delivery import DeliveryReport, EmailMessage
from .exceptions import NotificationError
from .gate import FailOpenPolicy, GateDecision, NotificationGate
from .notifier import Notifier

__all__ = [
    "DEFAULT_ALERT_SETTINGS",
    "AlertSettingsAdmin",
    "AlertSettingsProvider",
    "AlertType",
    "CachedAlertSettingsProvider",
    "DeliveryReport",
    "EmailAlertSetting",
    "EmailMessage",
    "FailOpenPolicy",
    "GateDecision",
    "NotificationError",
    "NotificationGate",
    "Notifier",
    "RecipientClass",
    "StaticAlertSettingsProvider",
]
