"""Lazily built service graph shared by the endpoint routers.

Each getter is a FastAPI dependency; tests replace them through
``app.dependency_overrides``.
"""

import logging
from pathlib import Path

from config.settings import AppConfig, get_default_config
from notifications.alert_settings import AlertSettingsAdmin, CachedAlertSettingsProvider
from notifications.email_service import get_email_service
from notifications.gate import DatabaseActivityLog, FailOpenPolicy, LoggingActivityLog, NotificationGate
from notifications.notifier import Notifier
from registration.api import AlertSettingsAPI, RegistrationAPI
from registration.database import RegistrationDatabaseManager
from registration.dispatcher import RegistrationDispatcher
from registration.notifications import RegistrationNotifier
from registration.uploads import LocalPhotoUploader

logger = logging.getLogger(__name__)

_config: AppConfig | None = None
_store: RegistrationDatabaseManager | None = None
_provider: CachedAlertSettingsProvider | None = None
_gate: NotificationGate | None = None
_registration_api: RegistrationAPI | None = None
_alert_settings_api: AlertSettingsAPI | None = None


def get_config() -> AppConfig:
    global _config
    if _config is None:
        _config = get_default_config()
    return _config


def get_store() -> RegistrationDatabaseManager:
    global _store
    if _store is None:
        _store = RegistrationDatabaseManager(get_config().database.path)
    return _store


def get_alert_provider() -> CachedAlertSettingsProvider:
    global _provider
    if _provider is None:
        store = get_store()
        _provider = CachedAlertSettingsProvider(
            store.list_alert_settings,
            ttl_seconds=get_config().notifications.alert_cache_ttl_seconds,
        )
    return _provider


def get_gate() -> NotificationGate:
    global _gate
    if _gate is None:
        settings = get_config().notifications
        activity_log = (
            DatabaseActivityLog(get_store())
            if settings.activity_log == "database"
            else LoggingActivityLog()
        )
        _gate = NotificationGate(
            get_alert_provider(),
            FailOpenPolicy(
                send_when_missing=settings.send_when_setting_missing,
                send_on_error=settings.send_on_settings_error,
            ),
            activity_log,
        )
    return _gate


def get_registration_api() -> RegistrationAPI:
    """Get or create the registration API instance."""
    global _registration_api
    if _registration_api is None:
        config = get_config()
        notifier = Notifier(
            get_gate(),
            get_email_service(),
            send_timeout=config.notifications.send_timeout_seconds,
            max_concurrency=config.notifications.max_concurrent_sends,
        )
        dispatcher = RegistrationDispatcher(
            get_store(),
            RegistrationNotifier(notifier, config.notifications.admin_recipients),
            config.registration,
            LocalPhotoUploader(Path(config.registration.photo_dir)),
        )
        _registration_api = RegistrationAPI(dispatcher)
        logger.info("Registration API initialized")
    return _registration_api


def get_alert_settings_api() -> AlertSettingsAPI:
    """Get or create the email alert settings API instance."""
    global _alert_settings_api
    if _alert_settings_api is None:
        admin = AlertSettingsAdmin(get_store(), get_alert_provider())
        _alert_settings_api = AlertSettingsAPI(
            admin, get_gate(), activity_reader=get_store().list_email_activity
        )
    return _alert_settings_api
