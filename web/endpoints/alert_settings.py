"""Admin endpoints for the email alert matrix."""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from notifications.alert_settings import AlertSettingUpdate
from registration.api import AlertSettingsAPI
from web.dependencies import get_alert_settings_api

router = APIRouter(prefix="/api/admin/email-alert-settings")


class SettingUpdateBody(BaseModel):
    alert_type: str
    updates: AlertSettingUpdate
    modified_by: str | None = None


class BulkActionBody(BaseModel):
    action: str = Field(..., description="bulk_enable, bulk_disable, enable_testing_mode or disable_testing_mode")
    alert_types: list[str] | None = None
    modified_by: str | None = None


class InitializeBody(BaseModel):
    modified_by: str | None = None


@router.get("")
async def list_alert_settings(api: AlertSettingsAPI = Depends(get_alert_settings_api)):
    return await api.list_settings()


@router.put("")
async def update_alert_setting(
    body: SettingUpdateBody, api: AlertSettingsAPI = Depends(get_alert_settings_api)
):
    return await api.update_setting(body.alert_type, body.updates, body.modified_by)


@router.post("")
async def bulk_alert_action(
    body: BulkActionBody, api: AlertSettingsAPI = Depends(get_alert_settings_api)
):
    return await api.bulk_action(body.action, body.alert_types, body.modified_by)


@router.post("/initialize")
async def initialize_alert_settings(
    body: InitializeBody | None = None,
    api: AlertSettingsAPI = Depends(get_alert_settings_api),
):
    """Seed the default matrix when no settings exist."""
    return await api.initialize_defaults(body.modified_by if body else None)


@router.get("/{alert_type}/preview")
async def preview_alert(
    alert_type: str, api: AlertSettingsAPI = Depends(get_alert_settings_api)
):
    """Gate decision for each recipient class, without sending anything."""
    return await api.preview(alert_type)


@router.get("/activity")
async def list_email_activity(
    limit: int = Query(default=100, ge=1, le=1000),
    api: AlertSettingsAPI = Depends(get_alert_settings_api),
):
    """Recent gated email decisions, including testing-mode skips."""
    return await api.list_activity(limit)
