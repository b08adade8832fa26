"""Team roster editing endpoints.

The roster lives with the client until submission; every call takes the
current roster and returns the updated one.
"""

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from registration.api import RegistrationAPI
from registration.models import Roster
from web.dependencies import get_registration_api

router = APIRouter(prefix="/api")


class CaptainUpdate(BaseModel):
    roster: Roster
    field: str
    value: Any = None


class SlotUpdate(BaseModel):
    roster: Roster
    index: int
    field: str
    value: Any = None


class SlotRemoval(BaseModel):
    roster: Roster
    index: int


class RosterBody(BaseModel):
    roster: Roster


@router.post("/tournaments/{tournament_id}/roster")
async def init_roster(
    tournament_id: str, api: RegistrationAPI = Depends(get_registration_api)
):
    """Empty roster sized for the tournament."""
    return await api.init_roster(tournament_id)


@router.post("/roster/captain")
async def sync_captain(
    body: CaptainUpdate, api: RegistrationAPI = Depends(get_registration_api)
):
    return await api.sync_captain(body.roster, body.field, body.value)


@router.post("/roster/slot")
async def update_slot(
    body: SlotUpdate, api: RegistrationAPI = Depends(get_registration_api)
):
    return await api.update_slot(body.roster, body.index, body.field, body.value)


@router.post("/roster/substitutes")
async def add_substitute(
    body: RosterBody, api: RegistrationAPI = Depends(get_registration_api)
):
    return await api.add_substitute(body.roster)


@router.post("/roster/substitutes/remove")
async def remove_slot(
    body: SlotRemoval, api: RegistrationAPI = Depends(get_registration_api)
):
    return await api.remove_slot(body.roster, body.index)


@router.post("/roster/validate")
async def validate_roster(
    body: RosterBody, api: RegistrationAPI = Depends(get_registration_api)
):
    return await api.validate_roster(body.roster)
