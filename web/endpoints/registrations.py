"""Registration endpoints."""

import base64
import binascii
import logging
from typing import Any, Literal

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from registration.api import RegistrationAPI
from registration.models import ProfilePhoto, RegistrationStatus
from web.dependencies import get_registration_api

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


class PhotoUpload(BaseModel):
    """Profile photo sent inline as base64."""

    filename: str
    content_type: str
    content_base64: str

    def to_photo(self) -> ProfilePhoto:
        try:
            content = base64.b64decode(self.content_base64, validate=True)
        except (binascii.Error, ValueError) as e:
            raise HTTPException(
                status_code=422, detail={"errors": ["Profile photo is not valid base64"]}
            ) from e
        return ProfilePhoto(
            filename=self.filename, content_type=self.content_type, content=content
        )


class RegistrationSubmission(BaseModel):
    """Body of a registration submission."""

    role: str | None = Field(default=None, description="PLAYER, TEAM or OWNER")
    payload: dict[str, Any] = Field(default_factory=dict)
    photo: PhotoUpload | None = None


@router.get("/tournaments/{tournament_id}/registration")
async def get_registration_options(
    tournament_id: str, api: RegistrationAPI = Depends(get_registration_api)
):
    """Regime, roles and limits for a tournament's registration form."""
    return await api.get_registration_options(tournament_id)


@router.post("/tournaments/{tournament_id}/registrations", status_code=201)
async def submit_registration(
    tournament_id: str,
    submission: RegistrationSubmission,
    api: RegistrationAPI = Depends(get_registration_api),
):
    """Register a team, auction player or team owner."""
    photo = submission.photo.to_photo() if submission.photo else None
    return await api.submit_registration(
        tournament_id, submission.role, submission.payload, photo
    )


@router.get("/tournaments/{tournament_id}/registrations/duplicate-check")
async def check_duplicate(
    tournament_id: str,
    name: str,
    phone: str,
    email: str = "",
    api: RegistrationAPI = Depends(get_registration_api),
):
    """Whether an auction player with this identity is already registered."""
    return await api.check_duplicate(tournament_id, name, phone, email)


class TeamReview(BaseModel):
    """Admin decision on a pending team registration."""

    action: Literal["approve", "reject"]
    reviewed_by: str | None = None
    rejection_reason: str | None = None


@router.get("/tournaments")
async def list_tournaments(api: RegistrationAPI = Depends(get_registration_api)):
    """Every tournament with its registration regime."""
    return await api.list_tournaments()


@router.put("/tournaments/{tournament_id}/registrations/teams/{registration_id}/status")
async def review_team_registration(
    tournament_id: str,
    registration_id: str,
    review: TeamReview,
    api: RegistrationAPI = Depends(get_registration_api),
):
    """Approve or reject a pending team, then email the captain."""
    status = (
        RegistrationStatus.APPROVED
        if review.action == "approve"
        else RegistrationStatus.REJECTED
    )
    return await api.update_team_registration_status(
        tournament_id,
        registration_id,
        status,
        review.reviewed_by,
        review.rejection_reason,
    )
