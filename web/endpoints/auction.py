"""Auction result endpoints."""

from typing import Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from registration.api import RegistrationAPI
from registration.models import AuctionStatus
from web.dependencies import get_registration_api

router = APIRouter(prefix="/api")


class AuctionStatusUpdate(BaseModel):
    status: AuctionStatus
    sold_price: int | None = Field(default=None, ge=0)
    team_owner_id: str | None = None


@router.put("/tournaments/{tournament_id}/auction/players/{player_id}")
async def update_auction_status(
    tournament_id: str,
    player_id: str,
    body: AuctionStatusUpdate,
    api: RegistrationAPI = Depends(get_registration_api),
):
    """Approve, reject, sell or mark a pool player unsold, then email the player."""
    return await api.update_auction_status(
        tournament_id, player_id, body.status, body.sold_price, body.team_owner_id
    )


@router.post("/tournaments/{tournament_id}/auction/notifications")
async def notify_auction_completion(
    tournament_id: str, api: RegistrationAPI = Depends(get_registration_api)
):
    """Email squads to owners and results to every pool player."""
    return await api.notify_auction_completion(tournament_id)


class OwnerReview(BaseModel):
    action: Literal["verify", "reject"]


@router.put("/tournaments/{tournament_id}/team-owners/{owner_id}/verification")
async def review_team_owner(
    tournament_id: str,
    owner_id: str,
    review: OwnerReview,
    api: RegistrationAPI = Depends(get_registration_api),
):
    """Verify an owner and email their auction link, or reject them."""
    return await api.verify_team_owner(tournament_id, owner_id, review.action == "verify")
