"""System health and reference data endpoints."""

import logging

from fastapi import APIRouter

from registration.classifier import COMPETITION_LABELS, regime_for
from registration.models import CompetitionType

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


@router.get("/health")
async def health_check():
    """Health check endpoint to verify API is running."""
    return {"isAlive": True}


@router.get("/competition-types")
async def get_competition_types():
    """Get competition types with their display family and regime."""
    types = {}
    for competition in CompetitionType:
        label = next(
            (name for name, members in COMPETITION_LABELS.items() if competition in members),
            "Tournament",
        )
        types[competition.value] = {
            "label": label,
            "regime": regime_for(competition).value,
        }
    return {"competition_types": types}
