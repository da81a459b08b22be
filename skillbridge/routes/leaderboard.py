"""
skillbridge/routes/leaderboard.py
Top users by total XP
"""
from typing import List

from fastapi import APIRouter, Depends

from skillbridge.config import settings
from skillbridge.routes.deps import get_profile_store
from skillbridge.schemas.progression import LeaderboardEntry
from skillbridge.services import progression_service
from skillbridge.services.profile_store import ProfileStore

router = APIRouter(prefix="/leaderboard", tags=["Leaderboard"])


@router.get("", response_model=List[LeaderboardEntry])
async def get_leaderboard(store: ProfileStore = Depends(get_profile_store)):
    return await progression_service.get_leaderboard(store, settings.LEADERBOARD_LIMIT)
