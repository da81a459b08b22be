"""
skillbridge/routes/skillswap.py
Skill swaps: post an offer, browse open offers, accept one
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from skillbridge.database import get_db
from skillbridge.routes.deps import get_profile_store
from skillbridge.schemas.progression import SkillSwapCreateRequest
from skillbridge.security.auth import get_current_user_id
from skillbridge.services import community_service
from skillbridge.services.profile_store import ProfileStore

router = APIRouter(prefix="/skillswap", tags=["Skill Swap"])


@router.get("")
async def list_skill_swaps(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await community_service.list_skill_swaps(db, user_id)


@router.post("")
async def create_skill_swap(
    body: SkillSwapCreateRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    store: ProfileStore = Depends(get_profile_store),
):
    return await community_service.create_skill_swap(
        db, store, user_id, body.offer_skill, body.want_skill, body.note
    )


@router.post("/{swap_id}/accept")
async def accept_skill_swap(
    swap_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    store: ProfileStore = Depends(get_profile_store),
):
    """Accept someone else's open swap. Both sides earn skill credits."""
    return await community_service.accept_skill_swap(db, store, user_id, swap_id)
