"""
skillbridge/routes/opportunities.py
Opportunity board with per-user lock state
"""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from skillbridge.database import get_db
from skillbridge.routes.deps import get_profile_store
from skillbridge.schemas.progression import OpportunityItem
from skillbridge.security.auth import get_current_user_id
from skillbridge.services import progression_service
from skillbridge.services.profile_store import ProfileStore

router = APIRouter(prefix="/opportunities", tags=["Opportunities"])


@router.get("", response_model=List[OpportunityItem])
async def list_opportunities(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    store: ProfileStore = Depends(get_profile_store),
):
    return await progression_service.list_opportunities(db, store, user_id)


@router.get("/{listing_id}", response_model=OpportunityItem)
async def get_opportunity(
    listing_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    store: ProfileStore = Depends(get_profile_store),
):
    return await progression_service.get_opportunity(db, store, user_id, listing_id)
