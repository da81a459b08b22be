"""
skillbridge/routes/user_profile.py
The authenticated user's profile (onboarding + read)
"""
import logging

from fastapi import APIRouter, Depends

from skillbridge.routes.deps import get_profile_store
from skillbridge.schemas.progression import UserProfileCreateRequest
from skillbridge.security.auth import get_current_user_id
from skillbridge.services.profile_store import ProfileStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user-profile", tags=["User Profile"])


@router.get("")
async def get_user_profile(
    user_id: str = Depends(get_current_user_id),
    store: ProfileStore = Depends(get_profile_store),
):
    profile = await store.get_profile(user_id)
    return profile.to_dict()


@router.post("")
async def create_user_profile(
    body: UserProfileCreateRequest,
    user_id: str = Depends(get_current_user_id),
    store: ProfileStore = Depends(get_profile_store),
):
    """Create the profile on first login; later calls only update name and interests."""
    profile = await store.create(user_id, display_name=body.name, interests=body.interests)
    return profile.to_dict()
