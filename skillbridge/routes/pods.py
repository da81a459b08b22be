"""
skillbridge/routes/pods.py
Problem pods: open questions the community replies to
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from skillbridge.database import get_db
from skillbridge.routes.deps import get_profile_store
from skillbridge.schemas.progression import PodRespondRequest, ProblemPodCreateRequest
from skillbridge.security.auth import get_current_user_id
from skillbridge.services import community_service
from skillbridge.services.profile_store import ProfileStore

router = APIRouter(prefix="/pods", tags=["Problem Pods"])


@router.get("")
async def list_problem_pods(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await community_service.list_problem_pods(db)


@router.post("")
async def create_problem_pod(
    body: ProblemPodCreateRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    store: ProfileStore = Depends(get_profile_store),
):
    return await community_service.create_problem_pod(
        db, store, user_id, body.title, body.description, body.category
    )


@router.post("/{pod_id}/respond")
async def respond_to_pod(
    pod_id: str,
    body: PodRespondRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    store: ProfileStore = Depends(get_profile_store),
):
    return await community_service.respond_to_pod(db, store, user_id, pod_id, body.message)
