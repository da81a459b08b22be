"""
skillbridge/routes/roadmap.py
Roadmap: phase, readiness, credits, tasks and lesson completion
"""
import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from skillbridge.database import get_db
from skillbridge.routes.deps import get_profile_store
from skillbridge.schemas.progression import (
    LessonCompleteRequest,
    LessonCompletionResponse,
    RoadmapScoreRequest,
    RoadmapScoreResponse,
    RoadmapSummary,
    RoadmapTaskItem,
)
from skillbridge.security.auth import get_current_user_id
from skillbridge.services import progression_service
from skillbridge.services.profile_store import ProfileStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/roadmap", tags=["Roadmap"])


@router.get("", response_model=RoadmapSummary)
async def get_roadmap(
    user_id: str = Depends(get_current_user_id),
    store: ProfileStore = Depends(get_profile_store),
):
    """Current phase, readiness score and credit balances."""
    return await progression_service.get_roadmap(store, user_id)


@router.get("/tasks", response_model=List[RoadmapTaskItem])
async def get_tasks(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    store: ProfileStore = Depends(get_profile_store),
):
    """Roadmap tasks with locked / lockedReason applied for this user."""
    return await progression_service.get_tasks(db, store, user_id)


@router.post("/lessons/complete", response_model=LessonCompletionResponse)
async def complete_lesson(
    request: LessonCompleteRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    store: ProfileStore = Depends(get_profile_store),
):
    """
    Complete a roadmap task.

    Completing the same lesson again awards no XP but keeps the streak alive.
    """
    return await progression_service.submit_lesson_completion(db, store, user_id, request.lesson_id)


@router.get("/portfolio")
async def get_portfolio(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    store: ProfileStore = Depends(get_profile_store),
):
    return await progression_service.get_portfolio(db, store, user_id)


@router.post("/score", response_model=RoadmapScoreResponse)
async def submit_score(
    request: RoadmapScoreRequest,
    user_id: str = Depends(get_current_user_id),
    store: ProfileStore = Depends(get_profile_store),
):
    """Onboarding self-assessment; sets the starting readiness."""
    return await progression_service.submit_readiness_score(store, user_id, request.score, request.phase)
