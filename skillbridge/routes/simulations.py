"""
skillbridge/routes/simulations.py
Simulation scenarios and graded submissions
"""
import logging

from fastapi import APIRouter, Depends, Request

from skillbridge.config import settings
from skillbridge.routes.deps import get_profile_store, get_simulation_grader
from skillbridge.schemas.progression import (
    SimulationGenerateRequest,
    SimulationResultResponse,
    SimulationSubmitRequest,
)
from skillbridge.security.auth import get_current_user_id
from skillbridge.security.rate_limit import limiter
from skillbridge.services import progression_service
from skillbridge.services.grader import Grader
from skillbridge.services.profile_store import ProfileStore
from skillbridge.services.simulation_service import generate_simulation

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/simulations", tags=["Simulations"])


@router.post("/generate")
async def generate(
    body: SimulationGenerateRequest,
    user_id: str = Depends(get_current_user_id),
    store: ProfileStore = Depends(get_profile_store),
):
    """Scenario for the requested phase, or the user's current phase."""
    phase = body.phase
    if not phase:
        state = await store.get(user_id)
        phase = state.current_phase
    return {"simulation": generate_simulation(phase, body.topic_name)}


@router.post("/submit", response_model=SimulationResultResponse)
@limiter.limit(settings.SIMULATION_RATE_LIMIT)
async def submit(
    request: Request,
    body: SimulationSubmitRequest,
    user_id: str = Depends(get_current_user_id),
    store: ProfileStore = Depends(get_profile_store),
    grader: Grader = Depends(get_simulation_grader),
):
    """
    Grade a response and update readiness and credits.

    503 when the configured grader fails; the profile is unchanged then.
    """
    return await progression_service.submit_simulation(
        store,
        grader,
        user_id,
        prompt=body.prompt,
        response=body.response,
        phase=body.phase,
        topic_id=body.topic_id,
        topic_name=body.topic_name,
    )
