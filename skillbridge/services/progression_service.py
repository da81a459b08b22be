"""
skillbridge/services/progression_service.py
Roadmap, task, simulation and opportunity operations

Glue between the routes and the pure progression engine:
load from the profile store, run the engine inside the store's
serialized update, and project the result for the client.
"""
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from skillbridge.errors import ErrorCode
from skillbridge.exceptions import InvalidInputError
from skillbridge.orm.simulation_attempt import SimulationAttempt
from skillbridge.services import catalog_service, community_service
from skillbridge.services.grader import Grader
from skillbridge.services.profile_store import ProfileStore
from skillbridge.services.progression_engine import (
    GradedSimulation,
    ProgressState,
    apply_lesson_completion,
    apply_readiness_assessment,
    apply_simulation_result,
    evaluate_eligibility,
    parse_phase,
    roadmap_summary,
)

logger = logging.getLogger(__name__)


def utc_today() -> date:
    return datetime.utcnow().date()


def _lock_fields(state: ProgressState, min_readiness_score: int, min_phase: str) -> Dict[str, Any]:
    eligibility = evaluate_eligibility(state, min_readiness_score, min_phase)
    return {
        "locked": not eligibility.eligible,
        "lockedReason": eligibility.reason,
    }


# ================= READS =================

async def get_roadmap(store: ProfileStore, user_id: str) -> Dict[str, Any]:
    state = await store.get(user_id)
    return roadmap_summary(state)


async def get_tasks(db: AsyncSession, store: ProfileStore, user_id: str) -> List[Dict[str, Any]]:
    """Roadmap tasks with eligibility already applied."""
    state = await store.get(user_id)
    tasks = await catalog_service.list_tasks(db)

    return [
        {
            "id": task.id,
            "title": task.title,
            "phase": task.phase,
            # XP awarded on completion, under the mobile client's field name
            "rewardCredits": task.xp_reward,
            "minReadinessScore": task.min_readiness_score,
            "minPhase": task.min_phase,
            "completed": task.id in state.completed_lessons,
            **_lock_fields(state, task.min_readiness_score, task.min_phase),
        }
        for task in tasks
    ]


def _listing_item(state: ProgressState, listing) -> Dict[str, Any]:
    return {
        "id": listing.id,
        "title": listing.title,
        "type": listing.type,
        "payout": listing.payout,
        "minScore": listing.min_readiness_score,
        "minPhase": listing.min_phase,
        **_lock_fields(state, listing.min_readiness_score, listing.min_phase),
    }


async def list_opportunities(db: AsyncSession, store: ProfileStore, user_id: str) -> List[Dict[str, Any]]:
    """Opportunity board, each listing annotated with locked / lockedReason."""
    state = await store.get(user_id)
    listings = await catalog_service.list_opportunities(db)
    return [_listing_item(state, listing) for listing in listings]


async def get_opportunity(db: AsyncSession, store: ProfileStore, user_id: str, listing_id: str) -> Dict[str, Any]:
    state = await store.get(user_id)
    listing = await catalog_service.get_opportunity(db, listing_id)
    return _listing_item(state, listing)


async def get_portfolio(db: AsyncSession, store: ProfileStore, user_id: str) -> Dict[str, Any]:
    state = await store.get(user_id)
    result = await db.execute(
        select(SimulationAttempt)
        .where(SimulationAttempt.user_id == user_id)
        .order_by(SimulationAttempt.created_at.desc(), SimulationAttempt.id.desc())
    )
    attempts = result.scalars().all()

    return {
        "totalXp": state.total_xp,
        "credits": state.credits,
        "skillCredits": state.skill_credits,
        "readinessScore": state.readiness_score,
        "currentPhase": state.current_phase.value,
        "completedLessons": sorted(state.completed_lessons),
        "simulations": [attempt.to_dict() for attempt in attempts],
        "skillSwaps": await community_service.user_skill_swaps(db, user_id),
        "problemPods": await community_service.user_problem_pods(db, user_id),
    }


async def get_leaderboard(store: ProfileStore, limit: int) -> List[Dict[str, Any]]:
    profiles = await store.top_by_xp(limit)
    return [
        {"rank": index, "uid": profile.user_id, "xp": profile.total_xp}
        for index, profile in enumerate(profiles, start=1)
    ]


# ================= WRITES =================

async def submit_lesson_completion(
    db: AsyncSession,
    store: ProfileStore,
    user_id: str,
    lesson_id: str,
    today: Optional[date] = None
) -> Dict[str, Any]:
    """
    Complete a roadmap task.

    Raises:
        NotFoundError: unknown lesson or profile
        InvalidInputError: the task is still locked for this user
    """
    task = await catalog_service.get_task(db, lesson_id)
    today = today or utc_today()

    def mutate(state: ProgressState) -> ProgressState:
        if task.id not in state.completed_lessons:
            eligibility = evaluate_eligibility(state, task.min_readiness_score, task.min_phase)
            if not eligibility.eligible:
                raise InvalidInputError(
                    f"Task '{task.title}' is locked. {eligibility.reason}",
                    code=ErrorCode.TASK_LOCKED,
                    details={"task_id": task.id},
                )
        return apply_lesson_completion(state, task.id, task.xp_reward, today)

    before, after = await store.update(user_id, mutate)
    xp_awarded = after.total_xp - before.total_xp

    logger.info(f"Lesson {task.id} completed by {user_id}: +{xp_awarded} XP, streak={after.current_streak}")

    return {
        "lessonId": task.id,
        "xpAwarded": xp_awarded,
        "phaseAdvanced": after.current_phase != before.current_phase,
        "roadmap": roadmap_summary(after),
    }


async def submit_simulation(
    store: ProfileStore,
    grader: Grader,
    user_id: str,
    prompt: str,
    response: str,
    phase: Optional[str] = None,
    topic_id: Optional[str] = None,
    topic_name: Optional[str] = None
) -> Dict[str, Any]:
    """
    Grade a simulation response and fold the score into the profile.

    Grading happens before the profile lock is taken; if it fails the
    profile is left untouched and ExternalServiceError propagates.
    """
    if not prompt or not prompt.strip():
        raise InvalidInputError("Simulation prompt cannot be empty")
    if not response or not response.strip():
        raise InvalidInputError("Simulation response cannot be empty")

    current = await store.get(user_id)
    attempt_phase = parse_phase(phase) if phase else current.current_phase

    grade = await grader.grade(prompt, response)
    logger.info(f"Simulation graded for {user_id}: score={grade.score}, grader={grade.source}")

    outcome = GradedSimulation(score=grade.score, phase=attempt_phase, topic_id=topic_id)
    staged: List[SimulationAttempt] = []

    def stage(after: ProgressState):
        record = SimulationAttempt(
            user_id=user_id,
            phase=attempt_phase.value,
            topic_id=topic_id,
            topic_name=topic_name,
            prompt=prompt,
            response=response,
            score=grade.score,
            feedback=grade.feedback,
            grader=grade.source,
        )
        staged[:] = [record]
        return staged

    before, after = await store.update(
        user_id,
        lambda state: apply_simulation_result(state, outcome),
        stage=stage,
    )

    return {
        "attemptId": str(staged[0].id) if staged and staged[0].id is not None else None,
        "score": grade.score,
        "feedback": grade.feedback,
        "grader": grade.source,
        "creditsAwarded": after.credits - before.credits,
        "phaseAdvanced": after.current_phase != before.current_phase,
        "roadmap": roadmap_summary(after),
    }


async def submit_readiness_score(
    store: ProfileStore,
    user_id: str,
    score: int,
    phase: Optional[str] = None
) -> Dict[str, Any]:
    """
    Record a self-assessed readiness score (onboarding quiz).

    Raises:
        InvalidInputError: score outside [0, 100] or unknown phase
        NotFoundError: no profile yet
    """
    before, after = await store.update(
        user_id,
        lambda state: apply_readiness_assessment(state, score, phase),
    )

    logger.info(f"Readiness assessment for {user_id}: score={score}, readiness={after.readiness_score}")

    return {
        "score": score,
        "phaseAdvanced": after.current_phase != before.current_phase,
        "roadmap": roadmap_summary(after),
    }
