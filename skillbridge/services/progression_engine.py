"""
skillbridge/services/progression_engine.py
Progression & Unlock Engine

Pure computation over a user's accumulated signals. No I/O, no shared
mutable state: every operation takes a ProgressState and returns a new one.
Persistence and per-user serialization belong to the profile store.

PHASES (ordered, never regress):
    life_skills -> money_skills -> practice -> earn

PHASE ADVANCE RULE:
    Advance exactly one step when
        readiness_score >= ADVANCE_THRESHOLDS[phase]
        AND phase_activity_count >= MIN_PHASE_ACTIVITIES[phase]
    phase_activity_count counts new lessons + simulations in the current
    phase and resets on advance, so multi-phase jumps happen one event at
    a time.

READINESS FORMULA:
    Exponentially decayed mean of the last READINESS_WINDOW scores.
    weight(k) = 0.5 ** (k / READINESS_HALF_LIFE), k = 0 for the newest score.
    readiness = clamp(round_half_up(sum(w * s) / sum(w)), 0, 100)
    A single score yields itself; no scores yields 0.

CREDITS:
    credits       += score // CREDIT_DIVISOR
    skill_credits += score // SKILL_CREDIT_DIVISOR   (topic simulations only)
    skill_credits += SKILL_SWAP_CREDITS              (each side of an accepted swap)

ASSESSMENT:
    A self-assessment (onboarding quiz) adds one readiness sample.
    It awards no credits and does not count as phase activity.

STREAK:
    last activity yesterday -> +1
    last activity today     -> unchanged
    anything else           -> reset to 1
"""

import math
from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Optional, Tuple, Union

from skillbridge.exceptions import InvalidInputError


class Phase(str, Enum):
    """Curriculum phases, in progression order"""
    LIFE_SKILLS = "life_skills"
    MONEY_SKILLS = "money_skills"
    PRACTICE = "practice"
    EARN = "earn"


PHASE_ORDER: Tuple[Phase, ...] = (
    Phase.LIFE_SKILLS,
    Phase.MONEY_SKILLS,
    Phase.PRACTICE,
    Phase.EARN,
)

ADVANCE_THRESHOLDS: Dict[Phase, int] = {
    Phase.LIFE_SKILLS: 40,
    Phase.MONEY_SKILLS: 60,
    Phase.PRACTICE: 80,
}

MIN_PHASE_ACTIVITIES: Dict[Phase, int] = {
    Phase.LIFE_SKILLS: 1,
    Phase.MONEY_SKILLS: 2,
    Phase.PRACTICE: 3,
}

READINESS_WINDOW = 10
READINESS_HALF_LIFE = 3.0

MIN_SCORE = 0
MAX_SCORE = 100

CREDIT_DIVISOR = 10
SKILL_CREDIT_DIVISOR = 20
SKILL_SWAP_CREDITS = 5


@dataclass(frozen=True)
class ProgressState:
    """Snapshot of one user's progression. `version` is the store's CAS token."""
    user_id: str
    total_xp: int = 0
    current_streak: int = 0
    last_activity_date: Optional[date] = None
    completed_lessons: FrozenSet[str] = field(default_factory=frozenset)
    current_phase: Phase = Phase.LIFE_SKILLS
    readiness_score: int = 0
    credits: int = 0
    skill_credits: int = 0
    recent_scores: Tuple[int, ...] = ()
    phase_activity_count: int = 0
    version: int = 0


@dataclass(frozen=True)
class GradedSimulation:
    """A graded simulation attempt, as far as the engine cares."""
    score: int
    phase: Union[Phase, str]
    topic_id: Optional[str] = None


@dataclass(frozen=True)
class Eligibility:
    eligible: bool
    reason: Optional[str] = None


# ================= PHASES =================

def parse_phase(value: Union[Phase, str]) -> Phase:
    """Resolve a phase name, rejecting anything outside PHASE_ORDER."""
    if isinstance(value, Phase):
        return value
    try:
        return Phase(str(value).strip().lower())
    except ValueError:
        raise InvalidInputError(
            f"Unknown phase '{value}'",
            details={"phase": value, "allowed": [p.value for p in PHASE_ORDER]},
        )


def phase_rank(phase: Union[Phase, str]) -> int:
    return PHASE_ORDER.index(parse_phase(phase))


def next_phase(phase: Phase) -> Optional[Phase]:
    rank = phase_rank(phase)
    if rank + 1 >= len(PHASE_ORDER):
        return None
    return PHASE_ORDER[rank + 1]


def phase_label(phase: Union[Phase, str]) -> str:
    return parse_phase(phase).value.replace("_", " ").title()


# ================= READINESS =================

def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def clamp_score(value: int) -> int:
    return max(MIN_SCORE, min(MAX_SCORE, value))


def compute_readiness(scores: Iterable[int]) -> int:
    """
    Exponentially decayed mean of recent scores (oldest first, newest last).

    Only the last READINESS_WINDOW scores are considered.
    """
    window = list(scores)[-READINESS_WINDOW:]
    if not window:
        return 0

    weighted_sum = 0.0
    weight_total = 0.0
    for age, score in enumerate(reversed(window)):
        weight = 0.5 ** (age / READINESS_HALF_LIFE)
        weighted_sum += weight * score
        weight_total += weight

    return clamp_score(_round_half_up(weighted_sum / weight_total))


# ================= STREAK =================

def next_streak(current_streak: int, last_activity: Optional[date], today: date) -> int:
    if last_activity == today:
        return current_streak
    if last_activity == today - timedelta(days=1):
        return current_streak + 1
    return 1


# ================= VALIDATION =================

def _validate_score(score) -> int:
    if isinstance(score, bool) or not isinstance(score, int):
        raise InvalidInputError(
            "Simulation score must be an integer",
            details={"score": score},
        )
    if score < MIN_SCORE or score > MAX_SCORE:
        raise InvalidInputError(
            f"Simulation score must be between {MIN_SCORE} and {MAX_SCORE}",
            details={"score": score},
        )
    return score


def _validate_xp(xp_award) -> int:
    if isinstance(xp_award, bool) or not isinstance(xp_award, int):
        raise InvalidInputError("XP award must be an integer", details={"xp_award": xp_award})
    if xp_award < 0:
        raise InvalidInputError("XP award cannot be negative", details={"xp_award": xp_award})
    return xp_award


# ================= OPERATIONS =================

def check_phase_advance(state: ProgressState) -> ProgressState:
    """Advance at most one phase. Never moves backwards."""
    phase = parse_phase(state.current_phase)
    threshold = ADVANCE_THRESHOLDS.get(phase)
    if threshold is None:
        return state

    if state.readiness_score < threshold:
        return state
    if state.phase_activity_count < MIN_PHASE_ACTIVITIES[phase]:
        return state

    return replace(state, current_phase=next_phase(phase), phase_activity_count=0)


def apply_lesson_completion(
    state: ProgressState,
    lesson_id: str,
    xp_award: int,
    today: date
) -> ProgressState:
    """
    Record a completed lesson.

    Re-completing a lesson awards nothing but still counts as activity
    for the streak.
    """
    xp_award = _validate_xp(xp_award)
    if not lesson_id or not str(lesson_id).strip():
        raise InvalidInputError("Lesson id cannot be empty")
    lesson_id = str(lesson_id).strip()

    streak = next_streak(state.current_streak, state.last_activity_date, today)

    if lesson_id in state.completed_lessons:
        updated = replace(state, current_streak=streak, last_activity_date=today)
    else:
        updated = replace(
            state,
            total_xp=state.total_xp + xp_award,
            completed_lessons=state.completed_lessons | {lesson_id},
            phase_activity_count=state.phase_activity_count + 1,
            current_streak=streak,
            last_activity_date=today,
        )

    return check_phase_advance(updated)


def apply_simulation_result(state: ProgressState, attempt: GradedSimulation) -> ProgressState:
    """Fold a graded simulation into readiness and credits."""
    score = _validate_score(attempt.score)
    parse_phase(attempt.phase)

    recent = (state.recent_scores + (score,))[-READINESS_WINDOW:]
    skill_award = score // SKILL_CREDIT_DIVISOR if attempt.topic_id else 0

    updated = replace(
        state,
        recent_scores=recent,
        readiness_score=compute_readiness(recent),
        credits=state.credits + score // CREDIT_DIVISOR,
        skill_credits=state.skill_credits + skill_award,
        phase_activity_count=state.phase_activity_count + 1,
    )

    return check_phase_advance(updated)


def apply_readiness_assessment(state: ProgressState, score: int, phase: Union[Phase, str, None] = None) -> ProgressState:
    """
    Record a self-assessment score as a readiness sample.

    Unlike a simulation it earns no credits and no phase activity; an
    advance still needs the phase's minimum activity count.
    """
    score = _validate_score(score)
    if phase is not None:
        parse_phase(phase)

    recent = (state.recent_scores + (score,))[-READINESS_WINDOW:]
    updated = replace(
        state,
        recent_scores=recent,
        readiness_score=compute_readiness(recent),
    )
    return check_phase_advance(updated)


def apply_skill_swap(state: ProgressState) -> ProgressState:
    """Credit one side of an accepted skill swap."""
    return replace(state, skill_credits=state.skill_credits + SKILL_SWAP_CREDITS)


def evaluate_eligibility(
    state: ProgressState,
    min_readiness_score: int,
    min_phase: Union[Phase, str]
) -> Eligibility:
    """
    Check catalog thresholds against a user's progress.

    The readiness gap is reported before the phase gap.
    """
    required_phase = parse_phase(min_phase)
    current_phase = parse_phase(state.current_phase)

    if state.readiness_score < min_readiness_score:
        return Eligibility(
            eligible=False,
            reason=(
                f"Requires a readiness score of {min_readiness_score} "
                f"(yours is {state.readiness_score})"
            ),
        )

    if phase_rank(current_phase) < phase_rank(required_phase):
        return Eligibility(
            eligible=False,
            reason=(
                f"Unlocks in the {phase_label(required_phase)} phase "
                f"(you are in {phase_label(current_phase)})"
            ),
        )

    return Eligibility(eligible=True)


def roadmap_summary(state: ProgressState) -> Dict[str, object]:
    """Client-facing projection of a ProgressState"""
    return {
        "currentPhase": parse_phase(state.current_phase).value,
        "readinessScore": state.readiness_score,
        "credits": state.credits,
        "skillCredits": state.skill_credits,
        "totalXp": state.total_xp,
        "currentStreak": state.current_streak,
    }
