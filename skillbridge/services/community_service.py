"""
skillbridge/services/community_service.py
Skill swaps and problem pods

Accepting a swap is the only community action that touches progression:
the swap is claimed (open -> accepted) in the same transaction as the
accepting user's profile write, then the owner is credited.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from skillbridge.errors import ErrorCode
from skillbridge.exceptions import InvalidInputError, NotFoundError
from skillbridge.orm.community import PodResponse, ProblemPod, SkillSwap
from skillbridge.services.profile_store import ProfileStore
from skillbridge.services.progression_engine import (
    SKILL_SWAP_CREDITS,
    apply_skill_swap,
    roadmap_summary,
)

logger = logging.getLogger(__name__)

SWAP_OPEN = "open"
SWAP_ACCEPTED = "accepted"


def _parse_id(value: str, resource: str, code: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise NotFoundError(resource, value, code=code)


# ================= SKILL SWAPS =================

async def _load_swap(db: AsyncSession, swap_id: str) -> SkillSwap:
    result = await db.execute(
        select(SkillSwap)
        .where(SkillSwap.id == _parse_id(swap_id, "Skill swap", ErrorCode.SWAP_NOT_FOUND))
        .execution_options(populate_existing=True)
    )
    swap = result.scalar_one_or_none()
    if swap is None:
        raise NotFoundError("Skill swap", swap_id, code=ErrorCode.SWAP_NOT_FOUND)
    return swap


async def list_skill_swaps(db: AsyncSession, user_id: str) -> List[Dict[str, Any]]:
    """Open swaps from everyone plus any swap this user is part of."""
    result = await db.execute(
        select(SkillSwap)
        .where(or_(
            SkillSwap.status == SWAP_OPEN,
            SkillSwap.user_id == user_id,
            SkillSwap.partner_id == user_id,
        ))
        .order_by(SkillSwap.created_at.desc(), SkillSwap.id.desc())
    )
    return [swap.to_dict() for swap in result.scalars().all()]


async def user_skill_swaps(db: AsyncSession, user_id: str) -> List[Dict[str, Any]]:
    result = await db.execute(
        select(SkillSwap)
        .where(or_(SkillSwap.user_id == user_id, SkillSwap.partner_id == user_id))
        .order_by(SkillSwap.created_at.desc(), SkillSwap.id.desc())
    )
    return [swap.to_dict() for swap in result.scalars().all()]


async def create_skill_swap(
    db: AsyncSession,
    store: ProfileStore,
    user_id: str,
    offer_skill: str,
    want_skill: str,
    note: Optional[str] = None
) -> Dict[str, Any]:
    await store.get_profile(user_id)

    swap = SkillSwap(
        user_id=user_id,
        offer_skill=offer_skill,
        want_skill=want_skill,
        note=note,
        status=SWAP_OPEN,
    )
    db.add(swap)
    await db.commit()

    logger.info(f"Skill swap {swap.id} posted by {user_id}: {offer_skill} <-> {want_skill}")
    return swap.to_dict()


async def accept_skill_swap(
    db: AsyncSession,
    store: ProfileStore,
    user_id: str,
    swap_id: str
) -> Dict[str, Any]:
    """
    Accept an open swap posted by someone else.

    Both sides receive SKILL_SWAP_CREDITS skill credits. A swap can be
    accepted exactly once; losing a race to another user is a 400.

    Raises:
        NotFoundError: unknown swap or profile
        InvalidInputError: own swap, or the swap is no longer open
    """
    swap = await _load_swap(db, swap_id)
    swap_pk = swap.id
    owner_id = swap.user_id

    if owner_id == user_id:
        raise InvalidInputError(
            "You cannot accept your own skill swap",
            code=ErrorCode.SWAP_UNAVAILABLE,
            details={"swap_id": swap_id},
        )
    if swap.status != SWAP_OPEN:
        raise InvalidInputError(
            "This skill swap has already been accepted",
            code=ErrorCode.SWAP_UNAVAILABLE,
            details={"swap_id": swap_id, "status": swap.status},
        )

    async def claim():
        result = await db.execute(
            update(SkillSwap)
            .where(SkillSwap.id == swap_pk, SkillSwap.status == SWAP_OPEN)
            .values(status=SWAP_ACCEPTED, partner_id=user_id, accepted_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise InvalidInputError(
                "This skill swap has already been accepted",
                code=ErrorCode.SWAP_UNAVAILABLE,
                details={"swap_id": swap_id},
            )

    _, after = await store.update(user_id, apply_skill_swap, precondition=claim)

    try:
        await store.update(owner_id, apply_skill_swap)
    except NotFoundError:
        logger.warning(f"Skill swap {swap_id} accepted but owner {owner_id} has no profile to credit")

    swap = await _load_swap(db, swap_id)
    logger.info(f"Skill swap {swap_id} accepted by {user_id} (owner {owner_id})")

    return {
        "swap": swap.to_dict(),
        "skillCreditsAwarded": SKILL_SWAP_CREDITS,
        "roadmap": roadmap_summary(after),
    }


# ================= PROBLEM PODS =================

async def _reply_counts(db: AsyncSession, pod_ids: Iterable[int]) -> Dict[int, int]:
    pod_ids = list(pod_ids)
    if not pod_ids:
        return {}
    result = await db.execute(
        select(PodResponse.pod_id, func.count(PodResponse.id))
        .where(PodResponse.pod_id.in_(pod_ids))
        .group_by(PodResponse.pod_id)
    )
    return {pod_id: count for pod_id, count in result.all()}


async def _pods_with_counts(db: AsyncSession, pods: List[ProblemPod]) -> List[Dict[str, Any]]:
    counts = await _reply_counts(db, (pod.id for pod in pods))
    return [pod.to_dict(replies=counts.get(pod.id, 0)) for pod in pods]


async def list_problem_pods(db: AsyncSession) -> List[Dict[str, Any]]:
    result = await db.execute(
        select(ProblemPod).order_by(ProblemPod.created_at.desc(), ProblemPod.id.desc())
    )
    return await _pods_with_counts(db, list(result.scalars().all()))


async def user_problem_pods(db: AsyncSession, user_id: str) -> List[Dict[str, Any]]:
    result = await db.execute(
        select(ProblemPod)
        .where(ProblemPod.user_id == user_id)
        .order_by(ProblemPod.created_at.desc(), ProblemPod.id.desc())
    )
    return await _pods_with_counts(db, list(result.scalars().all()))


async def create_problem_pod(
    db: AsyncSession,
    store: ProfileStore,
    user_id: str,
    title: str,
    description: str,
    category: Optional[str] = None
) -> Dict[str, Any]:
    await store.get_profile(user_id)

    pod = ProblemPod(user_id=user_id, title=title, description=description, category=category)
    db.add(pod)
    await db.commit()

    logger.info(f"Problem pod {pod.id} opened by {user_id}")
    return pod.to_dict(replies=0)


async def respond_to_pod(
    db: AsyncSession,
    store: ProfileStore,
    user_id: str,
    pod_id: str,
    message: str
) -> Dict[str, Any]:
    await store.get_profile(user_id)

    result = await db.execute(
        select(ProblemPod).where(ProblemPod.id == _parse_id(pod_id, "Problem pod", ErrorCode.POD_NOT_FOUND))
    )
    pod = result.scalar_one_or_none()
    if pod is None:
        raise NotFoundError("Problem pod", pod_id, code=ErrorCode.POD_NOT_FOUND)

    reply = PodResponse(pod_id=pod.id, user_id=user_id, message=message)
    db.add(reply)
    await db.commit()

    counts = await _reply_counts(db, [pod.id])
    return {
        "response": reply.to_dict(),
        "pod": pod.to_dict(replies=counts.get(pod.id, 0)),
    }
