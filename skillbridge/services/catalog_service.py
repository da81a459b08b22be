"""
skillbridge/services/catalog_service.py
Task & Opportunity Catalog

Read access to roadmap tasks and opportunity listings, plus the
idempotent startup seed. Catalog rows are never mutated by users.
"""
import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from skillbridge.errors import ErrorCode
from skillbridge.exceptions import NotFoundError
from skillbridge.orm.catalog import OpportunityListing, RoadmapTask
from skillbridge.services.progression_engine import parse_phase

logger = logging.getLogger(__name__)


DEFAULT_TASKS = [
    {"id": "ls-budget-basics", "title": "Build your first weekly budget", "phase": "life_skills", "xp_reward": 10, "min_readiness_score": 0, "min_phase": "life_skills"},
    {"id": "ls-time-blocking", "title": "Plan a week with time blocking", "phase": "life_skills", "xp_reward": 10, "min_readiness_score": 0, "min_phase": "life_skills"},
    {"id": "ls-email-etiquette", "title": "Write a professional email", "phase": "life_skills", "xp_reward": 15, "min_readiness_score": 0, "min_phase": "life_skills"},
    {"id": "ms-saving-goals", "title": "Set a savings goal and track it", "phase": "money_skills", "xp_reward": 20, "min_readiness_score": 30, "min_phase": "money_skills"},
    {"id": "ms-invoicing", "title": "Create and send an invoice", "phase": "money_skills", "xp_reward": 20, "min_readiness_score": 40, "min_phase": "money_skills"},
    {"id": "pr-client-brief", "title": "Turn a client brief into a task list", "phase": "practice", "xp_reward": 30, "min_readiness_score": 50, "min_phase": "practice"},
    {"id": "pr-mock-gig", "title": "Deliver a mock gig end to end", "phase": "practice", "xp_reward": 40, "min_readiness_score": 60, "min_phase": "practice"},
    {"id": "ea-portfolio", "title": "Publish your portfolio", "phase": "earn", "xp_reward": 50, "min_readiness_score": 70, "min_phase": "earn"},
]

DEFAULT_OPPORTUNITIES = [
    {"id": "gig-survey-tester", "title": "App survey tester", "type": "micro-task", "payout": "$5", "min_readiness_score": 0, "min_phase": "life_skills"},
    {"id": "gig-data-entry", "title": "Spreadsheet data entry", "type": "gig", "payout": "$25", "min_readiness_score": 40, "min_phase": "money_skills"},
    {"id": "gig-social-posts", "title": "Social posts for a local cafe", "type": "gig", "payout": "$60", "min_readiness_score": 60, "min_phase": "practice"},
    {"id": "gig-bookkeeping", "title": "Monthly bookkeeping assistant", "type": "part-time", "payout": "$150/month", "min_readiness_score": 75, "min_phase": "earn"},
]


async def list_tasks(db: AsyncSession) -> List[RoadmapTask]:
    result = await db.execute(
        select(RoadmapTask).order_by(RoadmapTask.sort_order, RoadmapTask.id)
    )
    return list(result.scalars().all())


async def get_task(db: AsyncSession, task_id: str) -> RoadmapTask:
    result = await db.execute(select(RoadmapTask).where(RoadmapTask.id == task_id))
    task = result.scalar_one_or_none()
    if task is None:
        raise NotFoundError("Roadmap task", task_id, code=ErrorCode.TASK_NOT_FOUND)
    return task


async def list_opportunities(db: AsyncSession) -> List[OpportunityListing]:
    result = await db.execute(
        select(OpportunityListing).order_by(OpportunityListing.sort_order, OpportunityListing.id)
    )
    return list(result.scalars().all())


async def get_opportunity(db: AsyncSession, listing_id: str) -> OpportunityListing:
    result = await db.execute(select(OpportunityListing).where(OpportunityListing.id == listing_id))
    listing = result.scalar_one_or_none()
    if listing is None:
        raise NotFoundError("Opportunity listing", listing_id, code=ErrorCode.LISTING_NOT_FOUND)
    return listing


async def seed_catalog(db: AsyncSession) -> int:
    """
    Insert the default catalog entries that don't exist yet.
    Safe to run on every startup. Returns the number of rows created.
    """
    existing_tasks = set((await db.execute(select(RoadmapTask.id))).scalars().all())
    existing_listings = set((await db.execute(select(OpportunityListing.id))).scalars().all())

    created = 0
    for order, item in enumerate(DEFAULT_TASKS, start=1):
        if item["id"] in existing_tasks:
            continue
        parse_phase(item["phase"])
        parse_phase(item["min_phase"])
        db.add(RoadmapTask(sort_order=order, **item))
        created += 1

    for order, item in enumerate(DEFAULT_OPPORTUNITIES, start=1):
        if item["id"] in existing_listings:
            continue
        parse_phase(item["min_phase"])
        db.add(OpportunityListing(sort_order=order, **item))
        created += 1

    if created:
        await db.commit()
        logger.info(f"Catalog seeded: {created} entries created")
    return created
