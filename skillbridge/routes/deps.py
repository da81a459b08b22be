"""
skillbridge/routes/deps.py
FastAPI dependencies shared by the routers
"""
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from skillbridge.database import get_db
from skillbridge.services.grader import Grader, get_grader
from skillbridge.services.profile_store import ProfileStore


def get_profile_store(db: AsyncSession = Depends(get_db)) -> ProfileStore:
    return ProfileStore(db)


def get_simulation_grader() -> Grader:
    return get_grader()
