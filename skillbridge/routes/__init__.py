"""
skillbridge/routes/__init__.py
Route registration
"""
from fastapi import APIRouter
from skillbridge.routes import roadmap, simulations, opportunities, leaderboard, user_profile, skillswap, pods

router = APIRouter()

router.include_router(user_profile.router)
router.include_router(roadmap.router)
router.include_router(simulations.router)
router.include_router(opportunities.router)
router.include_router(leaderboard.router)
router.include_router(skillswap.router)
router.include_router(pods.router)
