"""
skillbridge/services/profile_store.py
Profile Store - the only writer of user_profiles

Every progression write goes through ProfileStore.update(), which
1. takes a per-user asyncio.Lock (serializes requests inside this process),
2. reads the profile,
3. applies a pure mutation (usually a progression_engine operation),
4. writes back with compare-and-swap on `version`
   (UPDATE ... WHERE user_id = :uid AND version = :expected),
5. retries the whole cycle when another writer won the race.

Different users never share a lock, so their updates run in parallel.
"""
import asyncio
import logging
import weakref
from dataclasses import replace
from typing import Awaitable, Callable, Iterable, List, Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from skillbridge.config import settings
from skillbridge.errors import ErrorCode
from skillbridge.exceptions import ConcurrencyConflictError, NotFoundError
from skillbridge.orm.user_profile import UserProfile
from skillbridge.services.progression_engine import ProgressState, parse_phase

logger = logging.getLogger(__name__)

_user_locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()


def _lock_for(user_id: str) -> asyncio.Lock:
    lock = _user_locks.get(user_id)
    if lock is None:
        lock = asyncio.Lock()
        _user_locks[user_id] = lock
    return lock


def state_from_row(row: UserProfile) -> ProgressState:
    return ProgressState(
        user_id=row.user_id,
        total_xp=row.total_xp or 0,
        current_streak=row.current_streak or 0,
        last_activity_date=row.last_activity_date,
        completed_lessons=frozenset(row.completed_lessons or []),
        current_phase=parse_phase(row.current_phase),
        readiness_score=row.readiness_score or 0,
        credits=row.credits or 0,
        skill_credits=row.skill_credits or 0,
        recent_scores=tuple(row.recent_scores or []),
        phase_activity_count=row.phase_activity_count or 0,
        version=row.version or 0,
    )


def values_from_state(state: ProgressState) -> dict:
    return {
        "total_xp": state.total_xp,
        "current_streak": state.current_streak,
        "last_activity_date": state.last_activity_date,
        "completed_lessons": sorted(state.completed_lessons),
        "current_phase": parse_phase(state.current_phase).value,
        "readiness_score": state.readiness_score,
        "credits": state.credits,
        "skill_credits": state.skill_credits,
        "recent_scores": list(state.recent_scores),
        "phase_activity_count": state.phase_activity_count,
    }


class ProfileStore:
    """Profile persistence with a serialized, compare-and-swap update path."""

    def __init__(self, db: AsyncSession, max_retries: Optional[int] = None):
        self.db = db
        self.max_retries = max_retries if max_retries is not None else settings.PROFILE_UPDATE_MAX_RETRIES

    async def _load_row(self, user_id: str) -> Optional[UserProfile]:
        result = await self.db.execute(
            select(UserProfile)
            .where(UserProfile.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_profile(self, user_id: str) -> UserProfile:
        row = await self._load_row(user_id)
        if row is None:
            raise NotFoundError("User profile", user_id, code=ErrorCode.PROFILE_NOT_FOUND)
        return row

    async def get(self, user_id: str) -> ProgressState:
        return state_from_row(await self.get_profile(user_id))

    async def create(
        self,
        user_id: str,
        display_name: Optional[str] = None,
        interests: Optional[List[str]] = None
    ) -> UserProfile:
        """
        Create a profile, or update the onboarding fields of an existing one.
        Progress fields of an existing profile are never touched here.
        """
        row = await self._load_row(user_id)
        if row is None:
            row = UserProfile(
                user_id=user_id,
                display_name=display_name,
                interests=list(interests or []),
            )
            self.db.add(row)
            try:
                await self.db.commit()
                logger.info(f"Created profile for user {user_id}")
                return row
            except IntegrityError:
                # Lost a creation race; fall through and update the winner's row
                await self.db.rollback()
                row = await self.get_profile(user_id)

        if display_name is not None:
            row.display_name = display_name
        if interests is not None:
            row.interests = list(interests)
        await self.db.commit()
        return row

    async def put(
        self,
        state: ProgressState,
        expected_version: int,
        extra_rows: Iterable[object] = ()
    ) -> ProgressState:
        """
        Write `state` only if the stored version still equals `expected_version`.
        `extra_rows` are inserted in the same transaction.

        Raises:
            ConcurrencyConflictError: another writer got there first
        """
        new_version = expected_version + 1
        result = await self.db.execute(
            update(UserProfile)
            .where(
                UserProfile.user_id == state.user_id,
                UserProfile.version == expected_version,
            )
            .values(version=new_version, **values_from_state(state))
            .execution_options(synchronize_session=False)
        )

        if result.rowcount != 1:
            await self.db.rollback()
            logger.warning(
                f"CAS conflict on profile {state.user_id} (expected version {expected_version})"
            )
            raise ConcurrencyConflictError(state.user_id, expected_version)

        for row in extra_rows:
            self.db.add(row)
        await self.db.commit()
        return replace(state, version=new_version)

    async def update(
        self,
        user_id: str,
        mutate: Callable[[ProgressState], ProgressState],
        stage: Optional[Callable[[ProgressState], Iterable[object]]] = None,
        precondition: Optional[Callable[[], Awaitable[None]]] = None
    ) -> Tuple[ProgressState, ProgressState]:
        """
        Serialized read-modify-write of one profile.

        `stage(after)` may return rows (e.g. an attempt record) to be
        committed atomically with the profile write.

        `precondition()` runs inside each attempt's transaction before the
        profile write, e.g. a conditional UPDATE claiming another row. If it
        raises, the transaction is rolled back and the error propagates.

        Returns (before, after). Exceptions raised by `mutate` propagate
        and nothing is written.
        """
        async with _lock_for(user_id):
            for attempt in range(self.max_retries + 1):
                before = await self.get(user_id)
                after = mutate(before)
                if precondition:
                    try:
                        await precondition()
                    except Exception:
                        await self.db.rollback()
                        raise
                try:
                    extra_rows = stage(after) if stage else ()
                    saved = await self.put(after, before.version, extra_rows)
                except ConcurrencyConflictError:
                    if attempt < self.max_retries:
                        logger.info(
                            f"Retrying profile update for {user_id} "
                            f"(attempt {attempt + 1}/{self.max_retries})"
                        )
                        continue
                    raise

                if saved.current_phase != before.current_phase:
                    logger.info(
                        f"User {user_id} advanced {before.current_phase.value} -> {saved.current_phase.value}"
                    )
                return before, saved

        raise ConcurrencyConflictError(user_id)

    async def top_by_xp(self, limit: int) -> List[UserProfile]:
        result = await self.db.execute(
            select(UserProfile)
            .order_by(UserProfile.total_xp.desc(), UserProfile.user_id)
            .limit(limit)
        )
        return list(result.scalars().all())
