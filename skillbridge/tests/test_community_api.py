"""
skillbridge/tests/test_community_api.py
Skill swap and problem pod endpoints
"""
import asyncio

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from skillbridge.errors import ErrorCode
from skillbridge.exceptions import InvalidInputError
from skillbridge.orm.base import Base
from skillbridge.services import community_service
from skillbridge.services.profile_store import ProfileStore
from skillbridge.services.progression_engine import SKILL_SWAP_CREDITS


async def onboard(client, headers):
    response = await client.post("/api/user-profile", json={}, headers=headers)
    assert response.status_code == 200


async def post_swap(client, headers, offer="Canva", want="Excel"):
    response = await client.post(
        "/api/skillswap",
        json={"offerSkill": offer, "wantSkill": want, "note": "Weekends"},
        headers=headers,
    )
    assert response.status_code == 200
    return response.json()


# ============================================================================
# Skill swaps
# ============================================================================

class TestSkillSwap:

    @pytest.mark.asyncio
    async def test_posted_swap_is_listed_open(self, client, alice_headers, bob_headers):
        await onboard(client, alice_headers)
        await onboard(client, bob_headers)

        swap = await post_swap(client, alice_headers)
        assert swap["status"] == "open"
        assert swap["userId"] == "alice"

        listed = (await client.get("/api/skillswap", headers=bob_headers)).json()
        assert [item["id"] for item in listed] == [swap["id"]]
        assert listed[0]["offerSkill"] == "Canva"

    @pytest.mark.asyncio
    async def test_accept_credits_both_sides(self, client, alice_headers, bob_headers):
        await onboard(client, alice_headers)
        await onboard(client, bob_headers)
        swap = await post_swap(client, alice_headers)

        response = await client.post(f"/api/skillswap/{swap['id']}/accept", headers=bob_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["swap"]["status"] == "accepted"
        assert data["swap"]["partnerId"] == "bob"
        assert data["skillCreditsAwarded"] == SKILL_SWAP_CREDITS
        assert data["roadmap"]["skillCredits"] == SKILL_SWAP_CREDITS

        alice = (await client.get("/api/roadmap", headers=alice_headers)).json()
        assert alice["skillCredits"] == SKILL_SWAP_CREDITS

        portfolio = (await client.get("/api/roadmap/portfolio", headers=alice_headers)).json()
        assert portfolio["skillSwaps"][0]["status"] == "accepted"

    @pytest.mark.asyncio
    async def test_swap_is_accepted_once(self, client, alice_headers, bob_headers, carol_headers):
        for headers in (alice_headers, bob_headers, carol_headers):
            await onboard(client, headers)
        swap = await post_swap(client, alice_headers)

        await client.post(f"/api/skillswap/{swap['id']}/accept", headers=bob_headers)
        response = await client.post(f"/api/skillswap/{swap['id']}/accept", headers=carol_headers)

        assert response.status_code == 400
        assert response.json()["code"] == ErrorCode.SWAP_UNAVAILABLE
        carol = (await client.get("/api/roadmap", headers=carol_headers)).json()
        assert carol["skillCredits"] == 0

    @pytest.mark.asyncio
    async def test_cannot_accept_own_swap(self, client, alice_headers):
        await onboard(client, alice_headers)
        swap = await post_swap(client, alice_headers)

        response = await client.post(f"/api/skillswap/{swap['id']}/accept", headers=alice_headers)
        assert response.status_code == 400
        assert response.json()["code"] == ErrorCode.SWAP_UNAVAILABLE

    @pytest.mark.asyncio
    @pytest.mark.parametrize("swap_id", ["999", "abc"])
    async def test_unknown_swap_is_404(self, client, bob_headers, swap_id):
        await onboard(client, bob_headers)

        response = await client.post(f"/api/skillswap/{swap_id}/accept", headers=bob_headers)
        assert response.status_code == 404
        assert response.json()["code"] == ErrorCode.SWAP_NOT_FOUND

    @pytest.mark.asyncio
    async def test_post_requires_profile(self, client, alice_headers):
        response = await client.post(
            "/api/skillswap",
            json={"offerSkill": "Canva", "wantSkill": "Excel"},
            headers=alice_headers,
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_blank_skill_is_422(self, client, alice_headers):
        await onboard(client, alice_headers)
        response = await client.post(
            "/api/skillswap",
            json={"offerSkill": "  ", "wantSkill": "Excel"},
            headers=alice_headers,
        )
        assert response.status_code == 422


@pytest_asyncio.fixture
async def file_session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'swaps.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)

    await engine.dispose()


class TestConcurrentAccept:

    @pytest.mark.asyncio
    async def test_racing_accepts_award_one_partner(self, file_session_factory):
        async with file_session_factory() as session:
            store = ProfileStore(session)
            for user_id in ("alice", "bob", "carol"):
                await store.create(user_id)
            swap = await community_service.create_skill_swap(session, store, "alice", "Canva", "Excel")

        async def accept(user_id):
            async with file_session_factory() as session:
                return await community_service.accept_skill_swap(session, ProfileStore(session), user_id, swap["id"])

        results = await asyncio.gather(accept("bob"), accept("carol"), return_exceptions=True)

        successes = [r for r in results if isinstance(r, dict)]
        failures = [r for r in results if isinstance(r, InvalidInputError)]
        assert len(successes) == 1
        assert len(failures) == 1

        async with file_session_factory() as session:
            store = ProfileStore(session)
            credits = {u: (await store.get(u)).skill_credits for u in ("alice", "bob", "carol")}
        assert credits["alice"] == SKILL_SWAP_CREDITS
        assert sorted([credits["bob"], credits["carol"]]) == [0, SKILL_SWAP_CREDITS]


# ============================================================================
# Problem pods
# ============================================================================

class TestProblemPods:

    @pytest.mark.asyncio
    async def test_create_respond_and_count_replies(self, client, alice_headers, bob_headers):
        await onboard(client, alice_headers)
        await onboard(client, bob_headers)

        created = await client.post(
            "/api/pods",
            json={"title": "Pricing my first gig", "description": "How much for a logo?", "category": "freelance"},
            headers=alice_headers,
        )
        assert created.status_code == 200
        pod = created.json()
        assert pod["replies"] == 0

        reply = await client.post(f"/api/pods/{pod['id']}/respond", json={"message": "Start at $40."}, headers=bob_headers)
        assert reply.status_code == 200
        assert reply.json()["response"]["message"] == "Start at $40."
        assert reply.json()["pod"]["replies"] == 1

        listed = (await client.get("/api/pods", headers=bob_headers)).json()
        assert listed[0]["id"] == pod["id"]
        assert listed[0]["replies"] == 1

        portfolio = (await client.get("/api/roadmap/portfolio", headers=alice_headers)).json()
        assert [p["title"] for p in portfolio["problemPods"]] == ["Pricing my first gig"]

    @pytest.mark.asyncio
    async def test_respond_to_unknown_pod_is_404(self, client, bob_headers):
        await onboard(client, bob_headers)

        response = await client.post("/api/pods/42/respond", json={"message": "hi"}, headers=bob_headers)
        assert response.status_code == 404
        assert response.json()["code"] == ErrorCode.POD_NOT_FOUND

    @pytest.mark.asyncio
    async def test_blank_reply_is_422(self, client, alice_headers):
        await onboard(client, alice_headers)
        pod = (await client.post("/api/pods", json={"title": "t", "description": "d"}, headers=alice_headers)).json()

        response = await client.post(f"/api/pods/{pod['id']}/respond", json={"message": "   "}, headers=alice_headers)
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_pods_require_auth(self, client):
        response = await client.get("/api/pods")
        assert response.status_code == 401
