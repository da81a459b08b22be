"""
skillbridge/tests/test_api_contracts.py
API Contract Tests

These tests verify:
1. Error responses follow the standard format
2. HTTP status codes are correct (401/404/400/422/503)
3. Response shapes match what the mobile client reads
4. A failed grading leaves the profile untouched
"""
import pytest

from skillbridge.errors import ErrorCode
from skillbridge.exceptions import ExternalServiceError
from skillbridge.main import app
from skillbridge.routes.deps import get_simulation_grader
from skillbridge.services.grader import Grader

PROMPT = "Explain your budget plan for savings"
STRONG_RESPONSE = "explain budget savings " + " ".join(["detail"] * 80)


class FailingGrader(Grader):
    name = "remote"

    async def grade(self, prompt, response):
        raise ExternalServiceError("Simulation grader", "grading timed out")


async def onboard(client, headers, name="Alice"):
    response = await client.post("/api/user-profile", json={"name": name}, headers=headers)
    assert response.status_code == 200
    return response.json()


def assert_error_shape(data, code):
    assert data["success"] is False
    assert "error" in data
    assert "message" in data
    assert data["code"] == code


# ============================================================================
# Health and error format
# ============================================================================

class TestHealthEndpoints:

    @pytest.mark.asyncio
    async def test_main_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_errors_health(self, client):
        response = await client.get("/api/errors/health")
        assert response.status_code == 200
        data = response.json()
        assert "status_codes" in data
        assert "TASK_LOCKED" in data["error_codes"]


class TestAuthentication:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/api/roadmap", "/api/roadmap/tasks", "/api/opportunities", "/api/user-profile", "/api/skillswap", "/api/pods"])
    async def test_missing_token_is_401(self, client, path):
        response = await client.get(path)
        assert response.status_code == 401
        assert_error_shape(response.json(), ErrorCode.AUTH_REQUIRED)

    @pytest.mark.asyncio
    async def test_garbage_token_is_401(self, client):
        response = await client.get("/api/roadmap", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_leaderboard_is_public(self, client):
        response = await client.get("/api/leaderboard")
        assert response.status_code == 200
        assert response.json() == []


# ============================================================================
# Profile
# ============================================================================

class TestUserProfile:

    @pytest.mark.asyncio
    async def test_roadmap_before_onboarding_is_404(self, client, alice_headers):
        response = await client.get("/api/roadmap", headers=alice_headers)
        assert response.status_code == 404
        assert_error_shape(response.json(), ErrorCode.PROFILE_NOT_FOUND)

    @pytest.mark.asyncio
    async def test_onboarding_creates_default_profile(self, client, alice_headers):
        response = await client.post(
            "/api/user-profile",
            json={"name": "Alice", "interests": ["design", " design ", ""]},
            headers=alice_headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["userId"] == "alice"
        assert data["interests"] == ["design"]
        assert data["totalXp"] == 0
        assert data["currentPhase"] == "life_skills"

        roadmap = (await client.get("/api/roadmap", headers=alice_headers)).json()
        assert roadmap == {
            "currentPhase": "life_skills",
            "readinessScore": 0,
            "credits": 0,
            "skillCredits": 0,
            "totalXp": 0,
            "currentStreak": 0,
        }


# ============================================================================
# Roadmap tasks and lessons
# ============================================================================

class TestRoadmapTasks:

    @pytest.mark.asyncio
    async def test_tasks_carry_lock_state(self, client, alice_headers):
        await onboard(client, alice_headers)

        response = await client.get("/api/roadmap/tasks", headers=alice_headers)
        assert response.status_code == 200
        tasks = {task["id"]: task for task in response.json()}

        assert tasks["ls-budget-basics"]["locked"] is False
        assert tasks["ls-budget-basics"]["completed"] is False
        assert tasks["ms-saving-goals"]["locked"] is True
        assert tasks["ms-saving-goals"]["lockedReason"] == "Requires a readiness score of 30 (yours is 0)"

    @pytest.mark.asyncio
    async def test_complete_lesson_awards_xp_once(self, client, alice_headers):
        await onboard(client, alice_headers)

        first = await client.post("/api/roadmap/lessons/complete", json={"lessonId": "ls-budget-basics"}, headers=alice_headers)
        assert first.status_code == 200
        data = first.json()
        assert data["xpAwarded"] == 10
        assert data["roadmap"]["totalXp"] == 10
        assert data["roadmap"]["currentStreak"] == 1

        second = await client.post("/api/roadmap/lessons/complete", json={"lessonId": "ls-budget-basics"}, headers=alice_headers)
        assert second.status_code == 200
        assert second.json()["xpAwarded"] == 0
        assert second.json()["roadmap"]["totalXp"] == 10

        tasks = {t["id"]: t for t in (await client.get("/api/roadmap/tasks", headers=alice_headers)).json()}
        assert tasks["ls-budget-basics"]["completed"] is True

    @pytest.mark.asyncio
    async def test_locked_task_is_400(self, client, alice_headers):
        await onboard(client, alice_headers)

        response = await client.post("/api/roadmap/lessons/complete", json={"lessonId": "ms-invoicing"}, headers=alice_headers)
        assert response.status_code == 400
        assert_error_shape(response.json(), ErrorCode.TASK_LOCKED)

        roadmap = (await client.get("/api/roadmap", headers=alice_headers)).json()
        assert roadmap["totalXp"] == 0

    @pytest.mark.asyncio
    async def test_unknown_task_is_404(self, client, alice_headers):
        await onboard(client, alice_headers)

        response = await client.post("/api/roadmap/lessons/complete", json={"lessonId": "no-such-task"}, headers=alice_headers)
        assert response.status_code == 404
        assert_error_shape(response.json(), ErrorCode.TASK_NOT_FOUND)

    @pytest.mark.asyncio
    async def test_missing_lesson_id_is_422(self, client, alice_headers):
        await onboard(client, alice_headers)

        response = await client.post("/api/roadmap/lessons/complete", json={}, headers=alice_headers)
        assert response.status_code == 422
        assert_error_shape(response.json(), ErrorCode.VALIDATION_ERROR)


# ============================================================================
# Simulations
# ============================================================================

class TestSimulations:

    @pytest.mark.asyncio
    async def test_generate_defaults_to_current_phase(self, client, alice_headers):
        await onboard(client, alice_headers)

        response = await client.post("/api/simulations/generate", json={"topicName": "Budgeting"}, headers=alice_headers)
        assert response.status_code == 200
        simulation = response.json()["simulation"]
        assert simulation["phase"] == "life_skills"
        assert simulation["title"].endswith(": Budgeting")
        assert simulation["tasks"]
        assert simulation["rubric"]

    @pytest.mark.asyncio
    async def test_generate_unknown_phase_is_400(self, client, alice_headers):
        await onboard(client, alice_headers)

        response = await client.post("/api/simulations/generate", json={"phase": "astronaut"}, headers=alice_headers)
        assert response.status_code == 400
        assert_error_shape(response.json(), ErrorCode.INVALID_INPUT)

    @pytest.mark.asyncio
    async def test_submit_updates_readiness_and_advances(self, client, alice_headers):
        await onboard(client, alice_headers)
        await client.post("/api/roadmap/lessons/complete", json={"lessonId": "ls-budget-basics"}, headers=alice_headers)

        response = await client.post(
            "/api/simulations/submit",
            json={"prompt": PROMPT, "response": STRONG_RESPONSE, "topicId": "budgeting", "topicName": "Budgeting"},
            headers=alice_headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["score"] == 100
        assert data["grader"] == "local"
        assert data["creditsAwarded"] == 10
        assert data["phaseAdvanced"] is True
        assert data["attemptId"]
        assert data["roadmap"]["readinessScore"] == 100
        assert data["roadmap"]["skillCredits"] == 5
        assert data["roadmap"]["currentPhase"] == "money_skills"

        portfolio = (await client.get("/api/roadmap/portfolio", headers=alice_headers)).json()
        assert portfolio["completedLessons"] == ["ls-budget-basics"]
        assert len(portfolio["simulations"]) == 1
        assert portfolio["simulations"][0]["topicName"] == "Budgeting"
        assert portfolio["simulations"][0]["score"] == 100

    @pytest.mark.asyncio
    async def test_submit_blank_response_is_422(self, client, alice_headers):
        await onboard(client, alice_headers)

        response = await client.post(
            "/api/simulations/submit",
            json={"prompt": PROMPT, "response": "   "},
            headers=alice_headers,
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_submit_unknown_phase_is_400(self, client, alice_headers):
        await onboard(client, alice_headers)

        response = await client.post(
            "/api/simulations/submit",
            json={"prompt": PROMPT, "response": STRONG_RESPONSE, "phase": "astronaut"},
            headers=alice_headers,
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_submit_without_profile_is_404(self, client, alice_headers):
        response = await client.post(
            "/api/simulations/submit",
            json={"prompt": PROMPT, "response": STRONG_RESPONSE},
            headers=alice_headers,
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_grader_failure_is_503_and_changes_nothing(self, client, alice_headers):
        await onboard(client, alice_headers)
        before = (await client.get("/api/roadmap", headers=alice_headers)).json()

        app.dependency_overrides[get_simulation_grader] = lambda: FailingGrader()
        response = await client.post(
            "/api/simulations/submit",
            json={"prompt": PROMPT, "response": STRONG_RESPONSE},
            headers=alice_headers,
        )
        assert response.status_code == 503
        assert_error_shape(response.json(), ErrorCode.SERVICE_UNAVAILABLE)

        after = (await client.get("/api/roadmap", headers=alice_headers)).json()
        assert after == before
        portfolio = (await client.get("/api/roadmap/portfolio", headers=alice_headers)).json()
        assert portfolio["simulations"] == []


# ============================================================================
# Opportunities and leaderboard
# ============================================================================

class TestOpportunities:

    @pytest.mark.asyncio
    async def test_new_user_sees_only_entry_listing(self, client, alice_headers):
        await onboard(client, alice_headers)

        response = await client.get("/api/opportunities", headers=alice_headers)
        assert response.status_code == 200
        listings = {item["id"]: item for item in response.json()}

        assert listings["gig-survey-tester"]["locked"] is False
        assert listings["gig-survey-tester"]["lockedReason"] is None
        assert listings["gig-data-entry"]["locked"] is True
        assert listings["gig-data-entry"]["minScore"] == 40

    @pytest.mark.asyncio
    async def test_phase_gap_reason_after_advancing(self, client, alice_headers):
        await onboard(client, alice_headers)
        await client.post("/api/roadmap/lessons/complete", json={"lessonId": "ls-budget-basics"}, headers=alice_headers)
        await client.post(
            "/api/simulations/submit",
            json={"prompt": PROMPT, "response": STRONG_RESPONSE},
            headers=alice_headers,
        )

        listings = {item["id"]: item for item in (await client.get("/api/opportunities", headers=alice_headers)).json()}

        assert listings["gig-data-entry"]["locked"] is False
        assert listings["gig-social-posts"]["locked"] is True
        assert listings["gig-social-posts"]["lockedReason"] == "Unlocks in the Practice phase (you are in Money Skills)"


class TestLeaderboard:

    @pytest.mark.asyncio
    async def test_ranked_by_xp(self, client, alice_headers, bob_headers):
        await onboard(client, alice_headers)
        await onboard(client, bob_headers, name="Bob")
        await client.post("/api/roadmap/lessons/complete", json={"lessonId": "ls-budget-basics"}, headers=alice_headers)
        await client.post("/api/roadmap/lessons/complete", json={"lessonId": "ls-email-etiquette"}, headers=bob_headers)
        await client.post("/api/roadmap/lessons/complete", json={"lessonId": "ls-time-blocking"}, headers=bob_headers)

        response = await client.get("/api/leaderboard")
        assert response.status_code == 200
        assert response.json() == [
            {"rank": 1, "uid": "bob", "xp": 25},
            {"rank": 2, "uid": "alice", "xp": 10},
        ]


# ============================================================================
# Payloads the mobile client reads
# ============================================================================

class TestClientPayloads:

    @pytest.mark.asyncio
    async def test_task_items_use_reward_credits(self, client, alice_headers):
        await onboard(client, alice_headers)

        tasks = (await client.get("/api/roadmap/tasks", headers=alice_headers)).json()
        first = tasks[0]
        assert set(first) == {
            "id", "title", "phase", "rewardCredits", "minReadinessScore",
            "minPhase", "completed", "locked", "lockedReason",
        }
        assert first["id"] == "ls-budget-basics"
        assert first["rewardCredits"] == 10

    @pytest.mark.asyncio
    async def test_portfolio_shape(self, client, alice_headers):
        await onboard(client, alice_headers)
        await client.post(
            "/api/simulations/submit",
            json={"prompt": PROMPT, "response": STRONG_RESPONSE},
            headers=alice_headers,
        )

        portfolio = (await client.get("/api/roadmap/portfolio", headers=alice_headers)).json()
        for key in ("totalXp", "credits", "skillCredits", "completedLessons", "simulations", "skillSwaps", "problemPods"):
            assert key in portfolio
        assert portfolio["credits"] == 10
        assert portfolio["skillSwaps"] == []
        assert portfolio["problemPods"] == []


class TestOnboardingScore:

    @pytest.mark.asyncio
    async def test_score_sets_starting_readiness(self, client, alice_headers):
        await onboard(client, alice_headers)

        response = await client.post("/api/roadmap/score", json={"score": 60, "phase": "life_skills"}, headers=alice_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["score"] == 60
        assert data["phaseAdvanced"] is False
        assert data["roadmap"]["readinessScore"] == 60
        assert data["roadmap"]["credits"] == 0
        assert data["roadmap"]["currentPhase"] == "life_skills"

        tasks = {t["id"]: t for t in (await client.get("/api/roadmap/tasks", headers=alice_headers)).json()}
        assert tasks["ms-saving-goals"]["lockedReason"] == "Unlocks in the Money Skills phase (you are in Life Skills)"

    @pytest.mark.asyncio
    async def test_score_then_lesson_advances(self, client, alice_headers):
        await onboard(client, alice_headers)
        await client.post("/api/roadmap/score", json={"score": 60}, headers=alice_headers)

        response = await client.post("/api/roadmap/lessons/complete", json={"lessonId": "ls-budget-basics"}, headers=alice_headers)
        assert response.json()["phaseAdvanced"] is True
        assert response.json()["roadmap"]["currentPhase"] == "money_skills"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [{"score": 150}, {"score": -1}, {"score": 50, "phase": "astronaut"}])
    async def test_invalid_score_is_400(self, client, alice_headers, payload):
        await onboard(client, alice_headers)

        response = await client.post("/api/roadmap/score", json=payload, headers=alice_headers)
        assert response.status_code == 400
        assert_error_shape(response.json(), ErrorCode.INVALID_INPUT)

        roadmap = (await client.get("/api/roadmap", headers=alice_headers)).json()
        assert roadmap["readinessScore"] == 0

    @pytest.mark.asyncio
    async def test_score_without_profile_is_404(self, client, alice_headers):
        response = await client.post("/api/roadmap/score", json={"score": 60}, headers=alice_headers)
        assert response.status_code == 404


class TestOpportunityDetail:

    @pytest.mark.asyncio
    async def test_single_listing_carries_lock_state(self, client, alice_headers):
        await onboard(client, alice_headers)

        response = await client.get("/api/opportunities/gig-data-entry", headers=alice_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["id"] == "gig-data-entry"
        assert data["locked"] is True
        assert data["lockedReason"] == "Requires a readiness score of 40 (yours is 0)"

    @pytest.mark.asyncio
    async def test_unknown_listing_is_404(self, client, alice_headers):
        await onboard(client, alice_headers)

        response = await client.get("/api/opportunities/nope", headers=alice_headers)
        assert response.status_code == 404
        assert_error_shape(response.json(), ErrorCode.LISTING_NOT_FOUND)
