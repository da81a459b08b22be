"""
skillbridge/schemas/progression.py
Pydantic schemas for roadmap, simulation, opportunity and profile endpoints

Field names follow the mobile client (camelCase on the wire).
"""
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field, field_validator


# ================= REQUEST SCHEMAS =================

class LessonCompleteRequest(BaseModel):
    """
    Used by: POST /api/roadmap/lessons/complete
    """
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={"example": {"lessonId": "ls-budget-basics"}},
    )

    lesson_id: str = Field(..., alias="lessonId", min_length=1, max_length=64)

    @field_validator("lesson_id")
    @classmethod
    def strip_lesson_id(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("lessonId cannot be empty")
        return v.strip()


class SimulationGenerateRequest(BaseModel):
    """
    Used by: POST /api/simulations/generate
    """
    model_config = ConfigDict(populate_by_name=True)

    topic_name: Optional[str] = Field(None, alias="topicName", max_length=200)
    phase: Optional[str] = None


class SimulationSubmitRequest(BaseModel):
    """
    Used by: POST /api/simulations/submit
    """
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "prompt": "Your phone breaks two weeks before payday...",
                "response": "I would pause eating out and move 60 dollars from...",
                "phase": "money_skills",
                "topicId": "budgeting",
                "topicName": "Budgeting",
            }
        },
    )

    prompt: str = Field(..., min_length=1, max_length=5000)
    response: str = Field(..., min_length=1, max_length=10000)
    phase: Optional[str] = None
    topic_id: Optional[str] = Field(None, alias="topicId", max_length=128)
    topic_name: Optional[str] = Field(None, alias="topicName", max_length=200)

    @field_validator("prompt", "response")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("cannot be empty")
        return v


class UserProfileCreateRequest(BaseModel):
    """
    Used by: POST /api/user-profile (onboarding)
    """
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = Field(None, max_length=200)
    interests: Optional[List[str]] = Field(None, max_length=20)

    @field_validator("interests")
    @classmethod
    def clean_interests(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return None
        cleaned = []
        for tag in v:
            tag = tag.strip()
            if tag and tag not in cleaned:
                cleaned.append(tag)
        return cleaned


class RoadmapScoreRequest(BaseModel):
    """
    Used by: POST /api/roadmap/score (onboarding quiz)
    Range is checked by the progression engine (400, not 422).
    """
    model_config = ConfigDict(json_schema_extra={"example": {"score": 60, "phase": "life_skills"}})

    score: int
    phase: Optional[str] = None


class SkillSwapCreateRequest(BaseModel):
    """
    Used by: POST /api/skillswap
    """
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={"example": {"offerSkill": "Canva", "wantSkill": "Excel", "note": "Weekends"}},
    )

    offer_skill: str = Field(..., alias="offerSkill", min_length=1, max_length=120)
    want_skill: str = Field(..., alias="wantSkill", min_length=1, max_length=120)
    note: Optional[str] = Field(None, max_length=1000)

    @field_validator("offer_skill", "want_skill")
    @classmethod
    def strip_skill(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("cannot be empty")
        return v.strip()


class ProblemPodCreateRequest(BaseModel):
    """
    Used by: POST /api/pods
    """
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=5000)
    category: Optional[str] = Field(None, max_length=64)

    @field_validator("title", "description")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("cannot be empty")
        return v.strip()


class PodRespondRequest(BaseModel):
    """
    Used by: POST /api/pods/{pod_id}/respond
    """
    message: str = Field(..., min_length=1, max_length=5000)

    @field_validator("message")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("cannot be empty")
        return v.strip()


# ================= RESPONSE SCHEMAS =================

class RoadmapSummary(BaseModel):
    currentPhase: str
    readinessScore: int = Field(..., ge=0, le=100)
    credits: int = Field(..., ge=0)
    skillCredits: int = Field(..., ge=0)
    totalXp: int = Field(..., ge=0)
    currentStreak: int = Field(..., ge=0)


class RoadmapTaskItem(BaseModel):
    id: str
    title: str
    phase: str
    rewardCredits: int
    minReadinessScore: int
    minPhase: str
    completed: bool
    locked: bool
    lockedReason: Optional[str] = None


class OpportunityItem(BaseModel):
    id: str
    title: str
    type: str
    payout: Optional[str] = None
    minScore: int
    minPhase: str
    locked: bool
    lockedReason: Optional[str] = None


class LessonCompletionResponse(BaseModel):
    lessonId: str
    xpAwarded: int
    phaseAdvanced: bool
    roadmap: RoadmapSummary


class SimulationResultResponse(BaseModel):
    attemptId: Optional[str] = None
    score: int = Field(..., ge=0, le=100)
    feedback: str
    grader: str
    creditsAwarded: int
    phaseAdvanced: bool
    roadmap: RoadmapSummary


class RoadmapScoreResponse(BaseModel):
    score: int
    phaseAdvanced: bool
    roadmap: RoadmapSummary


class LeaderboardEntry(BaseModel):
    rank: int
    uid: str
    xp: int
