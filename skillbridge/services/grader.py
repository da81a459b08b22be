"""
skillbridge/services/grader.py
Simulation Grader

Two implementations, selected by GRADER_BACKEND:
- "remote": Gemini scores the response (google-generativeai)
- "local":  deterministic heuristic, no network

Whichever is configured is the only one used. A remote failure is raised
as ExternalServiceError; it is never swapped for a local score. Every
GradeResult carries `source` so callers know which grader produced it.
"""

import asyncio
import json
import logging
import math
import re
from dataclasses import dataclass
from typing import Optional, Set

import google.generativeai as genai

from skillbridge.config import settings
from skillbridge.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)

GRADER_SERVICE = "Simulation grader"

LENGTH_POINTS = 60
COVERAGE_POINTS = 40
MIN_KEYWORD_LENGTH = 5

STOPWORDS = {
    "about", "after", "again", "being", "could", "every", "first", "their",
    "there", "these", "thing", "those", "which", "while", "would", "where",
    "should", "other", "under", "until", "yours", "what's",
}

_WORD_RE = re.compile(r"[a-z']+")


@dataclass(frozen=True)
class GradeResult:
    score: int
    feedback: str
    source: str


class Grader:
    """Interface: grade(prompt, response) -> GradeResult"""
    name = "base"

    async def grade(self, prompt: str, response: str) -> GradeResult:
        raise NotImplementedError


def _words(text: str):
    return _WORD_RE.findall((text or "").lower())


def _keywords(prompt: str) -> Set[str]:
    return {
        w for w in _words(prompt)
        if len(w) >= MIN_KEYWORD_LENGTH and w not in STOPWORDS
    }


class LocalGrader(Grader):
    """
    Deterministic grader.

    score = min(words, 60) + round(40 * keyword coverage)
    where coverage is the share of the prompt's keywords (5+ letters,
    stopwords removed) that appear in the response. A prompt with no
    keywords gives full coverage to any non-empty response.
    """
    name = "local"

    async def grade(self, prompt: str, response: str) -> GradeResult:
        return self.grade_sync(prompt, response)

    def grade_sync(self, prompt: str, response: str) -> GradeResult:
        words = _words(response)
        if not words:
            return GradeResult(
                score=0,
                feedback="No response was given. Describe what you would do in the scenario.",
                source=self.name,
            )

        length_points = min(len(words), LENGTH_POINTS)

        keywords = _keywords(prompt)
        if keywords:
            matched = keywords & set(words)
            coverage = len(matched) / len(keywords)
        else:
            matched = set()
            coverage = 1.0
        coverage_points = int(math.floor(COVERAGE_POINTS * coverage + 0.5))

        score = min(100, length_points + coverage_points)
        return GradeResult(score=score, feedback=self._feedback(score, len(words), keywords, matched), source=self.name)

    @staticmethod
    def _feedback(score: int, word_count: int, keywords: Set[str], matched: Set[str]) -> str:
        parts = []
        if score >= 80:
            parts.append("Strong answer.")
        elif score >= 50:
            parts.append("Good start.")
        else:
            parts.append("Needs more work.")

        if word_count < LENGTH_POINTS:
            parts.append(f"Add more detail: you wrote {word_count} words, aim for {LENGTH_POINTS}.")

        missing = sorted(keywords - matched)
        if missing:
            parts.append("Address: " + ", ".join(missing[:3]) + ".")
        return " ".join(parts)


GRADING_PROMPT = """You are grading a learner's response to a workplace simulation.

Scenario:
{prompt}

Learner response:
{response}

Score the response from 0 to 100 for practicality, clarity and completeness.
Reply with JSON only, exactly in this shape:
{{"score": <integer 0-100>, "feedback": "<two sentences of feedback>"}}"""


class RemoteGrader(Grader):
    """Gemini-backed grader. Fails loudly; never substitutes a local score."""
    name = "remote"

    def __init__(self, api_key: Optional[str] = None, model_name: Optional[str] = None, timeout: Optional[int] = None):
        self.api_key = api_key if api_key is not None else settings.GEMINI_API_KEY
        self.model_name = model_name or settings.GEMINI_MODEL
        self.timeout = timeout or settings.GRADER_TIMEOUT_SECONDS
        self._model = None

    def _get_model(self):
        if not self.api_key:
            raise ExternalServiceError(GRADER_SERVICE, "GEMINI_API_KEY is not configured")
        if self._model is None:
            genai.configure(api_key=self.api_key)
            self._model = genai.GenerativeModel(self.model_name)
        return self._model

    async def grade(self, prompt: str, response: str) -> GradeResult:
        model = self._get_model()
        logger.info(f"Grading simulation remotely: model={self.model_name}, response_length={len(response)}")

        try:
            result = await asyncio.wait_for(
                model.generate_content_async(GRADING_PROMPT.format(prompt=prompt, response=response)),
                timeout=self.timeout,
            )
            text = result.text
        except asyncio.TimeoutError:
            logger.warning(f"Remote grader timed out after {self.timeout}s")
            raise ExternalServiceError(GRADER_SERVICE, "grading timed out")
        except Exception as e:
            logger.error(f"Remote grader call failed: {type(e).__name__}: {str(e)}")
            raise ExternalServiceError(GRADER_SERVICE, "grading request failed")

        return self.parse_result(text)

    def parse_result(self, text: str) -> GradeResult:
        """Parse the model's JSON reply; anything malformed is a grader failure."""
        cleaned = (text or "").strip()
        if cleaned.startswith("```"):
            cleaned = cleaned.strip("`")
            if cleaned.lower().startswith("json"):
                cleaned = cleaned[4:]
            cleaned = cleaned.strip()

        try:
            data = json.loads(cleaned)
        except json.JSONDecodeError:
            logger.warning(f"Remote grader returned invalid JSON: {cleaned[:120]}")
            raise ExternalServiceError(GRADER_SERVICE, "grader returned an unreadable result")

        score = data.get("score") if isinstance(data, dict) else None
        if isinstance(score, float) and score.is_integer():
            score = int(score)
        if isinstance(score, bool) or not isinstance(score, int) or not 0 <= score <= 100:
            logger.warning(f"Remote grader returned an invalid score: {score!r}")
            raise ExternalServiceError(GRADER_SERVICE, "grader returned an invalid score")

        feedback = str(data.get("feedback") or "").strip()
        return GradeResult(score=score, feedback=feedback, source=self.name)


def get_grader(backend: Optional[str] = None) -> Grader:
    """Build the grader named by GRADER_BACKEND."""
    backend = (backend or settings.GRADER_BACKEND or "").lower()
    if backend == "local":
        return LocalGrader()
    if backend == "remote":
        return RemoteGrader()
    logger.error(f"Unknown GRADER_BACKEND: {backend!r}")
    raise ExternalServiceError(GRADER_SERVICE, f"unknown grader backend '{backend}'")
