"""
Pytest configuration and shared fixtures.
"""

import asyncio
from typing import Any

import pytest

from prepwise.config.settings import Settings
from prepwise.core.session_engine import AssessmentSession
from prepwise.core.timing import ManualClock
from prepwise.models.assessment import (
    AssessmentConfig,
    AssessmentMode,
    Proficiency,
    QuestionType,
)
from prepwise.models.question import Question


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests, no external deps")


# ============================================================================
# FAKE AI PORTS
# ============================================================================

class StaticGenerationPort:
    """Returns a canned generation payload."""

    def __init__(self, payload: Any):
        self.payload = payload
        self.requests = []

    async def generate_questions(self, request):
        self.requests.append(request)
        return self.payload


class FailingGenerationPort:
    """Every request fails."""

    def __init__(self):
        self.calls = 0

    async def generate_questions(self, request):
        self.calls += 1
        raise RuntimeError("generation service unavailable")


class StaticEvaluationPort:
    """Returns a canned evaluation payload."""

    def __init__(self, payload: Any):
        self.payload = payload
        self.calls = 0

    async def evaluate_answers(self, questions, answers, config):
        self.calls += 1
        return self.payload


class FailingEvaluationPort:
    async def evaluate_answers(self, questions, answers, config):
        raise RuntimeError("evaluation service unavailable")


class SlowPort:
    """Never answers within any reasonable timeout."""

    async def generate_questions(self, request):
        await asyncio.sleep(30)

    async def evaluate_answers(self, questions, answers, config):
        await asyncio.sleep(30)


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        llm_enabled=False,
        llm_api_key="",
        langfuse_enabled=False,
        llm_timeout_seconds=0.2,
        timer_poll_interval_seconds=0.01,
    )


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def config():
    return make_config()


def make_config(**overrides) -> AssessmentConfig:
    values = {
        "role": "Backend Engineer",
        "company": "Acme",
        "skills": ("Python",),
        "proficiency": Proficiency.INTERMEDIATE,
        "question_count": 10,
        "question_types": (QuestionType.BEHAVIORAL,),
    }
    values.update(overrides)
    return AssessmentConfig(**values)


def make_questions(
    count: int = 10,
    question_type: QuestionType = QuestionType.BEHAVIORAL,
    difficulty: Proficiency = Proficiency.INTERMEDIATE,
) -> list[Question]:
    """Behavioral/intermediate questions have a 300 second limit."""
    return [
        Question(
            id=f"q_{i:02d}",
            text=f"Question number {i}",
            category="Python",
            question_type=question_type,
            difficulty=difficulty,
            sample_answer="A sample answer",
        )
        for i in range(1, count + 1)
    ]


def make_session(
    clock: ManualClock,
    mode: AssessmentMode = AssessmentMode.MOCK,
    count: int = 10,
    session_time_limit: int = 3600,
) -> AssessmentSession:
    return AssessmentSession(
        session_id="session-1",
        config=make_config(question_count=max(count, 5)),
        questions=make_questions(count),
        mode=mode,
        clock=clock,
        session_time_limit=session_time_limit,
    )
