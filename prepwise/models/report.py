"""
Report models for PrepWise

Defines the downloadable results document handed to persistence collaborators.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from prepwise.models.assessment import AssessmentConfig, AssessmentMode
from prepwise.models.evaluation import EvaluationResult
from prepwise.models.question import Question
from prepwise.models.session import AnswerRecord


class ResultsDocument(BaseModel):
    """Flat, self-contained record of one completed assessment."""

    # Metadata
    session_id: str
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    mode: AssessmentMode
    invitation_id: str | None = None

    # Inputs
    config: AssessmentConfig
    questions: list[Question] = Field(default_factory=list)

    # Outputs
    answers: list[AnswerRecord] = Field(default_factory=list)
    results: EvaluationResult
    duration_seconds: int = 0


class ResultsSummary(BaseModel):
    """Condensed results for quick view."""

    session_id: str
    score: int
    assessed_proficiency: str
    total_questions: int
    answered_questions: int
    correct: int
    partially_correct: int
    incorrect: int
    unanswered: int
