"""
Evaluation models for PrepWise

Defines the outcome buckets and the scored result of a completed assessment.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from prepwise.models.assessment import Proficiency, QuestionType


class OutcomeBucket(str, Enum):
    """Final classification of a single answer."""

    CORRECT = "correct"
    PARTIALLY_CORRECT = "partially-correct"
    INCORRECT = "incorrect"
    UNANSWERED = "unanswered"


class EvaluationSource(str, Enum):
    """Which path produced the evaluation."""

    AI = "ai"
    HEURISTIC = "heuristic"


class ScoredQuestion(BaseModel):
    """Per-question score tagged for aggregation."""

    question_id: str
    category: str
    question_type: QuestionType
    score: int = Field(..., ge=0, le=100)


class QuestionOutcome(BaseModel):
    """Scored and classified answer to one question."""

    model_config = ConfigDict(frozen=True)

    question_id: str
    question_text: str
    category: str
    question_type: QuestionType
    answer: str
    time_spent: int = Field(..., ge=0)
    score: int = Field(..., ge=0, le=100)
    bucket: OutcomeBucket


class QuestionBreakdown(BaseModel):
    """Partition of the question set into the four outcome buckets."""

    model_config = ConfigDict(frozen=True)

    correct: tuple[QuestionOutcome, ...] = ()
    partially_correct: tuple[QuestionOutcome, ...] = ()
    incorrect: tuple[QuestionOutcome, ...] = ()
    unanswered: tuple[QuestionOutcome, ...] = ()

    def all_outcomes(self) -> list[QuestionOutcome]:
        """Every outcome across all buckets."""
        return [
            *self.correct,
            *self.partially_correct,
            *self.incorrect,
            *self.unanswered,
        ]

    def bucket_of(self, question_id: str) -> OutcomeBucket | None:
        """Look up which bucket a question landed in."""
        for outcome in self.all_outcomes():
            if outcome.question_id == question_id:
                return outcome.bucket
        return None


class EvaluationResult(BaseModel):
    """Complete evaluation of one assessment session."""

    model_config = ConfigDict(frozen=True)

    # Overall
    score: int = Field(..., ge=0, le=100)
    total_questions: int = Field(..., ge=0)
    assessed_proficiency: Proficiency

    # Breakdowns
    category_scores: dict[str, int] = Field(default_factory=dict)
    type_scores: dict[QuestionType, int] = Field(default_factory=dict)

    # Narrative
    feedback: str = ""
    recommendations: tuple[str, ...] = ()

    # Per-question classification
    question_breakdown: QuestionBreakdown = Field(default_factory=QuestionBreakdown)

    # Provenance
    evaluation_source: EvaluationSource = EvaluationSource.HEURISTIC

    @property
    def answered_count(self) -> int:
        """Questions that received a non-empty answer."""
        return self.total_questions - len(self.question_breakdown.unanswered)
