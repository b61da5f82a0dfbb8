"""
Scoring Aggregator for PrepWise

Pure functions shared by the AI and heuristic evaluation paths:
- Rounding and means
- Category / type / overall aggregation
- Outcome and proficiency classification
- Heuristic per-question scoring

All lookup tables are sorted (lower-bound, value) pairs.
"""

import math
import re
from collections import defaultdict
from fractions import Fraction
from typing import Iterable

from pydantic import BaseModel, Field

from prepwise.models.assessment import Proficiency, QuestionType
from prepwise.models.evaluation import (
    OutcomeBucket,
    QuestionBreakdown,
    QuestionOutcome,
    ScoredQuestion,
)
from prepwise.models.question import Question
from prepwise.models.session import AnswerRecord


# =========================================================================
# TABLES
# =========================================================================

# Answer length (stripped characters) -> base score
LENGTH_SCORE_TABLE: tuple[tuple[int, int], ...] = (
    (1, 10),
    (10, 25),
    (50, 45),
    (100, 65),
    (200, 80),
)

# Seconds spent -> score adjustment
TIME_ADJUSTMENT_TABLE: tuple[tuple[int, int], ...] = (
    (0, 0),
    (31, 10),
    (300, 5),
)

CODE_MARKER_BONUS = 15
CODE_MARKER_PATTERN = re.compile(
    r"\b(?:function|class|const|let|var|def|return|if|for|while)\b|=>|[{}]"
)

# Score -> outcome bucket for answered questions
OUTCOME_THRESHOLDS: tuple[tuple[int, OutcomeBucket], ...] = (
    (0, OutcomeBucket.INCORRECT),
    (50, OutcomeBucket.PARTIALLY_CORRECT),
    (80, OutcomeBucket.CORRECT),
)

# Overall score -> assessed proficiency
PROFICIENCY_THRESHOLDS: tuple[tuple[int, Proficiency], ...] = (
    (0, Proficiency.BEGINNER),
    (55, Proficiency.INTERMEDIATE),
    (70, Proficiency.ADVANCED),
    (85, Proficiency.EXPERT),
)

MIN_SCORE = 0
MAX_SCORE = 100


def lookup(table, value):
    """Value of the last entry whose lower bound is <= value."""
    result = None
    for lower_bound, entry in table:
        if value < lower_bound:
            break
        result = entry
    return result


# =========================================================================
# ARITHMETIC
# =========================================================================

def round_half_up(value: Fraction | int | float) -> int:
    """Round to the nearest integer, ties away from zero for positive values."""
    return math.floor(Fraction(value) + Fraction(1, 2))


def clamp_score(value: int) -> int:
    return max(MIN_SCORE, min(MAX_SCORE, value))


def mean_score(scores: Iterable[int]) -> int:
    """Arithmetic mean rounded half up; 0 for no scores."""
    scores = list(scores)
    if not scores:
        return 0
    return round_half_up(Fraction(sum(scores), len(scores)))


# =========================================================================
# AGGREGATION
# =========================================================================

class ScoreAggregate(BaseModel):
    """Overall, per-category and per-type means."""

    overall: int = Field(..., ge=0, le=100)
    category_scores: dict[str, int] = Field(default_factory=dict)
    type_scores: dict[QuestionType, int] = Field(default_factory=dict)


def aggregate_scores(scored: list[ScoredQuestion]) -> ScoreAggregate:
    """
    Roll per-question scores up into category, type and overall means.

    Every category and type present in the input appears as a key, in
    first-seen order.
    """
    by_category: dict[str, list[int]] = defaultdict(list)
    by_type: dict[QuestionType, list[int]] = defaultdict(list)
    for item in scored:
        by_category[item.category].append(item.score)
        by_type[item.question_type].append(item.score)

    return ScoreAggregate(
        overall=mean_score(item.score for item in scored),
        category_scores={category: mean_score(s) for category, s in by_category.items()},
        type_scores={question_type: mean_score(s) for question_type, s in by_type.items()},
    )


# =========================================================================
# CLASSIFICATION
# =========================================================================

def classify_score(score: int, answered: bool = True) -> OutcomeBucket:
    """Bucket for one question; unanswered always wins."""
    if not answered:
        return OutcomeBucket.UNANSWERED
    return lookup(OUTCOME_THRESHOLDS, score)


def assess_proficiency(score: int) -> Proficiency:
    """Proficiency label implied by an overall score."""
    return lookup(PROFICIENCY_THRESHOLDS, score)


def build_breakdown(
    questions: list[Question],
    records: dict[str, AnswerRecord],
    scores: dict[str, int],
) -> QuestionBreakdown:
    """
    Partition every question into exactly one outcome bucket.

    Unanswered questions land in the unanswered bucket regardless of any
    score supplied for them.
    """
    buckets: dict[OutcomeBucket, list[QuestionOutcome]] = {bucket: [] for bucket in OutcomeBucket}
    for question in questions:
        record = records.get(question.id) or AnswerRecord(question_id=question.id)
        answered = record.is_answered
        score = scores.get(question.id, 0) if answered else 0
        bucket = classify_score(score, answered)
        buckets[bucket].append(QuestionOutcome(
            question_id=question.id,
            question_text=question.text,
            category=question.category,
            question_type=question.question_type,
            answer=record.answer,
            time_spent=record.time_spent,
            score=score,
            bucket=bucket,
        ))

    return QuestionBreakdown(
        correct=tuple(buckets[OutcomeBucket.CORRECT]),
        partially_correct=tuple(buckets[OutcomeBucket.PARTIALLY_CORRECT]),
        incorrect=tuple(buckets[OutcomeBucket.INCORRECT]),
        unanswered=tuple(buckets[OutcomeBucket.UNANSWERED]),
    )


# =========================================================================
# HEURISTIC
# =========================================================================

def has_code_markers(answer: str) -> bool:
    return CODE_MARKER_PATTERN.search(answer) is not None


def heuristic_question_score(answer: str, time_spent: int, question_type: QuestionType) -> int:
    """
    Score an answer without AI.

    Base score from answer length, plus a time-spent adjustment, plus a
    bonus for code-like structure in technical questions. Empty answers
    score 0.
    """
    text = answer.strip()
    if not text:
        return 0

    score = lookup(LENGTH_SCORE_TABLE, len(text))
    score += lookup(TIME_ADJUSTMENT_TABLE, max(time_spent, 0))
    if question_type.is_technical and has_code_markers(text):
        score += CODE_MARKER_BONUS
    return clamp_score(score)
