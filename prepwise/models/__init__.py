"""
Data models and schemas for PrepWise

Contains Pydantic models for:
- Assessment configuration
- Questions
- Session state and answer records
- Evaluation results
- Results documents
"""

from prepwise.models.assessment import (
    AssessmentConfig,
    AssessmentMode,
    Proficiency,
    QuestionType,
)
from prepwise.models.question import Question, QuestionGenerationRequest
from prepwise.models.session import (
    AnswerRecord,
    SessionEvent,
    SessionEventType,
    SessionProgress,
    SessionState,
)
from prepwise.models.evaluation import (
    EvaluationResult,
    EvaluationSource,
    OutcomeBucket,
    QuestionBreakdown,
    QuestionOutcome,
)
from prepwise.models.report import ResultsDocument, ResultsSummary

__all__ = [
    # Assessment
    "AssessmentConfig",
    "AssessmentMode",
    "Proficiency",
    "QuestionType",
    # Question
    "Question",
    "QuestionGenerationRequest",
    # Session
    "AnswerRecord",
    "SessionEvent",
    "SessionEventType",
    "SessionProgress",
    "SessionState",
    # Evaluation
    "EvaluationResult",
    "EvaluationSource",
    "OutcomeBucket",
    "QuestionBreakdown",
    "QuestionOutcome",
    # Report
    "ResultsDocument",
    "ResultsSummary",
]
