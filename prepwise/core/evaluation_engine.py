"""
Evaluation Engine for PrepWise

Turns a completed session's questions and answer records into one
EvaluationResult.

Primary path: a single AI request scoring every answer, strictly
validated. Fallback path: deterministic heuristic scoring. The engine
never raises for AI problems; any request error, timeout or validation
failure is logged and the heuristic result is returned instead.
"""

import asyncio
import json
import logging
import math
from typing import Any

from prepwise.config.settings import Settings, get_settings
from prepwise.core.scoring import (
    aggregate_scores,
    assess_proficiency,
    build_breakdown,
    heuristic_question_score,
    round_half_up,
)
from prepwise.models.assessment import AssessmentConfig, Proficiency, QuestionType
from prepwise.models.evaluation import (
    EvaluationResult,
    EvaluationSource,
    ScoredQuestion,
)
from prepwise.models.question import Question
from prepwise.models.session import AnswerRecord

logger = logging.getLogger(__name__)


class EvaluationValidationError(Exception):
    """Raised when an AI evaluation payload fails validation."""
    pass


class EvaluationEngine:
    """
    Central evaluation component for completed assessments.

    Responsibilities:
    - Request and validate the AI evaluation
    - Score answers heuristically when AI is unavailable
    - Classify every question into an outcome bucket
    - Produce feedback and recommendations
    """

    def __init__(self, ai_reasoning: Any = None, settings: Settings | None = None):
        """
        Initialize evaluation engine.

        Args:
            ai_reasoning: Object implementing evaluate_answers(questions, answers, config)
            settings: Application settings (request timeout)
        """
        self.ai_reasoning = ai_reasoning
        self.settings = settings or get_settings()

    # =========================================================================
    # ENTRY POINT
    # =========================================================================

    async def evaluate(
        self,
        questions: list[Question],
        answers: list[AnswerRecord] | dict[str, AnswerRecord],
        config: AssessmentConfig,
    ) -> EvaluationResult:
        """
        Evaluate every answer in a session.

        Args:
            questions: The session's question set
            answers: Answer records, as a list or keyed by question ID
            config: The assessment configuration

        Returns:
            Complete EvaluationResult
        """
        records = self._normalize_records(questions, answers)

        if self.ai_reasoning is not None:
            try:
                payload = await asyncio.wait_for(
                    self.ai_reasoning.evaluate_answers(questions, records, config),
                    timeout=self.settings.llm_timeout_seconds,
                )
                result = self.parse_ai_evaluation(payload, questions, records)
                logger.info(f"AI evaluation accepted: score {result.score}")
                return result
            except asyncio.TimeoutError:
                logger.warning(
                    f"AI evaluation timed out after {self.settings.llm_timeout_seconds}s, "
                    f"using heuristic fallback"
                )
            except EvaluationValidationError as e:
                logger.warning(f"AI evaluation rejected, using heuristic fallback: {e}")
            except Exception as e:
                logger.error(f"AI evaluation failed, using heuristic fallback: {e}")

        return self.evaluate_heuristically(questions, records)

    def _normalize_records(
        self,
        questions: list[Question],
        answers: list[AnswerRecord] | dict[str, AnswerRecord],
    ) -> dict[str, AnswerRecord]:
        """Exactly one record per question; missing ones become unanswered."""
        if isinstance(answers, dict):
            by_id = dict(answers)
        else:
            by_id = {record.question_id: record for record in answers}
        return {
            q.id: by_id.get(q.id) or AnswerRecord(question_id=q.id)
            for q in questions
        }

    # =========================================================================
    # AI PATH
    # =========================================================================

    def parse_ai_evaluation(
        self,
        payload: Any,
        questions: list[Question],
        records: dict[str, AnswerRecord],
    ) -> EvaluationResult:
        """
        Validate an AI evaluation payload and build the result.

        Raises:
            EvaluationValidationError: On unparseable JSON, out-of-range
                scores or missing category/type/question entries
        """
        data = self._decode(payload)

        overall = self._validate_score(data.get("score"), "score")

        categories = list(dict.fromkeys(q.category for q in questions))
        category_scores = self._validate_score_map(
            data.get("categoryScores"), categories, "categoryScores"
        )

        type_keys = list(dict.fromkeys(q.question_type.value for q in questions))
        raw_type_scores = self._validate_score_map(
            data.get("typeScores"), type_keys, "typeScores"
        )
        type_scores = {QuestionType(key): score for key, score in raw_type_scores.items()}

        answered_ids = [q.id for q in questions if records[q.id].is_answered]
        question_scores = self._validate_score_map(
            data.get("questionScores"), answered_ids, "questionScores"
        )

        try:
            proficiency = Proficiency(str(data.get("assessedProficiency", "")).lower())
        except ValueError:
            proficiency = assess_proficiency(overall)

        feedback = data.get("feedback")
        if not isinstance(feedback, str) or not feedback.strip():
            feedback = self._generate_feedback(overall, len(answered_ids), len(questions))

        recommendations = data.get("recommendations")
        if isinstance(recommendations, list):
            recommendations = [r for r in recommendations if isinstance(r, str) and r.strip()]
        else:
            recommendations = []

        return EvaluationResult(
            score=overall,
            total_questions=len(questions),
            assessed_proficiency=proficiency,
            category_scores=category_scores,
            type_scores=type_scores,
            feedback=feedback,
            recommendations=tuple(recommendations),
            question_breakdown=build_breakdown(questions, records, question_scores),
            evaluation_source=EvaluationSource.AI,
        )

    def _decode(self, payload: Any) -> dict[str, Any]:
        if isinstance(payload, bytes):
            payload = payload.decode("utf-8")
        if isinstance(payload, str):
            text = payload.strip()
            start, end = text.find("{"), text.rfind("}")
            if start == -1 or end <= start:
                raise EvaluationValidationError("Evaluation response contains no JSON object")
            try:
                payload = json.loads(text[start:end + 1])
            except json.JSONDecodeError as e:
                raise EvaluationValidationError(f"Evaluation response is not valid JSON: {e}") from e
        if not isinstance(payload, dict):
            raise EvaluationValidationError(
                f"Evaluation response must be an object, got {type(payload).__name__}"
            )
        return payload

    def _validate_score(self, value: Any, field: str) -> int:
        """Accept integral numbers in [0, 100]; floats are rounded half up."""
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise EvaluationValidationError(f"{field} must be a number, got {value!r}")
        if isinstance(value, float) and not math.isfinite(value):
            raise EvaluationValidationError(f"{field} is not finite")
        if value < 0 or value > 100:
            raise EvaluationValidationError(f"{field} out of range: {value}")
        return round_half_up(value)

    def _validate_score_map(self, value: Any, required: list[str], field: str) -> dict[str, int]:
        """
        Validate a key -> score map.

        Keys are matched case-insensitively; every required key must be
        present and extra keys are dropped. All supplied scores are range
        checked, extras included.
        """
        if not isinstance(value, dict):
            raise EvaluationValidationError(f"{field} must be an object")

        by_key = {}
        for key, score in value.items():
            by_key[str(key).strip().lower()] = self._validate_score(score, f"{field}[{key}]")

        result = {}
        for key in required:
            if key.lower() not in by_key:
                raise EvaluationValidationError(f"{field} is missing an entry for '{key}'")
            result[key] = by_key[key.lower()]
        return result

    # =========================================================================
    # HEURISTIC PATH
    # =========================================================================

    def evaluate_heuristically(
        self,
        questions: list[Question],
        answers: list[AnswerRecord] | dict[str, AnswerRecord],
    ) -> EvaluationResult:
        """
        Deterministic evaluation used when AI is unavailable.

        Uses answer length, time spent and code-like structure to
        approximate per-question scores.
        """
        records = self._normalize_records(questions, answers)

        scored = []
        for question in questions:
            record = records[question.id]
            scored.append(ScoredQuestion(
                question_id=question.id,
                category=question.category,
                question_type=question.question_type,
                score=heuristic_question_score(record.answer, record.time_spent, question.question_type),
            ))

        aggregate = aggregate_scores(scored)
        answered = sum(1 for record in records.values() if record.is_answered)

        return EvaluationResult(
            score=aggregate.overall,
            total_questions=len(questions),
            assessed_proficiency=assess_proficiency(aggregate.overall),
            category_scores=aggregate.category_scores,
            type_scores=aggregate.type_scores,
            feedback=self._generate_feedback(aggregate.overall, answered, len(questions)),
            recommendations=tuple(self._generate_recommendations(aggregate.overall, answered, len(questions))),
            question_breakdown=build_breakdown(
                questions, records, {item.question_id: item.score for item in scored}
            ),
            evaluation_source=EvaluationSource.HEURISTIC,
        )

    def _generate_feedback(self, score: int, answered: int, total: int) -> str:
        """Summary paragraph for a score."""
        if score >= 70:
            summary = "Your answers showed good understanding of the topics."
        elif score >= 40:
            summary = "Your answers showed basic understanding but could be more comprehensive."
        else:
            summary = "Your answers were quite brief and could benefit from more detailed explanations."

        return (
            f"Based on your responses, you scored {score}%. "
            f"You answered {answered} out of {total} questions. {summary}"
        )

    def _generate_recommendations(self, score: int, answered: int, total: int) -> list[str]:
        """Ordered recommendations for the heuristic path."""
        return [
            "Try to answer all questions completely" if answered < total
            else "Good job answering all questions",
            "Focus on providing more detailed and comprehensive answers" if score < 50
            else "Continue building on your technical knowledge",
            "Practice explaining technical concepts with examples",
            "Review the expected answers to understand what was missing",
            "Consider the time spent on each question for better pacing",
        ]
