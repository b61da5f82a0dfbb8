"""
Tests for AI evaluation validation and the heuristic fallback.
"""

import json

import pytest

from conftest import (
    FailingEvaluationPort,
    SlowPort,
    StaticEvaluationPort,
    make_config,
)
from prepwise.core.evaluation_engine import EvaluationEngine
from prepwise.models.assessment import Proficiency, QuestionType
from prepwise.models.evaluation import EvaluationSource, OutcomeBucket
from prepwise.models.question import Question
from prepwise.models.session import AnswerRecord


CODING = QuestionType.TECHNICAL_CODING
BEHAVIORAL = QuestionType.BEHAVIORAL


def build_questions() -> list[Question]:
    specs = [
        ("q_01", "Python", CODING),
        ("q_02", "Python", BEHAVIORAL),
        ("q_03", "SQL", CODING),
        ("q_04", "SQL", BEHAVIORAL),
    ]
    return [
        Question(
            id=qid,
            text=f"Question {qid}",
            category=category,
            question_type=question_type,
            difficulty=Proficiency.INTERMEDIATE,
        )
        for qid, category, question_type in specs
    ]


def build_answers() -> list[AnswerRecord]:
    return [
        AnswerRecord(question_id="q_01", answer="def f(x):\n    return x * 2\n" * 10, time_spent=120),
        AnswerRecord(question_id="q_02", answer="I talked to the team and we agreed on a plan.", time_spent=45),
        AnswerRecord(question_id="q_03", answer="SELECT *", time_spent=20),
        AnswerRecord(question_id="q_04", answer="", time_spent=0),
    ]


def valid_payload(**overrides) -> dict:
    payload = {
        "score": 72,
        "assessedProficiency": "advanced",
        "categoryScores": {"Python": 80, "SQL": 60, "Rust": 99},
        "typeScores": {"technical-coding": 75, "behavioral": 70},
        "questionScores": {"q_01": 85, "q_02": 70, "q_03": 40, "q_04": 90},
        "feedback": "Solid fundamentals.",
        "recommendations": ["Practice SQL", 5, ""],
    }
    payload.update(overrides)
    return payload


def all_scores(result) -> list[int]:
    scores = [result.score, *result.category_scores.values(), *result.type_scores.values()]
    scores.extend(o.score for o in result.question_breakdown.all_outcomes())
    return scores


def assert_well_formed(result, questions):
    assert all(isinstance(s, int) and 0 <= s <= 100 for s in all_scores(result))
    ids = sorted(o.question_id for o in result.question_breakdown.all_outcomes())
    assert ids == sorted(q.id for q in questions), "buckets must partition the question set"
    assert result.total_questions == len(questions)
    assert set(result.category_scores) == {q.category for q in questions}
    assert set(result.type_scores) == {q.question_type for q in questions}


# ============================================================================
# AI PATH
# ============================================================================

@pytest.mark.asyncio
async def test_valid_ai_evaluation_is_accepted(settings):
    questions = build_questions()
    port = StaticEvaluationPort(valid_payload())

    result = await EvaluationEngine(port, settings).evaluate(questions, build_answers(), make_config())

    assert port.calls == 1
    assert result.evaluation_source == EvaluationSource.AI
    assert result.score == 72
    assert result.assessed_proficiency == Proficiency.ADVANCED
    assert result.category_scores == {"Python": 80, "SQL": 60}, "unknown categories are dropped"
    assert result.type_scores == {CODING: 75, BEHAVIORAL: 70}
    assert result.recommendations == ("Practice SQL",)

    breakdown = result.question_breakdown
    assert breakdown.bucket_of("q_01") == OutcomeBucket.CORRECT
    assert breakdown.bucket_of("q_02") == OutcomeBucket.PARTIALLY_CORRECT
    assert breakdown.bucket_of("q_03") == OutcomeBucket.INCORRECT
    assert breakdown.bucket_of("q_04") == OutcomeBucket.UNANSWERED
    assert breakdown.unanswered[0].score == 0
    assert_well_formed(result, questions)


@pytest.mark.asyncio
async def test_ai_response_as_text_with_surrounding_prose(settings):
    text = "Here is the evaluation:\n" + json.dumps(valid_payload()) + "\nThanks!"
    result = await EvaluationEngine(StaticEvaluationPort(text), settings).evaluate(
        build_questions(), build_answers(), make_config()
    )
    assert result.evaluation_source == EvaluationSource.AI


@pytest.mark.asyncio
async def test_out_of_range_category_score_falls_back_to_heuristic(settings):
    questions = build_questions()
    payload = valid_payload(categoryScores={"Python": 150, "SQL": 60})

    result = await EvaluationEngine(StaticEvaluationPort(payload), settings).evaluate(
        questions, build_answers(), make_config()
    )

    assert result.evaluation_source == EvaluationSource.HEURISTIC
    assert_well_formed(result, questions)


@pytest.mark.parametrize("overrides", [
    {"typeScores": {"technical-coding": 75}},
    {"categoryScores": {"Python": 80}},
    {"questionScores": {"q_01": 85, "q_02": 70}},
    {"score": -1},
    {"score": "seventy"},
    {"score": True},
    {"typeScores": {"technical-coding": 75, "behavioral": 70, "debugging": 101}},
])
@pytest.mark.asyncio
async def test_invalid_ai_evaluations_are_rejected(settings, overrides):
    questions = build_questions()
    result = await EvaluationEngine(StaticEvaluationPort(valid_payload(**overrides)), settings).evaluate(
        questions, build_answers(), make_config()
    )
    assert result.evaluation_source == EvaluationSource.HEURISTIC
    assert_well_formed(result, questions)


@pytest.mark.asyncio
async def test_unparseable_ai_response_falls_back(settings):
    result = await EvaluationEngine(StaticEvaluationPort("{not json"), settings).evaluate(
        build_questions(), build_answers(), make_config()
    )
    assert result.evaluation_source == EvaluationSource.HEURISTIC


@pytest.mark.asyncio
async def test_unknown_proficiency_label_is_derived_from_score(settings):
    payload = valid_payload(score=90, assessedProficiency="wizard")
    result = await EvaluationEngine(StaticEvaluationPort(payload), settings).evaluate(
        build_questions(), build_answers(), make_config()
    )
    assert result.evaluation_source == EvaluationSource.AI
    assert result.assessed_proficiency == Proficiency.EXPERT


@pytest.mark.asyncio
async def test_ai_errors_and_timeouts_fall_back(settings):
    questions = build_questions()
    for port in (FailingEvaluationPort(), SlowPort()):
        result = await EvaluationEngine(port, settings).evaluate(questions, build_answers(), make_config())
        assert result.evaluation_source == EvaluationSource.HEURISTIC
        assert_well_formed(result, questions)


# ============================================================================
# HEURISTIC PATH
# ============================================================================

@pytest.mark.asyncio
async def test_heuristic_evaluation(settings):
    questions = build_questions()
    result = await EvaluationEngine(settings=settings).evaluate(questions, build_answers(), make_config())

    assert result.evaluation_source == EvaluationSource.HEURISTIC
    assert_well_formed(result, questions)

    breakdown = result.question_breakdown
    assert breakdown.bucket_of("q_01") == OutcomeBucket.CORRECT
    assert breakdown.bucket_of("q_03") == OutcomeBucket.INCORRECT
    assert breakdown.bucket_of("q_04") == OutcomeBucket.UNANSWERED
    assert result.answered_count == 3

    assert result.feedback.startswith(f"Based on your responses, you scored {result.score}%.")
    assert "You answered 3 out of 4 questions." in result.feedback
    assert result.recommendations[0] == "Try to answer all questions completely"
    assert len(result.recommendations) == 5


@pytest.mark.asyncio
async def test_missing_records_count_as_unanswered(settings):
    questions = build_questions()
    result = await EvaluationEngine(settings=settings).evaluate(questions, [], make_config())

    assert result.score == 0
    assert len(result.question_breakdown.unanswered) == 4
    assert result.assessed_proficiency == Proficiency.BEGINNER
    assert result.recommendations[1] == "Focus on providing more detailed and comprehensive answers"
