"""
Tests for question-set generation, payload decoding and the template fallback.
"""

import json
from collections import Counter

import pytest

from conftest import (
    FailingGenerationPort,
    SlowPort,
    StaticGenerationPort,
    make_config,
)
from prepwise.core.ai_reasoning import AIResponseError
from prepwise.core.question_bank import (
    QuestionBankGenerator,
    compute_type_distribution,
    decode_question_payload,
    iter_fallback_variations,
)
from prepwise.models.assessment import Proficiency, QuestionType
from prepwise.models.question import normalize_question_text


CODING = QuestionType.TECHNICAL_CODING
BEHAVIORAL = QuestionType.BEHAVIORAL


def assert_unique(questions):
    keys = [normalize_question_text(q.text) for q in questions]
    assert len(keys) == len(set(keys)), "question texts must be unique ignoring case"
    ids = [q.id for q in questions]
    assert len(ids) == len(set(ids)), "question ids must be unique"


# ============================================================================
# DISTRIBUTION
# ============================================================================

def test_distribution_splits_evenly():
    assert compute_type_distribution(10, [CODING, BEHAVIORAL]) == {CODING: 5, BEHAVIORAL: 5}


def test_distribution_remainder_goes_to_earliest_types():
    types = [BEHAVIORAL, CODING, QuestionType.DEBUGGING]
    assert compute_type_distribution(11, types) == {BEHAVIORAL: 4, CODING: 4, QuestionType.DEBUGGING: 3}


def test_distribution_always_sums_to_total():
    all_types = list(QuestionType)
    for total in range(5, 31):
        for n_types in range(1, 9):
            quotas = compute_type_distribution(total, all_types[:n_types])
            assert sum(quotas.values()) == total
            assert max(quotas.values()) - min(quotas.values()) <= 1


def test_distribution_requires_a_type():
    with pytest.raises(ValueError):
        compute_type_distribution(10, [])


# ============================================================================
# PAYLOAD DECODING
# ============================================================================

@pytest.mark.parametrize("payload", [
    [{"question": "A"}],
    {"questions": [{"question": "A"}]},
    {"data": [{"question": "A"}]},
    json.dumps({"questions": [{"question": "A"}]}),
    'Here are your questions:\n[{"question": "A"}]\nGood luck!',
])
def test_decode_accepts_known_envelopes(payload):
    assert decode_question_payload(payload) == [{"question": "A"}]


@pytest.mark.parametrize("payload", [
    "not json at all",
    {"items": []},
    42,
    None,
])
def test_decode_rejects_unknown_shapes(payload):
    with pytest.raises(AIResponseError):
        decode_question_payload(payload)


# ============================================================================
# FALLBACK
# ============================================================================

def test_fallback_variations_rotate_skills_in_fixed_order():
    variations = list(iter_fallback_variations(CODING, ("Python", "Go")))
    assert len(variations) == 16
    assert [skill for skill, _, _ in variations[:4]] == ["Python", "Go", "Python", "Go"]
    assert variations == list(iter_fallback_variations(CODING, ("Python", "Go")))


@pytest.mark.asyncio
async def test_generation_without_ai_returns_exact_unique_set(settings):
    generator = QuestionBankGenerator(settings=settings)
    grid = [
        (5, (CODING,)),
        (7, (BEHAVIORAL, CODING, QuestionType.ARCHITECTURE)),
        (13, tuple(QuestionType)),
        (30, (QuestionType.SYSTEM_DESIGN, QuestionType.CASE_STUDY)),
    ]
    for count, types in grid:
        config = make_config(question_count=count, question_types=types, skills=("Python", "SQL"))
        questions = await generator.generate(config)

        assert len(questions) == count
        assert_unique(questions)
        expected = compute_type_distribution(count, types)
        assert Counter(q.question_type for q in questions) == Counter(expected)


@pytest.mark.asyncio
async def test_failing_ai_falls_back_to_templates_split_evenly(settings):
    port = FailingGenerationPort()
    generator = QuestionBankGenerator(port, settings)
    config = make_config(question_count=10, question_types=(CODING, BEHAVIORAL), skills=("X",))

    questions = await generator.generate(config)

    assert port.calls == 1
    assert len(questions) == 10
    assert_unique(questions)
    assert Counter(q.question_type for q in questions) == {CODING: 5, BEHAVIORAL: 5}
    assert all(not q.is_generated for q in questions)
    assert all(q.category == "X" for q in questions)


@pytest.mark.asyncio
async def test_fallback_questions_carry_reference_material(settings):
    questions = await QuestionBankGenerator(settings=settings).generate(make_config())
    for question in questions:
        assert question.sample_answer
        assert question.explanation
        assert len(question.links) == 2
        assert question.difficulty == Proficiency.INTERMEDIATE


@pytest.mark.asyncio
async def test_exhausted_fallback_synthesizes_numbered_variants(settings):
    config = make_config(question_count=30, question_types=(CODING,), skills=("Go",))
    questions = await QuestionBankGenerator(settings=settings).generate(config)

    assert len(questions) == 30
    assert_unique(questions)
    assert any("(Variation 2)" in q.text for q in questions)


@pytest.mark.asyncio
async def test_skills_differing_only_by_case_still_yield_unique_set(settings):
    config = make_config(question_count=20, question_types=(BEHAVIORAL,), skills=("React", "react"))
    questions = await QuestionBankGenerator(settings=settings).generate(config)

    assert len(questions) == 20
    assert_unique(questions)


@pytest.mark.asyncio
async def test_ids_are_sequential(settings):
    questions = await QuestionBankGenerator(settings=settings).generate(make_config(question_count=12))
    assert [q.id for q in questions] == [f"q_{i:02d}" for i in range(1, 13)]


# ============================================================================
# AI PATH
# ============================================================================

@pytest.mark.asyncio
async def test_ai_candidates_are_validated_deduplicated_and_quota_bound(settings):
    payload = {"questions": [
        {"question": "Reverse a string in Python", "type": "technical-coding", "category": "python",
         "answer": "Use slicing", "links": ["https://docs.python.org", 7]},
        {"question": "  reverse a STRING in python ", "type": "technical-coding", "category": "Python"},
        {"question": "Tell me about a conflict", "type": "behavioral", "category": "Leadership"},
        {"question": "Trivia night", "type": "trivia", "category": "Python"},
        {"question": "", "type": "technical-coding"},
        {"question": "Explain SQL joins with code", "type": "technical-coding", "category": "SQL"},
        {"question": "Write a SQL window function", "type": "technical-coding", "category": "SQL"},
        {"question": "A fourth coding question", "type": "technical-coding", "category": "SQL"},
        "not a question",
    ]}
    port = StaticGenerationPort(payload)
    config = make_config(question_count=6, question_types=(CODING, BEHAVIORAL), skills=("Python", "SQL"))

    questions = await QuestionBankGenerator(port, settings).generate(config)

    assert len(questions) == 6
    assert_unique(questions)
    assert Counter(q.question_type for q in questions) == {CODING: 3, BEHAVIORAL: 3}

    generated = [q for q in questions if q.is_generated]
    assert [q.text for q in generated] == [
        "Reverse a string in Python",
        "Tell me about a conflict",
        "Explain SQL joins with code",
        "Write a SQL window function",
    ]
    assert generated[0].category == "Python"
    assert generated[0].links == ("https://docs.python.org",)
    assert generated[1].category in config.skills
    assert all(q.category in config.skills for q in questions)

    request = port.requests[0]
    assert request.type_quotas == {CODING: 3, BEHAVIORAL: 3}
    assert request.target_count == 6


@pytest.mark.asyncio
async def test_malformed_ai_payload_falls_back(settings):
    port = StaticGenerationPort("I'm sorry, I cannot help with that.")
    config = make_config(question_count=5)

    questions = await QuestionBankGenerator(port, settings).generate(config)

    assert len(questions) == 5
    assert all(not q.is_generated for q in questions)


@pytest.mark.asyncio
async def test_slow_ai_times_out_and_falls_back(settings):
    config = make_config(question_count=5, question_types=(CODING,))
    questions = await QuestionBankGenerator(SlowPort(), settings).generate(config)

    assert len(questions) == 5
    assert_unique(questions)
