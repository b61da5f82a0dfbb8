"""
Question Bank Generator for PrepWise

Turns an assessment configuration into an ordered, deduplicated set of
exactly N questions, distributed across the configured question types.

Generation strategy:
- One AI request for the whole set (when an AI layer is configured)
- Every candidate validated, deduplicated and held to its type quota
- Any shortfall filled from the deterministic fallback templates

generate() never raises for AI problems: request errors, timeouts and
malformed payloads are logged and the fallback path takes over.
"""

import asyncio
import json
import logging
from itertools import count, product
from typing import Any, Iterator

from prepwise.config.settings import Settings, get_settings
from prepwise.core.ai_reasoning import AIResponseError
from prepwise.core.fallback_templates import FALLBACK_TEMPLATES, resource_links
from prepwise.models.assessment import AssessmentConfig, Proficiency, QuestionType
from prepwise.models.question import (
    Question,
    QuestionGenerationRequest,
    normalize_question_text,
)

logger = logging.getLogger(__name__)

PAYLOAD_ENVELOPE_KEYS = ("questions", "data")
DEFAULT_EXPLANATION = "This question assesses your understanding and practical experience."


# =========================================================================
# DISTRIBUTION AND DECODING
# =========================================================================

def compute_type_distribution(
    total: int,
    question_types: tuple[QuestionType, ...] | list[QuestionType],
) -> dict[QuestionType, int]:
    """
    Split a question count across types as evenly as possible.

    The remainder of the integer division goes to the earliest types in
    configuration order, one extra question each.

    Args:
        total: Number of questions in the set
        question_types: Configured types, in priority order

    Returns:
        Ordered mapping of type to quota, summing to total
    """
    if not question_types:
        raise ValueError("At least one question type is required")

    base, remainder = divmod(total, len(question_types))
    return {
        question_type: base + (1 if index < remainder else 0)
        for index, question_type in enumerate(question_types)
    }


def _load_json(payload: str) -> Any:
    """Parse JSON, tolerating prose around the outermost array or object."""
    try:
        return json.loads(payload)
    except json.JSONDecodeError:
        starts = [i for i in (payload.find("["), payload.find("{")) if i != -1]
        if not starts:
            raise
        start = min(starts)
        end = max(payload.rfind("]"), payload.rfind("}"))
        if end <= start:
            raise
        return json.loads(payload[start:end + 1])


def decode_question_payload(payload: Any) -> list[Any]:
    """
    Decode a generation response into a canonical list of candidates.

    Accepts a bare array, {"questions": [...]} or {"data": [...]}, either
    already parsed or as JSON text.

    Raises:
        AIResponseError: When the payload matches no known shape
    """
    if isinstance(payload, bytes):
        payload = payload.decode("utf-8")
    if isinstance(payload, str):
        try:
            payload = _load_json(payload)
        except json.JSONDecodeError as e:
            raise AIResponseError(f"Question payload is not valid JSON: {e}") from e

    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in PAYLOAD_ENVELOPE_KEYS:
            if isinstance(payload.get(key), list):
                return payload[key]

    raise AIResponseError(
        f"Unrecognized question payload shape: {type(payload).__name__}"
    )


# =========================================================================
# FALLBACK ENUMERATION
# =========================================================================

def iter_fallback_variations(
    question_type: QuestionType,
    skills: tuple[str, ...] | list[str],
) -> Iterator[tuple[str, str, str]]:
    """
    Enumerate (skill, modifier, subject) for one type in a fixed order.

    Modifiers form the outer loop so consecutive questions rotate through
    the skills. Subjects advance with every variation.
    """
    template = FALLBACK_TEMPLATES[question_type]
    for index, (modifier, skill) in enumerate(product(template.modifiers, skills)):
        yield skill, modifier, template.subjects[index % len(template.subjects)]


# =========================================================================
# SET BUILDER
# =========================================================================

class _QuestionSetBuilder:
    """Accumulates unique questions for one generation pass."""

    def __init__(self, config: AssessmentConfig, quotas: dict[QuestionType, int]):
        self.config = config
        self.remaining = dict(quotas)
        self.accepted: list[dict[str, Any]] = []
        self._seen: set[str] = set()
        self._skills_by_key = {skill.lower(): skill for skill in config.skills}
        self._round_robin = count()

    @property
    def is_complete(self) -> bool:
        return all(quota == 0 for quota in self.remaining.values())

    @property
    def shortfall(self) -> int:
        return sum(self.remaining.values())

    def _accept(self, fields: dict[str, Any]) -> bool:
        key = normalize_question_text(fields["text"])
        question_type = fields["question_type"]
        if not key or key in self._seen or self.remaining.get(question_type, 0) <= 0:
            return False
        self._seen.add(key)
        self.remaining[question_type] -= 1
        self.accepted.append(fields)
        return True

    def _resolve_category(self, raw_category: Any) -> str:
        if isinstance(raw_category, str):
            if raw_category.strip() in self.config.skills:
                return raw_category.strip()
            match = self._skills_by_key.get(raw_category.strip().lower())
            if match:
                return match
        skills = self.config.skills
        return skills[next(self._round_robin) % len(skills)]

    def offer_candidate(self, candidate: Any) -> bool:
        """Validate one AI candidate and accept it if it is new and fits a quota."""
        if not isinstance(candidate, dict):
            return False

        text = candidate.get("question") or candidate.get("text")
        if not isinstance(text, str) or not text.strip():
            return False

        try:
            question_type = QuestionType(candidate.get("type"))
        except ValueError:
            return False

        try:
            difficulty = Proficiency(str(candidate.get("difficulty", "")).lower())
        except ValueError:
            difficulty = self.config.proficiency

        sample_answer = candidate.get("answer")
        explanation = candidate.get("explanation")
        links = candidate.get("links")

        return self._accept({
            "text": text.strip(),
            "question_type": question_type,
            "category": self._resolve_category(candidate.get("category")),
            "difficulty": difficulty,
            "sample_answer": sample_answer if isinstance(sample_answer, str) and sample_answer.strip() else None,
            "explanation": explanation if isinstance(explanation, str) and explanation.strip() else DEFAULT_EXPLANATION,
            "links": tuple(link for link in links if isinstance(link, str)) if isinstance(links, list) else (),
            "is_generated": True,
        })

    def _offer_fallback(self, question_type: QuestionType, skill: str, modifier: str,
                        subject: str, variant: int | None = None) -> bool:
        template = FALLBACK_TEMPLATES[question_type]
        text, answer = template.render(skill, modifier, subject, self.config.role)
        if variant is not None:
            text = f"{text} (Variation {variant})"
        return self._accept({
            "text": text,
            "question_type": question_type,
            "category": skill,
            "difficulty": self.config.proficiency,
            "sample_answer": answer,
            "explanation": template.explanation,
            "links": resource_links(skill),
            "is_generated": False,
        })

    def fill_from_fallback(self) -> None:
        """Fill every unmet quota from the template enumeration."""
        skills = self.config.skills
        for question_type in list(self.remaining):
            for skill, modifier, subject in iter_fallback_variations(question_type, skills):
                if self.remaining[question_type] == 0:
                    break
                self._offer_fallback(question_type, skill, modifier, subject)

            # Variation space exhausted: synthesize numbered variants
            variant = 2
            while self.remaining[question_type] > 0:
                logger.warning(
                    f"Fallback variations exhausted for {question_type.value}, "
                    f"synthesizing variant {variant}"
                )
                for skill, modifier, subject in iter_fallback_variations(question_type, skills):
                    if self.remaining[question_type] == 0:
                        break
                    self._offer_fallback(question_type, skill, modifier, subject, variant)
                variant += 1

    def build(self) -> list[Question]:
        """Assign stable IDs and freeze the accepted questions."""
        return [
            Question(id=f"q_{index:02d}", **fields)
            for index, fields in enumerate(self.accepted, start=1)
        ]


# =========================================================================
# GENERATOR
# =========================================================================

class QuestionBankGenerator:
    """
    Produces the question set for a new assessment session.

    The AI layer is optional: without one every question comes from the
    fallback templates.
    """

    def __init__(self, ai_reasoning: Any = None, settings: Settings | None = None):
        """
        Initialize the generator.

        Args:
            ai_reasoning: Object implementing generate_questions(request)
            settings: Application settings (request timeout)
        """
        self.ai_reasoning = ai_reasoning
        self.settings = settings or get_settings()

    async def generate(self, config: AssessmentConfig) -> list[Question]:
        """
        Generate exactly config.question_count unique questions.

        Args:
            config: The assessment configuration

        Returns:
            Ordered question list with IDs q_01..q_NN
        """
        quotas = compute_type_distribution(config.question_count, config.question_types)
        builder = _QuestionSetBuilder(config, quotas)

        if self.ai_reasoning is not None:
            candidates = await self._request_candidates(config, quotas)
            for candidate in candidates:
                builder.offer_candidate(candidate)
            logger.info(
                f"Accepted {len(builder.accepted)} of {len(candidates)} AI candidates "
                f"for {config.role}"
            )

        if not builder.is_complete:
            logger.warning(
                f"Filling {builder.shortfall} of {config.question_count} questions "
                f"from fallback templates"
            )
            builder.fill_from_fallback()

        questions = builder.build()
        logger.info(f"Generated {len(questions)} questions for {config.role}")
        return questions

    async def _request_candidates(
        self,
        config: AssessmentConfig,
        quotas: dict[QuestionType, int],
    ) -> list[Any]:
        """Run the single AI request; any failure yields an empty list."""
        request = QuestionGenerationRequest(
            role=config.role,
            company=config.company,
            skills=list(config.skills),
            proficiency=config.proficiency,
            type_quotas=quotas,
            target_count=config.question_count,
        )

        try:
            payload = await asyncio.wait_for(
                self.ai_reasoning.generate_questions(request),
                timeout=self.settings.llm_timeout_seconds,
            )
            return decode_question_payload(payload)
        except asyncio.TimeoutError:
            logger.error(
                f"Question generation timed out after {self.settings.llm_timeout_seconds}s"
            )
        except Exception as e:
            logger.error(f"Question generation failed: {e}")
        return []
