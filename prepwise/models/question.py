"""
Question models for PrepWise
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from prepwise.models.assessment import Proficiency, QuestionType


class Question(BaseModel):
    """A single assessment question."""

    model_config = ConfigDict(frozen=True)

    # Identification
    id: str = Field(..., description="Question ID, unique within a session")

    # Content
    text: str = Field(..., min_length=1, description="The question text")

    # Classification
    category: str = Field(..., description="Skill the question targets")
    question_type: QuestionType = Field(..., description="Type of question")
    difficulty: Proficiency = Field(..., description="Difficulty level")

    # Reference material
    sample_answer: str | None = Field(
        default=None,
        description="Model answer shown in learn/mock modes"
    )
    explanation: str | None = Field(
        default=None,
        description="What this question tests"
    )
    links: tuple[str, ...] = Field(
        default_factory=tuple,
        description="Further-reading resources"
    )

    # Metadata
    is_generated: bool = Field(
        default=True,
        description="Whether AI generated this question"
    )

    @property
    def normalized_text(self) -> str:
        """Key used for duplicate detection."""
        return normalize_question_text(self.text)


def normalize_question_text(text: str) -> str:
    """Normalize question text for comparison (case-insensitive, trimmed)."""
    return text.strip().lower()


class QuestionGenerationRequest(BaseModel):
    """Structured request sent to the AI question-generation port."""

    role: str
    company: str
    skills: list[str]
    proficiency: Proficiency
    type_quotas: dict[QuestionType, int]
    target_count: int

    def to_prompt_context(self) -> dict[str, Any]:
        """Flatten for prompt templating."""
        return {
            "role": self.role,
            "company": self.company or "a technology company",
            "skills": ", ".join(self.skills),
            "proficiency": self.proficiency.value,
            "target_count": self.target_count,
        }
