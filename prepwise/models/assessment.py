"""
Assessment configuration models for PrepWise

Defines the strict taxonomy for:
- Question types
- Proficiency levels
- Assessment modes
- The immutable assessment configuration
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class QuestionType(str, Enum):
    """The eight kinds of interview question."""

    TECHNICAL_CODING = "technical-coding"
    TECHNICAL_CONCEPTS = "technical-concepts"
    SYSTEM_DESIGN = "system-design"
    BEHAVIORAL = "behavioral"
    PROBLEM_SOLVING = "problem-solving"
    CASE_STUDY = "case-study"
    ARCHITECTURE = "architecture"
    DEBUGGING = "debugging"

    @property
    def display_name(self) -> str:
        """Human-readable type name."""
        names = {
            "technical-coding": "Technical Coding",
            "technical-concepts": "Technical Concepts",
            "system-design": "System Design",
            "behavioral": "Behavioral",
            "problem-solving": "Problem Solving",
            "case-study": "Case Study",
            "architecture": "Architecture",
            "debugging": "Debugging",
        }
        return names.get(self.value, self.value)

    @property
    def description(self) -> str:
        """What questions of this type cover."""
        descriptions = {
            "technical-coding": "coding problems, algorithms, and data structures",
            "technical-concepts": "theoretical concepts and fundamental principles",
            "system-design": "system architecture, scalability, and design patterns",
            "behavioral": "soft skills, teamwork, and past experiences",
            "problem-solving": "logical reasoning and analytical thinking",
            "case-study": "real-world scenarios and business problems",
            "architecture": "software design patterns and architectural decisions",
            "debugging": "code review, troubleshooting, and error analysis",
        }
        return descriptions.get(self.value, "general interview questions")

    @property
    def is_technical(self) -> bool:
        """Whether answers are expected to contain code-like structure."""
        return self in (
            QuestionType.TECHNICAL_CODING,
            QuestionType.TECHNICAL_CONCEPTS,
            QuestionType.DEBUGGING,
        )


class Proficiency(str, Enum):
    """Proficiency levels, used both as input and as assessed output."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"


class AssessmentMode(str, Enum):
    """Assessment mode options."""

    LEARN = "learn"        # Self-paced, sample answers visible
    MOCK = "mock"          # Timed, answer revealed after submit
    EVALUATE = "evaluate"  # Timed formal evaluation, nothing revealed

    @property
    def is_timed(self) -> bool:
        """Whether per-question and session deadlines are enforced."""
        return self in (AssessmentMode.MOCK, AssessmentMode.EVALUATE)

    @property
    def reveals_answers(self) -> bool:
        """Whether the sample answer is shown once a question is submitted."""
        return self in (AssessmentMode.LEARN, AssessmentMode.MOCK)


class AssessmentConfig(BaseModel):
    """User's (or invitation's) assessment configuration."""

    model_config = ConfigDict(frozen=True)

    role: str = Field(
        ..., min_length=1, max_length=150,
        description="Target role, e.g. 'Frontend Engineer'"
    )
    company: str = Field(
        default="", max_length=200,
        description="Company the assessment is tailored to"
    )
    skills: tuple[str, ...] = Field(
        ..., min_length=1, max_length=20,
        description="Skills to cover (case-sensitive, no duplicates)"
    )
    proficiency: Proficiency = Field(
        default=Proficiency.INTERMEDIATE,
        description="Target proficiency level"
    )
    question_count: int = Field(
        default=10, ge=5, le=30,
        description="Number of questions in the assessment"
    )
    question_types: tuple[QuestionType, ...] = Field(
        ..., min_length=1, max_length=8,
        description="Question types to draw from, in priority order"
    )

    @field_validator("role", "company")
    @classmethod
    def _strip_text(cls, value: str) -> str:
        return value.strip()

    @field_validator("skills")
    @classmethod
    def _validate_skills(cls, skills: tuple[str, ...]) -> tuple[str, ...]:
        cleaned = tuple(skill.strip() for skill in skills)
        for skill in cleaned:
            if not skill:
                raise ValueError("Skills must be non-empty strings")
            if len(skill) > 50:
                raise ValueError(f"Skill '{skill[:20]}...' exceeds 50 characters")
        if len(set(cleaned)) != len(cleaned):
            raise ValueError("Skills must not contain duplicates")
        return cleaned

    @field_validator("question_types")
    @classmethod
    def _validate_types(cls, types: tuple[QuestionType, ...]) -> tuple[QuestionType, ...]:
        if len(set(types)) != len(types):
            raise ValueError("Question types must not contain duplicates")
        return types
