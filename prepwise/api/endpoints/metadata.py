"""
Metadata API endpoints

Provides reference data for:
- Question types
- Proficiency levels
- Assessment modes
"""

from fastapi import APIRouter
from pydantic import BaseModel

from prepwise.core.timing import question_time_limit
from prepwise.models.assessment import AssessmentMode, Proficiency, QuestionType

router = APIRouter()


# ============================================================================
# RESPONSE MODELS
# ============================================================================

class QuestionTypeInfo(BaseModel):
    """Information about a question type."""
    id: str
    name: str
    description: str
    time_limits: dict[str, int]


class ProficiencyInfo(BaseModel):
    """Information about a proficiency level."""
    id: str
    name: str


class ModeInfo(BaseModel):
    """Information about an assessment mode."""
    id: str
    name: str
    timed: bool
    reveals_answers: bool
    description: str


MODE_DESCRIPTIONS = {
    AssessmentMode.LEARN: "Self-paced practice with sample answers visible",
    AssessmentMode.MOCK: "Timed practice, sample answer revealed after each submission",
    AssessmentMode.EVALUATE: "Timed formal evaluation, no answers revealed",
}


# ============================================================================
# ENDPOINTS
# ============================================================================

@router.get("/question-types")
async def get_question_types() -> list[QuestionTypeInfo]:
    """Get all question types with their per-difficulty time limits."""
    return [
        QuestionTypeInfo(
            id=question_type.value,
            name=question_type.display_name,
            description=question_type.description,
            time_limits={
                level.value: question_time_limit(question_type, level)
                for level in Proficiency
            },
        )
        for question_type in QuestionType
    ]


@router.get("/proficiency-levels")
async def get_proficiency_levels() -> list[ProficiencyInfo]:
    """Get all proficiency levels."""
    return [
        ProficiencyInfo(id=level.value, name=level.value.capitalize())
        for level in Proficiency
    ]


@router.get("/modes")
async def get_modes() -> list[ModeInfo]:
    """Get all assessment modes."""
    return [
        ModeInfo(
            id=mode.value,
            name=mode.value.capitalize(),
            timed=mode.is_timed,
            reveals_answers=mode.reveals_answers,
            description=MODE_DESCRIPTIONS[mode],
        )
        for mode in AssessmentMode
    ]
