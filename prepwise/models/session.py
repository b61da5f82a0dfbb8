"""
Assessment session state models for PrepWise
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class SessionState(str, Enum):
    """Session state machine states."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class QuestionStatus(str, Enum):
    """Per-question status shown in the progress view."""

    PENDING = "pending"
    ANSWERED = "answered"
    SKIPPED = "skipped"


class SessionEventType(str, Enum):
    """Events emitted by a session for UI and invitation collaborators."""

    QUESTION_ADVANCED = "question_advanced"
    ANSWER_RECORDED = "answer_recorded"
    QUESTION_DEADLINE = "question_deadline"
    SESSION_DEADLINE = "session_deadline"
    SESSION_COMPLETED = "session_completed"


class AnswerRecord(BaseModel):
    """The candidate's recorded answer to one question."""

    question_id: str
    answer: str = ""
    time_spent: int = Field(default=0, ge=0, description="Seconds spent")

    @property
    def is_answered(self) -> bool:
        """An empty (or whitespace-only) answer counts as unanswered."""
        return bool(self.answer.strip())


class SessionEvent(BaseModel):
    """A state change notification."""

    type: SessionEventType
    session_id: str
    question_id: str | None = None
    question_index: int | None = None
    occurred_at: datetime = Field(default_factory=datetime.utcnow)
    data: dict[str, Any] = Field(default_factory=dict)


class QuestionProgress(BaseModel):
    """Progress-dot entry for one question."""

    question_id: str
    index: int
    status: QuestionStatus
    is_current: bool = False
    revealed: bool = False


class SessionProgress(BaseModel):
    """Snapshot of a session for status endpoints and UI sync."""

    session_id: str
    state: SessionState
    current_index: int
    total_questions: int
    questions: list[QuestionProgress] = Field(default_factory=list)
    answered_count: int = 0
    skipped_count: int = 0
    initial_pass_complete: bool = False
    ready_to_finish: bool = False
    question_time_remaining: int | None = None
    session_time_remaining: int | None = None
