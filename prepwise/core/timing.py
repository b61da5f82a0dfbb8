"""
Timing Controller for PrepWise

Two countdowns per session:
- Per-question limit, looked up by question type and difficulty
- Whole-session ceiling measured from session start

The controller is polled, never scheduled: the owner calls poll() and
receives each deadline at most once. The clock is injected so tests and
simulations can drive time explicitly.
"""

import math
import time
from enum import Enum
from typing import Protocol

from pydantic import BaseModel, ConfigDict

from prepwise.models.assessment import Proficiency, QuestionType


# =========================================================================
# CLOCKS
# =========================================================================

class Clock(Protocol):
    """Source of monotonic seconds."""

    def now(self) -> float: ...


class MonotonicClock:
    """Wall-independent clock backed by time.monotonic."""

    def now(self) -> float:
        return time.monotonic()


class ManualClock:
    """Clock that only moves when advanced."""

    def __init__(self, start: float = 0.0):
        self._now = start

    def now(self) -> float:
        return self._now

    def advance(self, seconds: float) -> None:
        if seconds < 0:
            raise ValueError("Clock cannot move backwards")
        self._now += seconds


# =========================================================================
# TIME LIMITS
# =========================================================================

DEFAULT_QUESTION_TIME_LIMIT = 300
SESSION_TIME_LIMIT = 3600

# Base seconds per question type; long-form types get more room
QUESTION_TIME_LIMITS: dict[QuestionType, int] = {
    QuestionType.TECHNICAL_CODING: 600,
    QuestionType.TECHNICAL_CONCEPTS: 300,
    QuestionType.SYSTEM_DESIGN: 900,
    QuestionType.BEHAVIORAL: 300,
    QuestionType.PROBLEM_SOLVING: 420,
    QuestionType.CASE_STUDY: 600,
    QuestionType.ARCHITECTURE: 720,
    QuestionType.DEBUGGING: 480,
}

# Extra seconds on top of the base for harder questions
DIFFICULTY_EXTRA_SECONDS: dict[Proficiency, int] = {
    Proficiency.BEGINNER: 0,
    Proficiency.INTERMEDIATE: 0,
    Proficiency.ADVANCED: 60,
    Proficiency.EXPERT: 120,
}


def question_time_limit(question_type: QuestionType, difficulty: Proficiency) -> int:
    """Seconds allowed for one visit to a question."""
    base = QUESTION_TIME_LIMITS.get(question_type, DEFAULT_QUESTION_TIME_LIMIT)
    return base + DIFFICULTY_EXTRA_SECONDS.get(difficulty, 0)


# =========================================================================
# DEADLINES
# =========================================================================

class DeadlineKind(str, Enum):
    """Which countdown ran out."""

    QUESTION = "question"
    SESSION = "session"


class DeadlineEvent(BaseModel):
    """A countdown reaching zero."""

    model_config = ConfigDict(frozen=True)

    kind: DeadlineKind
    limit: int
    elapsed: int


class TimingController:
    """
    Per-question and per-session countdowns for one session.

    Elapsed values are whole seconds (floored). A question visit is capped
    at its limit, so a visit that overruns contributes exactly the limit.
    """

    def __init__(self, clock: Clock | None = None, session_limit: int = SESSION_TIME_LIMIT):
        self.clock = clock or MonotonicClock()
        self.session_limit = session_limit

        self._running = False
        self._session_started_at: float | None = None
        self._session_fired = False

        self._question_started_at: float | None = None
        self._question_limit: int | None = None
        self._question_fired = False

    @property
    def running(self) -> bool:
        return self._running

    @property
    def question_limit(self) -> int | None:
        return self._question_limit

    def start(self) -> None:
        """Start the session countdown."""
        self._running = True
        self._session_started_at = self.clock.now()
        self._session_fired = False

    def start_question(self, limit: int | None = None) -> None:
        """
        Reset the per-question counter for a new visit.

        Args:
            limit: Seconds before a question deadline fires, or None to only
                measure time spent
        """
        if not self._running:
            raise RuntimeError("Timing controller is not running")
        self._question_started_at = self.clock.now()
        self._question_limit = limit
        self._question_fired = False

    def disarm_question(self) -> None:
        """Keep measuring the current visit but never fire its deadline."""
        self._question_limit = None

    def stop_question(self) -> int:
        """End the current visit and return its seconds."""
        elapsed = self.question_elapsed()
        self._question_started_at = None
        self._question_limit = None
        self._question_fired = False
        return elapsed

    def stop(self) -> None:
        """Discard both countdowns; nothing fires afterwards."""
        self._running = False
        self._question_started_at = None
        self._question_limit = None

    # =========================================================================
    # READINGS
    # =========================================================================

    def _raw_question_elapsed(self) -> int:
        if self._question_started_at is None:
            return 0
        return math.floor(self.clock.now() - self._question_started_at)

    def question_elapsed(self) -> int:
        """Whole seconds in the current visit, capped at the armed limit."""
        elapsed = self._raw_question_elapsed()
        if self._question_limit is not None:
            return min(elapsed, self._question_limit)
        return elapsed

    def session_elapsed(self) -> int:
        """Whole seconds since start, capped at the session ceiling."""
        if self._session_started_at is None:
            return 0
        return min(math.floor(self.clock.now() - self._session_started_at), self.session_limit)

    def question_remaining(self) -> int | None:
        if self._question_limit is None or self._question_started_at is None:
            return None
        return max(self._question_limit - self._raw_question_elapsed(), 0)

    def session_remaining(self) -> int | None:
        if self._session_started_at is None:
            return None
        return max(self.session_limit - self.session_elapsed(), 0)

    # =========================================================================
    # POLLING
    # =========================================================================

    def poll(self) -> list[DeadlineEvent]:
        """
        Report countdowns that reached zero since the last poll.

        The session deadline comes first when both fire together. Each
        deadline is reported once per question visit and once per session.
        """
        if not self._running:
            return []

        events = []
        if not self._session_fired and self._session_started_at is not None:
            raw = math.floor(self.clock.now() - self._session_started_at)
            if raw >= self.session_limit:
                self._session_fired = True
                events.append(DeadlineEvent(
                    kind=DeadlineKind.SESSION,
                    limit=self.session_limit,
                    elapsed=self.session_limit,
                ))

        if (
            self._question_limit is not None
            and not self._question_fired
            and self._raw_question_elapsed() >= self._question_limit
        ):
            self._question_fired = True
            events.append(DeadlineEvent(
                kind=DeadlineKind.QUESTION,
                limit=self._question_limit,
                elapsed=self._question_limit,
            ))

        return events
