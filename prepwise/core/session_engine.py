"""
Assessment Session - State machine for one candidate's pass through a question set.

Owns position, answer records, skip bookkeeping and the session's timing
controller. All navigation is synchronous; deadline handling happens when
the owner calls tick().

States:
    NOT_STARTED → IN_PROGRESS → COMPLETED
         ↓             ↓
         └──────→ ABANDONED
"""

import logging
from datetime import datetime
from typing import Callable

from prepwise.core.timing import (
    SESSION_TIME_LIMIT,
    Clock,
    DeadlineEvent,
    DeadlineKind,
    TimingController,
    question_time_limit,
)
from prepwise.models.assessment import AssessmentConfig, AssessmentMode
from prepwise.models.question import Question
from prepwise.models.session import (
    AnswerRecord,
    QuestionProgress,
    QuestionStatus,
    SessionEvent,
    SessionEventType,
    SessionProgress,
    SessionState,
)

logger = logging.getLogger(__name__)


class IllegalTransitionError(Exception):
    """Raised when an action is not allowed in the session's current state."""
    pass


class AssessmentSession:
    """
    Navigation and timing state machine for a single assessment.

    Answer records are written only by submit and skip (explicit or forced).
    A question holding a submitted answer is never overwritten.
    """

    VALID_TRANSITIONS: dict[SessionState, list[SessionState]] = {
        SessionState.NOT_STARTED: [SessionState.IN_PROGRESS, SessionState.ABANDONED],
        SessionState.IN_PROGRESS: [SessionState.COMPLETED, SessionState.ABANDONED],
        SessionState.COMPLETED: [],  # Terminal state
        SessionState.ABANDONED: [],  # Terminal state
    }

    def __init__(
        self,
        session_id: str,
        config: AssessmentConfig,
        questions: list[Question],
        mode: AssessmentMode,
        clock: Clock | None = None,
        session_time_limit: int = SESSION_TIME_LIMIT,
        invitation_id: str | None = None,
    ):
        if not questions:
            raise ValueError("A session needs at least one question")

        self.session_id = session_id
        self.config = config
        self.questions = list(questions)
        self.mode = mode
        self.invitation_id = invitation_id
        self.timer = TimingController(clock, session_time_limit)

        self.state = SessionState.NOT_STARTED
        self.current_index = 0
        self.ready_to_finish = False
        self.finished_by_deadline = False
        self.created_at = datetime.utcnow()
        self.started_at: datetime | None = None
        self.completed_at: datetime | None = None
        self._duration = 0

        self._records: dict[str, AnswerRecord] = {}
        self._accumulated: dict[str, int] = {q.id: 0 for q in self.questions}
        self._revealed: set[str] = set()
        self._listeners: list[Callable[[SessionEvent], None]] = []

    # =========================================================================
    # LISTENERS
    # =========================================================================

    def add_listener(self, callback: Callable[[SessionEvent], None]) -> None:
        """Register a callback for session events."""
        self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[SessionEvent], None]) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _emit(self, event_type: SessionEventType, index: int | None = None, **data) -> None:
        event = SessionEvent(
            type=event_type,
            session_id=self.session_id,
            question_id=self.questions[index].id if index is not None else None,
            question_index=index,
            data=data,
        )
        for callback in self._listeners:
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Session listener error: {e}")

    # =========================================================================
    # STATE HELPERS
    # =========================================================================

    def _transition(self, new_state: SessionState) -> None:
        old_state = self.state
        if new_state not in self.VALID_TRANSITIONS.get(old_state, []):
            raise IllegalTransitionError(
                f"Invalid transition from {old_state.value} to {new_state.value}"
            )
        self.state = new_state
        logger.info(f"Session {self.session_id}: {old_state.value} → {new_state.value}")

    def _require_in_progress(self, action: str) -> None:
        if self.state != SessionState.IN_PROGRESS:
            raise IllegalTransitionError(
                f"Cannot {action} while session is {self.state.value}"
            )

    @property
    def current_question(self) -> Question:
        return self.questions[self.current_index]

    def _is_submitted(self, question_id: str) -> bool:
        record = self._records.get(question_id)
        return record is not None and record.is_answered

    def _is_skipped(self, question_id: str) -> bool:
        record = self._records.get(question_id)
        return record is not None and not record.is_answered

    def _time_spent(self, question: Question) -> int:
        """Accumulated seconds for a question, including the live visit."""
        spent = self._accumulated[question.id]
        if question is self.current_question and self.state == SessionState.IN_PROGRESS:
            spent += self.timer.question_elapsed()
        return spent

    def _arm_current(self) -> None:
        question = self.current_question
        limit = None
        if self.mode.is_timed and not self._is_submitted(question.id):
            limit = question_time_limit(question.question_type, question.difficulty)
        self.timer.start_question(limit)

    def _leave_current(self) -> None:
        self._accumulated[self.current_question.id] += self.timer.stop_question()

    def _move_to(self, index: int) -> None:
        self._leave_current()
        self.current_index = index
        self._arm_current()
        self._emit(SessionEventType.QUESTION_ADVANCED, self.current_index)

    # =========================================================================
    # ACTIONS
    # =========================================================================

    def start(self) -> None:
        """Start the session and the first question's countdown."""
        self._transition(SessionState.IN_PROGRESS)
        self.started_at = datetime.utcnow()
        self.timer.start()
        self._arm_current()
        self._emit(SessionEventType.QUESTION_ADVANCED, self.current_index)

    def submit(self, answer: str) -> AnswerRecord:
        """
        Record an answer for the current question.

        Raises:
            IllegalTransitionError: If not in progress, the answer is empty,
                or the question already holds a submitted answer
        """
        self._require_in_progress("submit")
        question = self.current_question

        if self._is_submitted(question.id):
            raise IllegalTransitionError(f"Question {question.id} has already been answered")
        if not answer or not answer.strip():
            raise IllegalTransitionError("Cannot submit an empty answer, skip the question instead")

        record = AnswerRecord(
            question_id=question.id,
            answer=answer,
            time_spent=self._time_spent(question),
        )
        self._records[question.id] = record
        self.timer.disarm_question()

        if self.mode.reveals_answers:
            self._revealed.add(question.id)

        self._emit(SessionEventType.ANSWER_RECORDED, self.current_index, skipped=False)
        return record

    def skip(self) -> AnswerRecord:
        """
        Record the current question as skipped, keeping position.

        Skipping a question that already holds a submitted answer leaves
        that answer in place.
        """
        self._require_in_progress("skip")
        question = self.current_question

        if self._is_submitted(question.id):
            logger.debug(f"Question {question.id} already answered, skip ignored")
            return self._records[question.id]

        record = self._record_skip(question)
        self.timer.disarm_question()
        self._emit(SessionEventType.ANSWER_RECORDED, self.current_index, skipped=True)
        return record

    def _record_skip(self, question: Question) -> AnswerRecord:
        record = AnswerRecord(
            question_id=question.id,
            answer="",
            time_spent=self._time_spent(question),
        )
        self._records[question.id] = record
        return record

    def next(self) -> bool:
        """
        Move to the next question.

        Returns:
            False when already on the last question; the session is then
            flagged ready to finish
        """
        self._require_in_progress("move to the next question")
        if self.current_index >= len(self.questions) - 1:
            self.ready_to_finish = True
            return False
        self._move_to(self.current_index + 1)
        return True

    def previous(self) -> None:
        """Move to the previous question."""
        self._require_in_progress("move to the previous question")
        if self.current_index == 0:
            raise IllegalTransitionError("Already at the first question")
        self._move_to(self.current_index - 1)

    def review_skipped(self) -> None:
        """Jump to the next skipped question after the current one, wrapping around."""
        self._require_in_progress("review skipped questions")
        total = len(self.questions)
        for offset in range(1, total + 1):
            index = (self.current_index + offset) % total
            if self._is_skipped(self.questions[index].id):
                if index != self.current_index:
                    self._move_to(index)
                return
        raise IllegalTransitionError("There are no skipped questions to review")

    def finish(self, pending_answer: str | None = None) -> None:
        """
        Complete the session.

        Args:
            pending_answer: Unsaved answer for the current question, submitted
                before finishing when non-empty

        Raises:
            IllegalTransitionError: If any question still lacks a record
        """
        self._require_in_progress("finish")

        if pending_answer and pending_answer.strip() and not self._is_submitted(self.current_question.id):
            self.submit(pending_answer)

        missing = [q.id for q in self.questions if q.id not in self._records]
        if missing:
            raise IllegalTransitionError(
                f"{len(missing)} question(s) have no answer or skip recorded"
            )
        self._complete(forced=False)

    def abandon(self) -> None:
        """Leave the session early; nothing is evaluated."""
        self._transition(SessionState.ABANDONED)
        self._duration = self.timer.session_elapsed()
        self.timer.stop()
        self.completed_at = datetime.utcnow()

    def _complete(self, forced: bool) -> None:
        self._leave_current()
        self._duration = self.timer.session_elapsed()
        self.timer.stop()
        self._transition(SessionState.COMPLETED)
        self.completed_at = datetime.utcnow()
        self.finished_by_deadline = forced
        self._emit(SessionEventType.SESSION_COMPLETED, forced=forced)

    # =========================================================================
    # DEADLINES
    # =========================================================================

    def tick(self) -> list[DeadlineEvent]:
        """
        Poll the timing controller and apply forced transitions.

        Returns:
            The deadline events handled in this tick
        """
        if self.state != SessionState.IN_PROGRESS:
            return []

        events = self.timer.poll()
        kinds = {event.kind for event in events}

        if DeadlineKind.SESSION in kinds:
            self._on_session_deadline()
        elif DeadlineKind.QUESTION in kinds:
            self._on_question_deadline()
        return events

    def _on_question_deadline(self) -> None:
        question = self.current_question
        record = self._record_skip(question)
        # Bank the capped visit; any overrun past the limit is not counted
        self._leave_current()
        self.timer.start_question(None)
        logger.info(f"Session {self.session_id}: question {question.id} timed out after {record.time_spent}s")
        self._emit(SessionEventType.QUESTION_DEADLINE, self.current_index, time_spent=record.time_spent)

        if self.current_index < len(self.questions) - 1:
            self._move_to(self.current_index + 1)
        else:
            self.ready_to_finish = True

    def _on_session_deadline(self) -> None:
        auto_skipped = []
        for question in self.questions:
            if question.id not in self._records:
                self._record_skip(question)
                auto_skipped.append(question.id)

        logger.info(
            f"Session {self.session_id}: time limit reached, "
            f"auto-skipped {len(auto_skipped)} question(s)"
        )
        self._emit(SessionEventType.SESSION_DEADLINE, auto_skipped=auto_skipped)
        self._complete(forced=True)

    # =========================================================================
    # VIEWS
    # =========================================================================

    def answer_records(self) -> list[AnswerRecord]:
        """One record per question in question order; missing ones read as unanswered."""
        return [
            self._records.get(q.id, AnswerRecord(question_id=q.id))
            for q in self.questions
        ]

    def get_record(self, question_id: str) -> AnswerRecord | None:
        return self._records.get(question_id)

    def is_revealed(self, question_id: str) -> bool:
        return question_id in self._revealed

    @property
    def skipped_ids(self) -> list[str]:
        return [q.id for q in self.questions if self._is_skipped(q.id)]

    @property
    def initial_pass_complete(self) -> bool:
        """Every question has been answered or skipped at least once."""
        return all(q.id in self._records for q in self.questions)

    @property
    def duration_seconds(self) -> int:
        """Seconds since start, frozen once the session ends."""
        if self.state == SessionState.IN_PROGRESS:
            return self.timer.session_elapsed()
        return self._duration

    def progress(self) -> SessionProgress:
        """Snapshot for status endpoints and UI sync."""
        entries = []
        for index, question in enumerate(self.questions):
            if self._is_submitted(question.id):
                status = QuestionStatus.ANSWERED
            elif self._is_skipped(question.id):
                status = QuestionStatus.SKIPPED
            else:
                status = QuestionStatus.PENDING
            entries.append(QuestionProgress(
                question_id=question.id,
                index=index,
                status=status,
                is_current=index == self.current_index,
                revealed=question.id in self._revealed,
            ))

        in_progress = self.state == SessionState.IN_PROGRESS
        return SessionProgress(
            session_id=self.session_id,
            state=self.state,
            current_index=self.current_index,
            total_questions=len(self.questions),
            questions=entries,
            answered_count=sum(1 for e in entries if e.status == QuestionStatus.ANSWERED),
            skipped_count=sum(1 for e in entries if e.status == QuestionStatus.SKIPPED),
            initial_pass_complete=self.initial_pass_complete,
            ready_to_finish=self.ready_to_finish or self.initial_pass_complete,
            question_time_remaining=self.timer.question_remaining() if in_progress else None,
            session_time_remaining=self.timer.session_remaining() if in_progress else None,
        )
