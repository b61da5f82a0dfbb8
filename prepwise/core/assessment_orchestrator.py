"""
Assessment Orchestrator - Coordinates the lifecycle of assessment sessions.

Owns the in-memory session store and wires the components together:
- Question Bank Generator builds the question set at creation
- AssessmentSession enforces navigation and timing
- A background polling task ticks every timed session
- Evaluation Engine and Report Generator run once a session completes
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable
from uuid import uuid4

from prepwise.config.settings import Settings, get_settings
from prepwise.core.evaluation_engine import EvaluationEngine
from prepwise.core.question_bank import QuestionBankGenerator
from prepwise.core.report_generator import ReportGenerator
from prepwise.core.session_engine import AssessmentSession
from prepwise.core.timing import Clock, DeadlineEvent, DeadlineKind
from prepwise.models.assessment import AssessmentConfig, AssessmentMode
from prepwise.models.report import ResultsDocument
from prepwise.models.session import AnswerRecord, SessionEvent, SessionProgress, SessionState

logger = logging.getLogger(__name__)

INVITATION_COMPLETED = "completed"


class SessionNotFoundError(Exception):
    """Raised when a session ID is unknown."""
    pass


class AssessmentOrchestrator:
    """
    Manages assessment sessions from creation to results.

    Sessions never share mutable state; each timed session gets its own
    polling task, cancelled when the session ends or on shutdown.
    """

    def __init__(
        self,
        question_bank: Any = None,  # QuestionBankGenerator
        evaluation_engine: Any = None,  # EvaluationEngine
        report_generator: Any = None,  # ReportGenerator
        settings: Settings | None = None,
        clock: Clock | None = None,
    ):
        """
        Initialize the orchestrator with component dependencies.

        Args:
            question_bank: Question set generator
            evaluation_engine: Answer evaluator
            report_generator: Results document builder
            settings: Application settings (time limits, poll interval)
            clock: Clock shared by every session's timing controller
        """
        self.settings = settings or get_settings()
        self.question_bank = question_bank or QuestionBankGenerator(settings=self.settings)
        self.evaluation_engine = evaluation_engine or EvaluationEngine(settings=self.settings)
        self.report_generator = report_generator or ReportGenerator()
        self.clock = clock

        # Session storage (in-memory)
        self._sessions: dict[str, AssessmentSession] = {}
        self._results: dict[str, ResultsDocument] = {}
        self._timer_tasks: dict[str, asyncio.Task] = {}
        self._results_ready: dict[str, asyncio.Event] = {}

        # Event callbacks
        self._event_callbacks: list[Callable[[SessionEvent], None]] = []
        self._completion_callbacks: list[Callable[[ResultsDocument], Awaitable[None]]] = []
        self._invitation_callbacks: list[Callable[[str, str], Awaitable[None]]] = []

    # =========================================================================
    # SESSION MANAGEMENT
    # =========================================================================

    async def create_session(
        self,
        config: AssessmentConfig,
        mode: AssessmentMode,
        invitation_id: str | None = None,
    ) -> AssessmentSession:
        """
        Create a session with a freshly generated question set.

        Args:
            config: Validated assessment configuration
            mode: learn, mock or evaluate
            invitation_id: Invitation the session was opened from, if any

        Returns:
            New AssessmentSession in the NOT_STARTED state
        """
        questions = await self.question_bank.generate(config)
        session = AssessmentSession(
            session_id=str(uuid4()),
            config=config,
            questions=questions,
            mode=mode,
            clock=self.clock,
            session_time_limit=self.settings.session_time_limit_seconds,
            invitation_id=invitation_id,
        )
        for callback in self._event_callbacks:
            session.add_listener(callback)

        self._sessions[session.session_id] = session
        logger.info(
            f"Created {mode.value} session {session.session_id} "
            f"with {len(questions)} questions"
        )
        return session

    def get_session(self, session_id: str) -> AssessmentSession:
        """Get a session by ID."""
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(f"Session not found: {session_id}")
        return session

    def get_results(self, session_id: str) -> ResultsDocument | None:
        """Results document, once the session has been evaluated."""
        self.get_session(session_id)
        return self._results.get(session_id)

    async def wait_for_results(self, session_id: str) -> ResultsDocument:
        """Block until the session has been evaluated."""
        self.get_session(session_id)
        await self._results_event(session_id).wait()
        return self._results[session_id]

    def _results_event(self, session_id: str) -> asyncio.Event:
        return self._results_ready.setdefault(session_id, asyncio.Event())

    # =========================================================================
    # SESSION FLOW
    # =========================================================================

    async def start_session(self, session_id: str) -> SessionProgress:
        """Start a session and, for timed modes, its polling task."""
        session = self.get_session(session_id)
        session.start()

        if session.mode.is_timed:
            self._timer_tasks[session_id] = asyncio.create_task(
                self._run_timer(session), name=f"timer-{session_id}"
            )
        return session.progress()

    def submit_answer(self, session_id: str, answer: str) -> AnswerRecord:
        return self.get_session(session_id).submit(answer)

    def skip_question(self, session_id: str) -> AnswerRecord:
        return self.get_session(session_id).skip()

    def next_question(self, session_id: str) -> bool:
        return self.get_session(session_id).next()

    def previous_question(self, session_id: str) -> None:
        self.get_session(session_id).previous()

    def review_skipped(self, session_id: str) -> None:
        self.get_session(session_id).review_skipped()

    async def finish_session(
        self,
        session_id: str,
        pending_answer: str | None = None,
    ) -> ResultsDocument:
        """
        Finish a session, evaluate it and build its results document.

        Raises:
            IllegalTransitionError: If questions are still unrecorded
        """
        session = self.get_session(session_id)
        session.finish(pending_answer)
        return await self._finalize(session)

    async def abandon_session(self, session_id: str) -> SessionProgress:
        """Stop a session early without evaluating it."""
        session = self.get_session(session_id)
        session.abandon()
        self._cancel_timer(session_id)
        logger.info(f"Session {session_id} abandoned")
        return session.progress()

    async def tick_session(self, session_id: str) -> list[DeadlineEvent]:
        """Apply deadlines now; finalizes the session if the ceiling was hit."""
        session = self.get_session(session_id)
        events = session.tick()
        if any(event.kind == DeadlineKind.SESSION for event in events):
            await self._finalize(session)
        return events

    # =========================================================================
    # TIMERS
    # =========================================================================

    async def _run_timer(self, session: AssessmentSession) -> None:
        """Poll a timed session until it leaves IN_PROGRESS."""
        interval = self.settings.timer_poll_interval_seconds
        try:
            while session.state == SessionState.IN_PROGRESS:
                await asyncio.sleep(interval)
                session.tick()

            # Stays registered while evaluating so cleanup() can cancel it
            if session.state == SessionState.COMPLETED and session.finished_by_deadline:
                await self._finalize(session)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Timer error for session {session.session_id}: {e}")
        finally:
            self._timer_tasks.pop(session.session_id, None)

    def _cancel_timer(self, session_id: str) -> None:
        task = self._timer_tasks.get(session_id)
        if task is None or task is asyncio.current_task():
            return
        del self._timer_tasks[session_id]
        if not task.done():
            task.cancel()

    # =========================================================================
    # COMPLETION
    # =========================================================================

    async def _finalize(self, session: AssessmentSession) -> ResultsDocument:
        """Evaluate a completed session once and notify collaborators."""
        existing = self._results.get(session.session_id)
        if existing is not None:
            return existing

        self._cancel_timer(session.session_id)

        result = await self.evaluation_engine.evaluate(
            session.questions,
            session.answer_records(),
            session.config,
        )
        document = self.report_generator.generate(session, result)
        self._results[session.session_id] = document
        self._results_event(session.session_id).set()
        logger.info(
            f"Session {session.session_id} evaluated: score {result.score} "
            f"({result.evaluation_source.value})"
        )

        for callback in self._completion_callbacks:
            try:
                await callback(document)
            except Exception as e:
                logger.error(f"Completion callback error: {e}")

        if session.invitation_id:
            for callback in self._invitation_callbacks:
                try:
                    await callback(session.invitation_id, INVITATION_COMPLETED)
                except Exception as e:
                    logger.error(f"Invitation callback error: {e}")

        return document

    async def cleanup(self) -> None:
        """Cancel every polling task."""
        tasks = list(self._timer_tasks.values())
        self._timer_tasks.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # =========================================================================
    # CALLBACKS
    # =========================================================================

    def on_session_event(self, callback: Callable[[SessionEvent], None]) -> None:
        """Register a listener attached to every session created afterwards."""
        self._event_callbacks.append(callback)

    def on_session_completed(self, callback: Callable[[ResultsDocument], Awaitable[None]]) -> None:
        """Register a callback receiving each results document."""
        self._completion_callbacks.append(callback)

    def on_invitation_completed(self, callback: Callable[[str, str], Awaitable[None]]) -> None:
        """Register a callback told (invitation_id, status) when an invited assessment completes."""
        self._invitation_callbacks.append(callback)
