"""
Assessment API endpoints

Handles assessment session lifecycle:
- Creating sessions (question-set generation)
- Starting, navigating and answering
- Finishing and abandoning
- WebSocket session sync
"""

import asyncio
from contextlib import contextmanager
from typing import Any

from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, Field

from prepwise.api.dependencies import get_orchestrator
from prepwise.core.assessment_orchestrator import SessionNotFoundError
from prepwise.core.session_engine import AssessmentSession, IllegalTransitionError
from prepwise.core.timing import question_time_limit
from prepwise.models.assessment import AssessmentConfig, AssessmentMode, Proficiency, QuestionType
from prepwise.models.question import Question
from prepwise.models.report import ResultsSummary
from prepwise.models.session import SessionEvent, SessionEventType, SessionProgress, SessionState

router = APIRouter()


# ============================================================================
# REQUEST/RESPONSE MODELS
# ============================================================================

class CreateSessionRequest(BaseModel):
    """Request model for creating an assessment session."""
    config: AssessmentConfig
    mode: AssessmentMode = AssessmentMode.MOCK
    invitation_id: str | None = None


class QuestionView(BaseModel):
    """A question as shown to the candidate."""
    id: str
    text: str
    category: str
    question_type: QuestionType
    difficulty: Proficiency
    time_limit_seconds: int | None = None
    sample_answer: str | None = None
    explanation: str | None = None
    links: list[str] = []


class CreateSessionResponse(BaseModel):
    """Response model for session creation."""
    session_id: str
    mode: AssessmentMode
    state: SessionState
    questions: list[QuestionView]
    message: str


class SubmitAnswerRequest(BaseModel):
    """Request model for submitting an answer."""
    answer: str = Field(..., max_length=20000)


class FinishRequest(BaseModel):
    """Request model for finishing a session."""
    pending_answer: str | None = Field(default=None, max_length=20000)


class SessionStatusResponse(BaseModel):
    """Response for session status."""
    session_id: str
    mode: AssessmentMode
    progress: SessionProgress
    current_question: QuestionView | None = None
    duration_seconds: int


class FinishResponse(BaseModel):
    """Response after finishing a session."""
    session_id: str
    state: SessionState
    summary: ResultsSummary


# ============================================================================
# HELPERS
# ============================================================================

@contextmanager
def session_errors():
    """Translate core exceptions into HTTP errors."""
    try:
        yield
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except IllegalTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))


def question_view(session: AssessmentSession, question: Question) -> QuestionView:
    """Hide reference material the mode does not allow yet."""
    show_answer = session.mode == AssessmentMode.LEARN or session.is_revealed(question.id)
    return QuestionView(
        id=question.id,
        text=question.text,
        category=question.category,
        question_type=question.question_type,
        difficulty=question.difficulty,
        time_limit_seconds=(
            question_time_limit(question.question_type, question.difficulty)
            if session.mode.is_timed else None
        ),
        sample_answer=question.sample_answer if show_answer else None,
        explanation=question.explanation if show_answer else None,
        links=list(question.links) if show_answer else [],
    )


def session_status(session: AssessmentSession) -> SessionStatusResponse:
    current = None
    if session.state == SessionState.IN_PROGRESS:
        current = question_view(session, session.current_question)
    return SessionStatusResponse(
        session_id=session.session_id,
        mode=session.mode,
        progress=session.progress(),
        current_question=current,
        duration_seconds=session.duration_seconds,
    )


# ============================================================================
# REST ENDPOINTS
# ============================================================================

@router.post("/sessions", response_model=CreateSessionResponse)
async def create_session(request: CreateSessionRequest) -> CreateSessionResponse:
    """
    Create a new assessment session.

    Generates the question set but does not start the clock.
    """
    orchestrator = get_orchestrator()
    session = await orchestrator.create_session(
        request.config, request.mode, request.invitation_id
    )

    return CreateSessionResponse(
        session_id=session.session_id,
        mode=session.mode,
        state=session.state,
        questions=[question_view(session, q) for q in session.questions],
        message="Assessment session created. Call /start to begin.",
    )


@router.get("/{session_id}", response_model=SessionStatusResponse)
async def get_session_status(session_id: str) -> SessionStatusResponse:
    """Get the current status and progress of a session."""
    with session_errors():
        return session_status(get_orchestrator().get_session(session_id))


@router.post("/{session_id}/start", response_model=SessionStatusResponse)
async def start_session(session_id: str) -> SessionStatusResponse:
    """Start the session and the first question's countdown."""
    orchestrator = get_orchestrator()
    with session_errors():
        await orchestrator.start_session(session_id)
        return session_status(orchestrator.get_session(session_id))


@router.post("/{session_id}/submit", response_model=SessionStatusResponse)
async def submit_answer(session_id: str, request: SubmitAnswerRequest) -> SessionStatusResponse:
    """Submit an answer for the current question."""
    orchestrator = get_orchestrator()
    with session_errors():
        orchestrator.submit_answer(session_id, request.answer)
        return session_status(orchestrator.get_session(session_id))


@router.post("/{session_id}/skip", response_model=SessionStatusResponse)
async def skip_question(session_id: str) -> SessionStatusResponse:
    """Skip the current question; it stays reachable until finish."""
    orchestrator = get_orchestrator()
    with session_errors():
        orchestrator.skip_question(session_id)
        return session_status(orchestrator.get_session(session_id))


@router.post("/{session_id}/next", response_model=SessionStatusResponse)
async def next_question(session_id: str) -> SessionStatusResponse:
    """Move to the next question."""
    orchestrator = get_orchestrator()
    with session_errors():
        orchestrator.next_question(session_id)
        return session_status(orchestrator.get_session(session_id))


@router.post("/{session_id}/previous", response_model=SessionStatusResponse)
async def previous_question(session_id: str) -> SessionStatusResponse:
    """Move to the previous question."""
    orchestrator = get_orchestrator()
    with session_errors():
        orchestrator.previous_question(session_id)
        return session_status(orchestrator.get_session(session_id))


@router.post("/{session_id}/review-skipped", response_model=SessionStatusResponse)
async def review_skipped(session_id: str) -> SessionStatusResponse:
    """Jump to the next skipped question."""
    orchestrator = get_orchestrator()
    with session_errors():
        orchestrator.review_skipped(session_id)
        return session_status(orchestrator.get_session(session_id))


@router.post("/{session_id}/finish", response_model=FinishResponse)
async def finish_session(session_id: str, request: FinishRequest | None = None) -> FinishResponse:
    """
    Finish the session and evaluate it.

    An unsaved answer for the current question may be passed along and is
    submitted first.
    """
    orchestrator = get_orchestrator()
    pending = request.pending_answer if request else None
    with session_errors():
        document = await orchestrator.finish_session(session_id, pending)

    return FinishResponse(
        session_id=session_id,
        state=SessionState.COMPLETED,
        summary=orchestrator.report_generator.generate_summary(document),
    )


@router.post("/{session_id}/abandon", response_model=SessionStatusResponse)
async def abandon_session(session_id: str) -> SessionStatusResponse:
    """Leave the session early without evaluation."""
    orchestrator = get_orchestrator()
    with session_errors():
        await orchestrator.abandon_session(session_id)
        return session_status(orchestrator.get_session(session_id))


# ============================================================================
# WEBSOCKET ENDPOINT
# ============================================================================

@router.websocket("/ws/{session_id}")
async def websocket_session(websocket: WebSocket, session_id: str):
    """
    WebSocket endpoint for session synchronization.

    Message types:
    - start, submit (with "answer"), skip, next, previous,
      review_skipped, finish (optional "pending_answer"), sync

    Server sends:
    - event: Session event (question advanced, deadline, ...)
    - status: Session status after each message
    - results: Results summary once finished, also pushed when the
      timer finishes the session
    - error: Rejected action
    """
    await websocket.accept()

    orchestrator = get_orchestrator()
    try:
        session = orchestrator.get_session(session_id)
    except SessionNotFoundError:
        await websocket.close(code=4004, reason="Session not found")
        return

    events: asyncio.Queue[SessionEvent] = asyncio.Queue()
    session.add_listener(events.put_nowait)

    async def send_results(document) -> None:
        await websocket.send_json({
            "type": "results",
            "data": orchestrator.report_generator.generate_summary(document).model_dump(mode="json"),
        })

    async def send_status() -> None:
        await websocket.send_json({
            "type": "status",
            "data": session_status(session).model_dump(mode="json"),
        })

    async def forward_timer_events() -> None:
        """Push events raised by the background timer while the client is idle."""
        while True:
            event = await events.get()
            await websocket.send_json({"type": "event", "data": event.model_dump(mode="json")})
            if event.type == SessionEventType.SESSION_COMPLETED and event.data.get("forced"):
                await send_results(await orchestrator.wait_for_results(session_id))
            await send_status()

    sender = asyncio.create_task(forward_timer_events())

    actions: dict[str, Any] = {
        "submit": lambda data: orchestrator.submit_answer(session_id, data.get("answer", "")),
        "skip": lambda data: orchestrator.skip_question(session_id),
        "next": lambda data: orchestrator.next_question(session_id),
        "previous": lambda data: orchestrator.previous_question(session_id),
        "review_skipped": lambda data: orchestrator.review_skipped(session_id),
        "sync": lambda data: None,
    }

    try:
        while True:
            data = await websocket.receive_json()
            if not isinstance(data, dict):
                await websocket.send_json({
                    "type": "error",
                    "message": "Messages must be JSON objects",
                })
                continue
            message_type = data.get("type")

            try:
                if message_type == "start":
                    await orchestrator.start_session(session_id)
                elif message_type == "finish":
                    document = await orchestrator.finish_session(
                        session_id, data.get("pending_answer")
                    )
                    await send_results(document)
                elif message_type in actions:
                    actions[message_type](data)
                else:
                    await websocket.send_json({
                        "type": "error",
                        "message": f"Unknown message type: {message_type}",
                    })
                    continue
            except IllegalTransitionError as e:
                await websocket.send_json({"type": "error", "message": str(e)})

            # Events caused by this message go out before its status
            pending = []
            while not events.empty():
                pending.append(events.get_nowait())
            for event in pending:
                await websocket.send_json({"type": "event", "data": event.model_dump(mode="json")})

            await send_status()

    except WebSocketDisconnect:
        pass
    finally:
        sender.cancel()
        session.remove_listener(events.put_nowait)
