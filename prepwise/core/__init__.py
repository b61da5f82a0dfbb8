"""
Core business logic modules for PrepWise

Contains:
- Assessment Orchestrator: Session store and lifecycle coordination
- Assessment Session: Navigation and timing state machine
- Question Bank: Question-set generation with template fallback
- AI Reasoning: Outbound generation and evaluation requests
- Evaluation Engine: AI evaluation with heuristic fallback
- Report Generator: Results documents
"""

from prepwise.core.assessment_orchestrator import AssessmentOrchestrator, SessionNotFoundError
from prepwise.core.ai_reasoning import AIReasoningLayer, AIResponseError
from prepwise.core.evaluation_engine import EvaluationEngine, EvaluationValidationError
from prepwise.core.question_bank import QuestionBankGenerator
from prepwise.core.report_generator import ReportGenerator
from prepwise.core.session_engine import AssessmentSession, IllegalTransitionError
from prepwise.core.timing import ManualClock, MonotonicClock, TimingController

__all__ = [
    "AssessmentOrchestrator",
    "SessionNotFoundError",
    "AIReasoningLayer",
    "AIResponseError",
    "EvaluationEngine",
    "EvaluationValidationError",
    "QuestionBankGenerator",
    "ReportGenerator",
    "AssessmentSession",
    "IllegalTransitionError",
    "ManualClock",
    "MonotonicClock",
    "TimingController",
]
