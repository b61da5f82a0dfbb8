"""
API Dependencies

Provides dependency injection for API endpoints.
Manages the singleton orchestrator and its components.
"""

import logging

from prepwise.config.settings import get_settings
from prepwise.core.assessment_orchestrator import AssessmentOrchestrator
from prepwise.core.ai_reasoning import AIReasoningLayer
from prepwise.core.evaluation_engine import EvaluationEngine
from prepwise.core.question_bank import QuestionBankGenerator
from prepwise.core.report_generator import ReportGenerator

logger = logging.getLogger(__name__)


# ============================================================================
# SINGLETON INSTANCES
# ============================================================================

_orchestrator: AssessmentOrchestrator | None = None
_ai_reasoning: AIReasoningLayer | None = None


def get_orchestrator() -> AssessmentOrchestrator:
    """
    Get the assessment orchestrator singleton.

    Lazily initializes all required components. Without LLM credentials
    every question and evaluation comes from the deterministic fallbacks.
    """
    global _orchestrator, _ai_reasoning

    if _orchestrator is None:
        settings = get_settings()

        if settings.llm_configured:
            _ai_reasoning = AIReasoningLayer(settings)
        else:
            logger.info("LLM not configured, running fallback-only")

        _orchestrator = AssessmentOrchestrator(
            question_bank=QuestionBankGenerator(_ai_reasoning, settings),
            evaluation_engine=EvaluationEngine(_ai_reasoning, settings),
            report_generator=ReportGenerator(),
            settings=settings,
        )

    return _orchestrator


async def cleanup():
    """Cleanup resources on shutdown."""
    global _orchestrator, _ai_reasoning

    if _orchestrator:
        await _orchestrator.cleanup()

    if _ai_reasoning:
        await _ai_reasoning.close()

    _orchestrator = None
    _ai_reasoning = None
