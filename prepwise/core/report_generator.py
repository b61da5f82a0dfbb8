"""
Report Generator for PrepWise

Builds the self-contained results document for a completed assessment:
- Timestamp and mode
- Configuration and question set
- Every answer record
- The evaluation result
- The invitation ID when the session came from an invitation
"""

import logging
import re
from datetime import datetime
from typing import Any

from prepwise.core.session_engine import AssessmentSession
from prepwise.models.evaluation import EvaluationResult
from prepwise.models.report import ResultsDocument, ResultsSummary
from prepwise.models.session import SessionState

logger = logging.getLogger(__name__)


class ReportGenerator:
    """
    Generates results documents and summaries.

    The document is the single artifact handed to persistence and
    download collaborators; nothing else survives a session.
    """

    def generate(self, session: AssessmentSession, result: EvaluationResult) -> ResultsDocument:
        """
        Generate the results document.

        Args:
            session: Completed assessment session
            result: Its evaluation

        Returns:
            Complete ResultsDocument
        """
        if session.state != SessionState.COMPLETED:
            raise ValueError(f"Session {session.session_id} is not completed")

        document = ResultsDocument(
            session_id=session.session_id,
            timestamp=session.completed_at or datetime.utcnow(),
            mode=session.mode,
            invitation_id=session.invitation_id,
            config=session.config,
            questions=session.questions,
            answers=session.answer_records(),
            results=result,
            duration_seconds=session.duration_seconds,
        )
        logger.info(f"Generated results document for session {session.session_id}")
        return document

    def generate_summary(self, document: ResultsDocument) -> ResultsSummary:
        """Generate a condensed summary for quick view."""
        result = document.results
        breakdown = result.question_breakdown
        return ResultsSummary(
            session_id=document.session_id,
            score=result.score,
            assessed_proficiency=result.assessed_proficiency.value,
            total_questions=result.total_questions,
            answered_questions=result.answered_count,
            correct=len(breakdown.correct),
            partially_correct=len(breakdown.partially_correct),
            incorrect=len(breakdown.incorrect),
            unanswered=len(breakdown.unanswered),
        )

    def to_download(self, document: ResultsDocument) -> dict[str, Any]:
        """Flat JSON-ready dict for the download endpoint."""
        return document.model_dump(mode="json")

    def download_filename(self, document: ResultsDocument) -> str:
        role = re.sub(r"[^a-z0-9]+", "-", document.config.role.lower()).strip("-") or "assessment"
        return f"prepwise-{role}-{document.timestamp:%Y%m%d-%H%M%S}.json"
