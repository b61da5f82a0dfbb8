"""
Report API endpoints

Handles:
- Evaluation result retrieval
- Results summary
- Results document download
"""

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse

from prepwise.api.dependencies import get_orchestrator
from prepwise.core.assessment_orchestrator import SessionNotFoundError
from prepwise.models.evaluation import EvaluationResult
from prepwise.models.report import ResultsDocument, ResultsSummary
from prepwise.models.session import SessionState

router = APIRouter()


# ============================================================================
# HELPERS
# ============================================================================

def get_results_document(session_id: str) -> ResultsDocument:
    """Results document, or the HTTP error explaining why there is none."""
    orchestrator = get_orchestrator()
    try:
        session = orchestrator.get_session(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")

    document = orchestrator.get_results(session_id)
    if document is None:
        if session.state == SessionState.COMPLETED:
            raise HTTPException(status_code=409, detail="Evaluation still in progress")
        raise HTTPException(
            status_code=409,
            detail=f"Results not available in state: {session.state.value}"
        )
    return document


# ============================================================================
# ENDPOINTS
# ============================================================================

@router.get("/{session_id}", response_model=EvaluationResult)
async def get_report(session_id: str) -> EvaluationResult:
    """
    Get the evaluation result.

    Available once the session has completed and been evaluated.
    """
    return get_results_document(session_id).results


@router.get("/{session_id}/summary", response_model=ResultsSummary)
async def get_report_summary(session_id: str) -> ResultsSummary:
    """Get a condensed summary of the results."""
    document = get_results_document(session_id)
    return get_orchestrator().report_generator.generate_summary(document)


@router.get("/{session_id}/download")
async def download_report(session_id: str) -> JSONResponse:
    """Download the full results document as a JSON attachment."""
    document = get_results_document(session_id)
    generator = get_orchestrator().report_generator
    filename = generator.download_filename(document)

    return JSONResponse(
        content=generator.to_download(document),
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
