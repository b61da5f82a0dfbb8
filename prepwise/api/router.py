"""
Main API router for PrepWise

Aggregates all API routes and provides the main application router.
"""

from fastapi import APIRouter

from prepwise.api.endpoints import assessment, report, metadata

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(
    assessment.router,
    prefix="/assessment",
    tags=["Assessment"]
)

api_router.include_router(
    report.router,
    prefix="/report",
    tags=["Report"]
)

api_router.include_router(
    metadata.router,
    prefix="/metadata",
    tags=["Metadata"]
)
