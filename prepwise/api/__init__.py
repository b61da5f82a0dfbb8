"""
API layer for PrepWise

Contains FastAPI routers for:
- Assessment session management
- Results and downloads
- Reference metadata
- WebSocket session sync
"""

from prepwise.api.router import api_router

__all__ = ["api_router"]
