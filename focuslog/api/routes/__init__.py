"""FocusLog API Routes Package

This module aggregates all route handlers into a single router
that can be included in the main FastAPI application.
"""

from fastapi import APIRouter

from .insights import router as insights_router
from .routine import router as routine_router
from .summaries import router as summaries_router


# Create main API router
api_router = APIRouter(prefix="/api")

# Include all sub-routers
api_router.include_router(routine_router, prefix="/routine", tags=["routine"])
api_router.include_router(summaries_router, prefix="/summaries", tags=["summaries"])
api_router.include_router(insights_router, prefix="/insights", tags=["insights"])

__all__ = ["api_router"]
