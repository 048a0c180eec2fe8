"""
Vantage Analytics - API v1 Router
Aggregates all API endpoints
"""

from fastapi import APIRouter

from app.interfaces.api.v1.health import router as health_router
from app.interfaces.api.v1.analytics import router as analytics_router

api_router = APIRouter()

# Health check endpoints
api_router.include_router(
    health_router,
    prefix="/health",
    tags=["Health"],
)

# Analytics endpoints (admin only)
api_router.include_router(
    analytics_router,
    prefix="/analytics",
    tags=["Analytics"],
)
