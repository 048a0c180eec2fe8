"""
Vantage Analytics - Admin Analytics Endpoints
"""

from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import ORJSONResponse

from app.application.analytics import AnalyticsService
from app.domain.analytics.consistency import ConsistencyMode
from app.infrastructure.analytics_repository import SqlAnalyticsRepository
from app.interfaces.api.v1.auth import require_admin
from app.interfaces.responses import assemble

router = APIRouter()


def get_analytics_service(request: Request) -> AnalyticsService:
    """Build the analytics service over the application database."""
    settings = request.app.state.settings
    return AnalyticsService(
        SqlAnalyticsRepository(request.app.state.db),
        tz=settings.analytics_tzinfo,
        consistency_mode=ConsistencyMode(settings.analytics_consistency_mode),
    )


def get_reference_time() -> datetime:
    """Timestamp every time-dependent metric is computed against."""
    return datetime.now(timezone.utc)


AdminUser = Annotated[dict, Depends(require_admin)]
Service = Annotated[AnalyticsService, Depends(get_analytics_service)]
Now = Annotated[datetime, Depends(get_reference_time)]


@router.get("/overview", summary="Platform Overview")
async def get_overview(_: AdminUser, service: Service, now: Now) -> ORJSONResponse:
    """User, challenge and solve totals."""
    return await assemble("overview", lambda: service.overview(now))


@router.get("/user-engagement", summary="User Engagement")
async def get_user_engagement(_: AdminUser, service: Service, now: Now) -> ORJSONResponse:
    """Engagement tiers and per-user activity, newest users first."""
    return await assemble("user_engagement", lambda: service.user_engagement(now))


@router.get("/challenge-stats", summary="Challenge Statistics")
async def get_challenge_stats(_: AdminUser, service: Service) -> ORJSONResponse:
    """Solve counts by category and difficulty, rankings, and solver lists."""
    return await assemble("challenge_stats", service.challenge_stats)


@router.get("/traffic", summary="Signup Traffic")
async def get_traffic(_: AdminUser, service: Service, now: Now) -> ORJSONResponse:
    """Signups over the last 30 days, 7 days, today, and per day."""
    return await assemble("traffic", lambda: service.traffic(now))


@router.get("/leaderboard-stats", summary="Leaderboard Snapshot")
async def get_leaderboard_stats(_: AdminUser, service: Service) -> ORJSONResponse:
    """Top 10 users by points."""
    return await assemble("leaderboard_stats", service.leaderboard)


@router.get("/submissions", summary="Submission Analytics")
async def get_submission_analytics(_: AdminUser, service: Service) -> ORJSONResponse:
    """
    Solve counts per user and per challenge with an estimated
    success/failure split.
    """
    return await assemble("submissions", service.submissions)
