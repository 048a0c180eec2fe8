"""
Vantage Analytics - Health Check Endpoints
"""

from typing import Annotated, Any, Dict

import structlog
from fastapi import APIRouter, Depends, status
from fastapi.responses import ORJSONResponse

from app.application.analytics import AnalyticsService
from app.domain.analytics.errors import AnalyticsError
from app.interfaces.api.v1.analytics import get_analytics_service

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get(
    "/live",
    status_code=status.HTTP_200_OK,
    summary="Liveness Probe",
    description="Kubernetes liveness probe endpoint",
)
async def liveness() -> Dict[str, str]:
    """
    Liveness probe for Kubernetes.

    Returns 200 if the application is running.
    """
    return {"status": "alive"}


@router.get(
    "/ready",
    summary="Readiness Probe",
    description="Kubernetes readiness probe endpoint",
)
async def readiness(
    service: Annotated[AnalyticsService, Depends(get_analytics_service)],
) -> ORJSONResponse:
    """
    Readiness probe for Kubernetes.

    Ready once the database answers the analytics count queries.
    """
    try:
        counts: Dict[str, Any] = await service.record_counts()
    except AnalyticsError as e:
        logger.warning("Readiness check failed", error=str(e))
        return ORJSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "reason": "database"},
        )

    return ORJSONResponse(content={"status": "ready", "records": counts})
