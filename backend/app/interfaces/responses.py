"""
Vantage Analytics - Response Envelope
Uniform success/error wrapper around every metric computation
"""

import time
from typing import Any, Awaitable, Callable

import structlog
from fastapi import status
from fastapi.responses import ORJSONResponse
from prometheus_client import Counter, Histogram
from pydantic import BaseModel

logger = structlog.get_logger(__name__)


ANALYTICS_REQUESTS = Counter(
    "analytics_requests_total",
    "Analytics metric requests by outcome",
    ["metric", "outcome"],
)
ANALYTICS_COMPUTE_SECONDS = Histogram(
    "analytics_compute_seconds",
    "Time spent fetching and computing an analytics metric",
    ["metric"],
)


class Envelope(BaseModel):
    """Response body shared by all analytics endpoints."""
    success: bool
    data: Any | None = None
    message: str | None = None
    error: str | None = None


def to_payload(result: Any) -> Any:
    """Turn metric results (or lists of them) into JSON-ready values."""
    if isinstance(result, list):
        return [to_payload(item) for item in result]
    if hasattr(result, "to_dict"):
        return result.to_dict()
    return result


def success_response(data: Any) -> ORJSONResponse:
    return ORJSONResponse(
        status_code=status.HTTP_200_OK,
        content=Envelope(success=True, data=data).model_dump(exclude_none=True),
    )


def error_response(exc: Exception, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> ORJSONResponse:
    return ORJSONResponse(
        status_code=status_code,
        content=Envelope(success=False, message="Server error", error=str(exc)).model_dump(exclude_none=True),
    )


async def assemble(metric: str, operation: Callable[[], Awaitable[Any]]) -> ORJSONResponse:
    """
    Run one metric inside an error boundary.

    Any failure aborts the whole response: the error is logged and a
    single error envelope is returned with a 500 status. Nothing is
    retried.

    Args:
        metric: Metric name, used for logs and Prometheus labels
        operation: Zero-argument coroutine factory producing the result

    Returns:
        Success or error envelope response
    """
    start = time.monotonic()
    try:
        payload = to_payload(await operation())
    except Exception as exc:
        logger.error(
            "Error computing analytics metric",
            metric=metric,
            error=str(exc),
            error_type=type(exc).__name__,
            exc_info=True,
        )
        ANALYTICS_REQUESTS.labels(metric=metric, outcome="error").inc()
        return error_response(exc)
    finally:
        ANALYTICS_COMPUTE_SECONDS.labels(metric=metric).observe(time.monotonic() - start)

    ANALYTICS_REQUESTS.labels(metric=metric, outcome="success").inc()
    return success_response(payload)
