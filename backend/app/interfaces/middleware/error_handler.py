"""
Vantage Analytics - Error Handler Middleware
Consistent error envelope for failures outside the metric boundary
"""

import traceback
from typing import Callable

import structlog
from fastapi import Request, Response, status
from sqlalchemy.exc import OperationalError
from starlette.middleware.base import BaseHTTPMiddleware

from app.domain.analytics.errors import ComputationFault, DataAccessFailure
from app.interfaces.responses import error_response

logger = structlog.get_logger(__name__)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Global error handler middleware.

    Catches all unhandled exceptions and returns the analytics error
    envelope.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        """
        Process request and handle any exceptions.

        Args:
            request: Incoming request
            call_next: Next middleware/handler

        Returns:
            Response or error response
        """
        try:
            return await call_next(request)

        except Exception as exc:
            error_code, status_code = classify_error(exc)

            logger.error(
                "Unhandled exception",
                error=str(exc),
                error_type=type(exc).__name__,
                error_code=error_code,
                path=request.url.path,
                method=request.method,
                request_id=getattr(request.state, "request_id", None),
                traceback=traceback.format_exc(),
            )

            return error_response(exc, status_code=status_code)


def classify_error(exc: Exception) -> tuple[str, int]:
    """
    Classify exception and return its error code and HTTP status.

    Args:
        exc: The exception to classify

    Returns:
        Tuple of (error_code, status_code)
    """
    if isinstance(exc, DataAccessFailure):
        return "DATA_ACCESS_ERROR", status.HTTP_500_INTERNAL_SERVER_ERROR

    if isinstance(exc, ComputationFault):
        return "COMPUTATION_FAULT", status.HTTP_500_INTERNAL_SERVER_ERROR

    if isinstance(exc, OperationalError):
        return "DATABASE_ERROR", status.HTTP_503_SERVICE_UNAVAILABLE

    # Default: internal server error
    return "INTERNAL_ERROR", status.HTTP_500_INTERNAL_SERVER_ERROR
