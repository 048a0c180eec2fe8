"""
Vantage Analytics - Request Context Middleware
Request IDs for log correlation and baseline response headers
"""

import uuid
from typing import Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Tag every request with an ID.

    The ID is bound to the structlog context for the duration of the
    request and echoed back in ``X-Request-ID``.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        structlog.contextvars.bind_contextvars(request_id=request_id)
        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("request_id")

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Content-Type-Options"] = "nosniff"
        # Analytics payloads contain emails; keep them out of shared caches
        response.headers["Cache-Control"] = "no-store"
        return response
