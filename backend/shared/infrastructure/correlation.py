"""
Request Correlation Middleware.

Adds a correlation ID to every request so log lines from one request can be
grouped together.
"""

import uuid
from contextvars import ContextVar
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

# Context variable for request ID (task-local)
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def get_request_id() -> str:
    """Get the current request ID."""
    return request_id_var.get()


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """
    - If X-Request-ID header is present, uses that value
    - Otherwise generates a new UUID
    - Returns the ID in response headers
    """

    HEADER_NAME = "X-Request-ID"

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        request_id = request.headers.get(self.HEADER_NAME) or str(uuid.uuid4())

        token = request_id_var.set(request_id)
        try:
            request.state.request_id = request_id
            response = await call_next(request)
            response.headers[self.HEADER_NAME] = request_id
            return response
        finally:
            request_id_var.reset(token)


class CorrelationIdFilter:
    """
    Logging filter that adds request_id to log records.

    Usage:
        handler = logging.StreamHandler()
        handler.addFilter(CorrelationIdFilter())
    """

    def filter(self, record) -> bool:
        record.request_id = request_id_var.get() or "-"
        return True
