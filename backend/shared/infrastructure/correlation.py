"""
Correlation IDs for log tracing.

API requests get one from the X-Request-ID header (or a fresh UUID); store
operations dispatched to background workers carry the ID of the mutation
that started them, so the asynchronous continuation logs under the same ID.
"""

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Callable, Iterator

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

# Context variable for the current correlation ID (thread and task local)
correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")


def get_correlation_id() -> str:
    """Get the current correlation ID ("" when none is bound)."""
    return correlation_id_var.get()


def new_correlation_id() -> str:
    return uuid.uuid4().hex


@contextmanager
def bind_correlation_id(correlation_id: str | None = None) -> Iterator[str]:
    """
    Bind a correlation ID for the duration of the block.

    Usage:
        with bind_correlation_id(operation_id):
            api.create_harvest(payload)
    """
    value = correlation_id or new_correlation_id()
    token = correlation_id_var.set(value)
    try:
        yield value
    finally:
        correlation_id_var.reset(token)


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add correlation IDs to all requests.

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
        request_id = request.headers.get(self.HEADER_NAME) or new_correlation_id()

        with bind_correlation_id(request_id):
            request.state.request_id = request_id
            response = await call_next(request)
            response.headers[self.HEADER_NAME] = request_id
            return response


class CorrelationIdFilter:
    """
    Logging filter that adds correlation_id to log records.

    Usage:
        handler = logging.StreamHandler()
        handler.addFilter(CorrelationIdFilter())
    """

    def filter(self, record) -> bool:
        record.correlation_id = correlation_id_var.get() or "-"
        return True
