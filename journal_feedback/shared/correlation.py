"""
Correlation ID middleware and utilities for request tracing.

The correlation ID is:
- Read from X-Correlation-ID or X-Request-ID header if present
- Generated as a new UUID if not present
- Stored in request.state.correlation_id for endpoint access
- Added to response headers for client debugging
- Made available via get_correlation_id() for logging

It doubles as the ``request_id`` in feedback request logs.
"""

import contextvars
import uuid
from typing import Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


_correlation_id_ctx: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "correlation_id",
    default=None,
)

# Header names for correlation ID (check multiple for compatibility)
CORRELATION_HEADERS = [
    "X-Correlation-ID",
    "X-Request-ID",
    "X-Trace-ID",
]

RESPONSE_HEADER = "X-Correlation-ID"

# Incoming IDs longer than this are replaced rather than trusted
MAX_CORRELATION_ID_LENGTH = 64


def get_correlation_id() -> Optional[str]:
    """
    Get the correlation ID for the current request context.

    Returns:
        The correlation ID string, or None if not in a request context
    """
    return _correlation_id_ctx.get()


def generate_correlation_id() -> str:
    """Generate a new correlation ID (full UUID4)."""
    return str(uuid.uuid4())


class CorrelationMiddleware(BaseHTTPMiddleware):
    """
    Middleware to handle correlation IDs for request tracing.

    For each incoming request:
    1. Checks for existing correlation ID in headers
    2. Generates a new one if not present
    3. Stores it in request.state and context variable
    4. Adds it to response headers
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        correlation_id = None
        for header in CORRELATION_HEADERS:
            correlation_id = request.headers.get(header)
            if correlation_id:
                break

        if not correlation_id or len(correlation_id) > MAX_CORRELATION_ID_LENGTH:
            correlation_id = generate_correlation_id()

        request.state.correlation_id = correlation_id
        token = _correlation_id_ctx.set(correlation_id)

        try:
            response = await call_next(request)
            response.headers[RESPONSE_HEADER] = correlation_id
            return response
        finally:
            _correlation_id_ctx.reset(token)


class CorrelationContext:
    """
    Context manager for setting correlation ID in non-request contexts.

    Useful for scripts or tests where there's no HTTP request to provide
    the correlation ID.

    Example:
        with CorrelationContext("smoke-test-1"):
            await service.generate(request)
    """

    def __init__(self, correlation_id: Optional[str] = None):
        self.correlation_id = correlation_id or generate_correlation_id()
        self._token: Optional[contextvars.Token] = None

    def __enter__(self) -> str:
        self._token = _correlation_id_ctx.set(self.correlation_id)
        return self.correlation_id

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _correlation_id_ctx.reset(self._token)
