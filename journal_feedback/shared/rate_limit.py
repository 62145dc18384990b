"""
Per-client fixed-window rate limiting.

Each client address gets ``max_requests`` per ``window_seconds``; the
counter resets when the window elapses. Over the limit the request is
answered with a 429 before it reaches any route.

Usage:
    app.add_middleware(RateLimitMiddleware, max_requests=20, window_seconds=60)
"""

import math
import time
from typing import Callable, Dict, Iterable, Optional, Tuple

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from journal_feedback.shared.errors import ErrorCode, rate_limited_error
from journal_feedback.shared.logging_config import get_logger

logger = get_logger("JournalFeedback.RateLimit")

DEFAULT_EXEMPT_PATHS = ("/healthz",)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Fixed-window request counter keyed by client address."""

    def __init__(
        self,
        app,
        max_requests: int = 20,
        window_seconds: float = 60.0,
        exempt_paths: Iterable[str] = DEFAULT_EXEMPT_PATHS,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(app)
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.exempt_paths = set(exempt_paths)
        self._clock = clock
        # client -> (window_start, count)
        self._windows: Dict[str, Tuple[float, int]] = {}

    @staticmethod
    def client_key(request: Request) -> str:
        if request.client is None:
            return "unknown"
        return request.client.host

    def _evict_expired(self, now: float) -> None:
        expired = [
            key for key, (started, _) in self._windows.items()
            if now - started >= self.window_seconds
        ]
        for key in expired:
            del self._windows[key]

    def check(self, key: str) -> Optional[int]:
        """
        Count one request for ``key``.

        Returns:
            None if the request is allowed, otherwise seconds until the
            window resets.
        """
        now = self._clock()
        self._evict_expired(now)

        started, count = self._windows.get(key, (now, 0))
        if count >= self.max_requests:
            return max(1, math.ceil(self.window_seconds - (now - started)))

        self._windows[key] = (started, count + 1)
        return None

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in self.exempt_paths:
            return await call_next(request)

        retry_after = self.check(self.client_key(request))
        if retry_after is not None:
            logger.warning(
                "Rate limit exceeded",
                extra={
                    "error_code": ErrorCode.RATE_LIMITED.value,
                    "path": request.url.path,
                    "retry_after_seconds": retry_after,
                },
            )
            return rate_limited_error(retry_after=retry_after)

        return await call_next(request)
