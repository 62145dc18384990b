"""
Pooled httpx client for model calls.

The model SDK sends every request through one ``httpx.AsyncClient`` opened
in the app lifespan, so connections to the model endpoint are kept alive
between feedback requests.

    model_http_pool = ModelHTTPPool()
    client = await model_http_pool.open(timeout_seconds=30)
    ...
    await model_http_pool.close()
"""

import logging
from typing import Optional

import httpx

logger = logging.getLogger("JournalFeedback.HTTP.Client")


class ModelHTTPPool:
    """Owns the single outbound connection pool to the model endpoint."""

    def __init__(self, max_connections: int = 50, max_keepalive_connections: int = 10):
        self._limits = httpx.Limits(
            max_connections=max_connections,
            max_keepalive_connections=max_keepalive_connections,
        )
        self._client: Optional[httpx.AsyncClient] = None

    async def open(self, timeout_seconds: float) -> httpx.AsyncClient:
        """Create the pooled client, or return it if already open."""
        if self._client is None:
            self._client = httpx.AsyncClient(limits=self._limits, timeout=httpx.Timeout(timeout_seconds))
            logger.info(
                "Model HTTP pool opened",
                extra={"timeout_seconds": timeout_seconds},
            )
        return self._client

    async def close(self) -> None:
        if self._client is None:
            return
        await self._client.aclose()
        self._client = None
        logger.info("Model HTTP pool closed")


model_http_pool = ModelHTTPPool()
