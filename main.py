import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from journal_feedback.api.endpoints import router
from journal_feedback.core.config import Config, settings
from journal_feedback.core.tracing import instrument_app, instrument_httpx, setup_tracing, shutdown_tracing
from journal_feedback.features.feedback import FeedbackService
from journal_feedback.services.http_client import model_http_pool
from journal_feedback.services.llm import ClaudeModelClient
from journal_feedback.shared.correlation import CorrelationMiddleware
from journal_feedback.shared.errors import request_validation_exception_handler
from journal_feedback.shared.logging_config import setup_logging
from journal_feedback.shared.rate_limit import RateLimitMiddleware

logger = logging.getLogger("JournalFeedback.Main")

# Any localhost origin is accepted alongside the configured ones
LOCALHOST_ORIGIN_REGEX = r"https?://(localhost|127\.0\.0\.1)(:\d+)?"


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_tracing()
    instrument_httpx()
    http_client = await model_http_pool.open(timeout_seconds=settings.MODEL_TIMEOUT_SECONDS)

    model_client = ClaudeModelClient(http_client=http_client)
    app.state.feedback_service = FeedbackService(model_client)
    logger.info("Journal feedback service started", extra={"port": settings.PORT})

    yield

    logger.info("Journal feedback service shutting down")
    await model_http_pool.close()
    shutdown_tracing()


def create_app(config: Config = settings, feedback_service: Optional[FeedbackService] = None) -> FastAPI:
    """Build the FastAPI application; a prebuilt service skips startup wiring."""
    app = FastAPI(
        title="Journal Feedback Service",
        description="Empathetic AI feedback for bedtime journal entries",
        version="1.0.0",
        lifespan=lifespan if feedback_service is None else None,
    )
    if feedback_service is not None:
        app.state.feedback_service = feedback_service

    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)

    # Added innermost first: rate limit -> correlation -> CORS
    app.add_middleware(
        RateLimitMiddleware,
        max_requests=config.RATE_LIMIT_MAX_REQUESTS,
        window_seconds=config.RATE_LIMIT_WINDOW_SECONDS,
    )
    app.add_middleware(CorrelationMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.ALLOWED_ORIGINS,
        allow_origin_regex=LOCALHOST_ORIGIN_REGEX,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)
    instrument_app(app)
    return app


setup_logging(service_name=settings.SERVICE_NAME, level=settings.LOG_LEVEL)
app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
