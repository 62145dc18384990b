"""
Structured JSON logging configuration for the journal feedback service.

Provides JSON-formatted logging with correlation ID tracking, plus a
redaction filter that keeps user-written content out of every sink.

Usage:
    from journal_feedback.shared.logging_config import setup_logging, get_logger

    # At application startup (main.py):
    setup_logging(service_name="journal-feedback-service")

    # In modules:
    logger = get_logger("JournalFeedback.Feedback")
    logger.info("Feedback generated", extra={"risk_score": 0.3, "duration_ms": 812})

Output format (JSON, one line per log):
    {
        "timestamp": "2026-01-28T10:30:00.123456Z",
        "level": "INFO",
        "logger": "JournalFeedback.API.Feedback",
        "message": "Feedback generated",
        "service": "journal-feedback-service",
        "correlation_id": "abc123",
        "risk_score": 0.3,
        "duration_ms": 812
    }
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Optional

# Attributes every LogRecord carries; anything else was passed via ``extra``
STANDARD_ATTRS = {
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "correlation_id", "message", "taskName",
}

# Extra field names that may carry user-written or model-written content
SENSITIVE_FIELDS = {
    "journal_text",
    "journal",
    "text",
    "raw_text",
    "prompt",
    "system_instruction",
    "user_message",
    "body",
}

REDACTED = "***REDACTED***"


class CorrelationIdFilter(logging.Filter):
    """
    Logging filter that injects correlation_id into log records.

    The correlation_id is retrieved from a context variable that is set
    by the correlation middleware at the start of each request.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        """Add correlation_id to record if not present."""
        if not hasattr(record, "correlation_id"):
            from journal_feedback.shared.correlation import get_correlation_id
            record.correlation_id = get_correlation_id() or "-"
        return True


class SensitiveFieldFilter(logging.Filter):
    """Replace extra fields that could hold journal content before formatting."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key in SENSITIVE_FIELDS:
            if key in record.__dict__:
                setattr(record, key, REDACTED)
        return True


def _extra_fields(record: logging.LogRecord) -> dict:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in STANDARD_ATTRS and not key.startswith("_")
    }


class JSONFormatter(logging.Formatter):
    """
    Formats log records as JSON for structured logging.

    Includes standard fields (timestamp, level, message) plus any
    extra fields passed to the logger.
    """

    def __init__(self, service_name: str = "journal-feedback-service"):
        """
        Initialize the JSON formatter.

        Args:
            service_name: Name of the service for log identification
        """
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        """
        Format the log record as a JSON string.

        Args:
            record: The log record to format

        Returns:
            JSON-formatted log string
        """
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
        }

        correlation_id = getattr(record, "correlation_id", None)
        if correlation_id and correlation_id != "-":
            log_entry["correlation_id"] = correlation_id

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        for key, value in _extra_fields(record).items():
            try:
                # Ensure value is JSON serializable
                json.dumps(value)
                log_entry[key] = value
            except (TypeError, ValueError):
                log_entry[key] = str(value)

        return json.dumps(log_entry, ensure_ascii=False)


class HumanReadableFormatter(logging.Formatter):
    """
    Human-readable formatter for local development.

    Includes correlation ID in log messages for easier debugging.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format record with correlation ID prefix."""
        correlation_id = getattr(record, "correlation_id", "-")
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

        prefix = f"{timestamp} [{record.levelname}] [{correlation_id}]"
        message = record.getMessage()

        extra_parts = [f"{key}={value}" for key, value in _extra_fields(record).items()]
        extras = " | " + ", ".join(extra_parts) if extra_parts else ""

        formatted = f"{prefix} {record.name}: {message}{extras}"

        if record.exc_info:
            formatted += "\n" + self.formatException(record.exc_info)

        return formatted


def setup_logging(
    service_name: str,
    level: Optional[str] = None,
    json_output: Optional[bool] = None,
) -> None:
    """
    Configure structured logging for the application.

    Args:
        service_name: Name of the service (e.g., "journal-feedback-service")
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to INFO
               or value from LOG_LEVEL environment variable.
        json_output: If True, output JSON logs. If False, human-readable.
                     Defaults to True in production (ENVIRONMENT != "development")
    """
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")
    level = level.upper()

    log_level = getattr(logging, level, logging.INFO)

    if json_output is None:
        environment = os.getenv("ENVIRONMENT", "production").lower()
        json_output = environment != "development"

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)

    if json_output:
        formatter = JSONFormatter(service_name=service_name)
    else:
        formatter = HumanReadableFormatter()

    handler.setFormatter(formatter)
    handler.addFilter(CorrelationIdFilter())
    handler.addFilter(SensitiveFieldFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    # Reduce noise from third-party libraries
    noisy_loggers = [
        "httpx",
        "httpcore",
        "asyncio",
        "anthropic",
        "google.auth",
        "google.auth.transport",
    ]
    for logger_name in noisy_loggers:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    startup_logger = logging.getLogger(f"{service_name}.startup")
    startup_logger.info(
        "Logging configured",
        extra={
            "log_level": level,
            "json_output": json_output,
            "environment": os.getenv("ENVIRONMENT", "production"),
        }
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the given name.

    Args:
        name: Logger name, ``JournalFeedback.<Area>`` by convention

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)
