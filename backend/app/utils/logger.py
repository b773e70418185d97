"""
Structured Logging Configuration Module for Tubely

This module provides logging utilities with JSON-formatted output, context
enrichment via LoggerAdapter, and integration with Uvicorn's loggers for
consistent application-wide logging.

Features:
- JSONFormatter: formatter emitting structured JSON log records
- StandardFormatter: human-readable formatter for local development
- setup_logging: application-wide configuration with Uvicorn integration
- add_log_context: helper for stamping context (video_id, user_id) on logs

Usage:
    from app.utils.logger import add_log_context, setup_logging

    setup_logging(log_level="INFO", json_logs=True)

    logger = logging.getLogger(__name__)
    upload_logger = add_log_context(logger, video_id="...", user_id="...")
    upload_logger.info("Staging upload")
"""

import json
import logging
import sys
import traceback

from datetime import datetime, timezone
from typing import Any


# =============================================================================
# Constants
# =============================================================================

LOG_LEVEL_MAP: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# Third-party loggers to reduce verbosity
THIRD_PARTY_LOGGERS: list[str] = [
    "motor",
    "pymongo",
    "boto3",
    "botocore",
    "s3transfer",
    "urllib3",
    "multipart",
    "asyncio",
]


# =============================================================================
# Custom JSON Encoder
# =============================================================================


class LogJSONEncoder(json.JSONEncoder):
    """
    JSON encoder for log record serialization.

    Converts values json cannot handle (datetimes, bytes, UUIDs, paths,
    exceptions) to strings so a log record always serializes.
    """

    def default(self, obj: Any) -> Any:
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, bytes):
            return obj.decode("utf-8", errors="replace")
        if isinstance(obj, set):
            return list(obj)
        return str(obj)


# =============================================================================
# Formatters
# =============================================================================


class JSONFormatter(logging.Formatter):
    """
    Logging formatter that outputs log records as JSON strings.

    Example output:
        {
            "timestamp": "2025-01-15T10:30:45.123456+00:00",
            "level": "INFO",
            "logger": "app.services.upload_service",
            "message": "Uploading to bucket='tubely-videos', key='landscape/ab12.mp4'",
            "extra": {"video_id": "0b0f...", "user_id": "6f1d..."}
        }
    """

    # Standard LogRecord attributes to exclude from extra fields
    RESERVED_ATTRS: frozenset[str] = frozenset(
        {
            "args",
            "asctime",
            "created",
            "exc_info",
            "exc_text",
            "filename",
            "funcName",
            "levelname",
            "levelno",
            "lineno",
            "message",
            "module",
            "msecs",
            "msg",
            "name",
            "pathname",
            "process",
            "processName",
            "relativeCreated",
            "stack_info",
            "thread",
            "threadName",
            "taskName",
        }
    )

    def __init__(
        self,
        include_extra_fields: bool = True,
        include_source_location: bool = False,
    ) -> None:
        super().__init__()
        self.include_extra_fields = include_extra_fields
        self.include_source_location = include_source_location

    def format(self, record: logging.LogRecord) -> str:
        """Format a LogRecord as a compact JSON string."""
        log_entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(
                timespec="microseconds"
            ),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if self.include_source_location:
            log_entry["source"] = {
                "filename": record.filename,
                "lineno": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info:
            exc_type, exc_value, _exc_tb = record.exc_info
            log_entry["exception"] = {
                "type": exc_type.__name__ if exc_type else "Unknown",
                "message": str(exc_value) if exc_value else "",
                "traceback": "".join(traceback.format_exception(*record.exc_info)),
            }

        if record.stack_info:
            log_entry["stack_info"] = record.stack_info

        if self.include_extra_fields:
            extra_fields = {
                key: value
                for key, value in record.__dict__.items()
                if not key.startswith("_") and key not in self.RESERVED_ATTRS
            }
            if extra_fields:
                log_entry["extra"] = extra_fields

        return json.dumps(
            log_entry,
            cls=LogJSONEncoder,
            ensure_ascii=False,
            separators=(",", ":"),
        )


class StandardFormatter(logging.Formatter):
    """
    Text formatter for console output in development mode.

    Format: [TIMESTAMP] LEVEL logger_name: message
    """

    DEFAULT_FORMAT: str = "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s"
    DEFAULT_DATE_FORMAT: str = "%Y-%m-%d %H:%M:%S"

    def __init__(self, fmt: str | None = None, datefmt: str | None = None) -> None:
        super().__init__(
            fmt=fmt or self.DEFAULT_FORMAT,
            datefmt=datefmt or self.DEFAULT_DATE_FORMAT,
        )


# =============================================================================
# Application Logging Setup
# =============================================================================


def setup_logging(
    log_level: str = "INFO",
    json_logs: bool = True,
    third_party_level: str = "WARNING",
) -> None:
    """
    Configure application-wide logging with root logger and Uvicorn integration.

    Called once from the FastAPI lifespan. It configures:
    - Root logger with a stdout handler and JSON or text formatting
    - Uvicorn loggers so request logs share the same format
    - Reduced verbosity for third-party libraries (boto3, motor, ...)

    Args:
        log_level: Application log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: If True, output JSON; otherwise human-readable text
        third_party_level: Log level for third-party libraries
    """
    level_str = log_level.upper()
    level = LOG_LEVEL_MAP.get(level_str, logging.INFO)

    if json_logs:
        formatter: logging.Formatter = JSONFormatter(
            include_extra_fields=True,
            include_source_location=level <= logging.DEBUG,
        )
    else:
        formatter = StandardFormatter()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    _configure_uvicorn_logging(formatter, level)

    third_party_log_level = LOG_LEVEL_MAP.get(third_party_level.upper(), logging.WARNING)
    for logger_name in THIRD_PARTY_LOGGERS:
        logging.getLogger(logger_name).setLevel(third_party_log_level)

    logging.getLogger(__name__).info(
        "Logging configured: level=%s, json=%s", level_str, json_logs
    )


def _configure_uvicorn_logging(formatter: logging.Formatter, level: int) -> None:
    """Route uvicorn's loggers through our formatter instead of their defaults."""
    for name, stream in (
        ("uvicorn", sys.stdout),
        ("uvicorn.access", sys.stdout),
        ("uvicorn.error", sys.stderr),
    ):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.setLevel(level)
        uvicorn_logger.propagate = False
        uvicorn_logger.handlers.clear()
        handler = logging.StreamHandler(stream)
        handler.setFormatter(formatter)
        uvicorn_logger.addHandler(handler)


# =============================================================================
# Context Enrichment
# =============================================================================


class ContextLoggerAdapter(logging.LoggerAdapter):
    """
    LoggerAdapter that merges its context into each call's ``extra`` dict
    instead of replacing it.
    """

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        extra = kwargs.get("extra", {})
        for key, value in self.extra.items():
            extra.setdefault(key, value)
        kwargs["extra"] = extra
        return msg, kwargs


def add_log_context(logger: logging.Logger, **kwargs: Any) -> logging.LoggerAdapter:
    """
    Wrap a logger so every message carries the given context fields.

    Example:
        upload_logger = add_log_context(logger, video_id=str(video.id), user_id=user_id)
        upload_logger.info("Probing staged upload")
        # JSON output includes "video_id" and "user_id" under "extra"
    """
    return ContextLoggerAdapter(logger, kwargs)


__all__ = [
    "LOG_LEVEL_MAP",
    "ContextLoggerAdapter",
    "JSONFormatter",
    "StandardFormatter",
    "add_log_context",
    "setup_logging",
]
