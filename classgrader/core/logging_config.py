# /classgrader/core/logging_config.py

"""
Structured JSON logging for the classgrader backend.

Each log line is one JSON object carrying the channel (http, store, roster,
scores, ai, live), the request ID of the HTTP request that produced it, and
any business context (professor, class, student keys) attached by the caller.
"""

import json
import logging
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone

from . import config

# Request ID of the HTTP request currently being served, if any.
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

ROOT_LOGGER_NAME = "classgrader"
CHANNELS = ["http", "store", "roster", "scores", "ai", "live"]


class StructuredJsonFormatter(logging.Formatter):
    """Formats a record as a single-line JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
            "level": record.levelname,
            "message": record.getMessage(),
            "channel": getattr(record, "channel", record.name.rsplit(".", 1)[-1]),
            "context": {
                "request_id": request_id_var.get(""),
                **(getattr(record, "context", {}) or {}),
            },
            "extra": getattr(record, "extra_data", {}) or {},
        }
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


def setup_logging(level: str = None) -> logging.Logger:
    """
    Configures the package logger and its channel loggers.

    Output goes to stdout through one handler on the `classgrader` logger, so
    embedding applications keep control of the root logger.
    """
    level_name = (level or config.LOG_LEVEL).upper()
    log_level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredJsonFormatter())

    package_logger = logging.getLogger(ROOT_LOGGER_NAME)
    package_logger.setLevel(log_level)
    package_logger.handlers = [handler]
    package_logger.propagate = False

    for channel in CHANNELS:
        logging.getLogger(f"{ROOT_LOGGER_NAME}.{channel}").setLevel(log_level)

    return package_logger


def get_logger(channel: str) -> logging.Logger:
    """Returns the logger for a channel, e.g. `get_logger("roster")`."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{channel}")


def log_with_context(logger: logging.Logger, level: str, message: str,
                     context: dict = None, extra_data: dict = None):
    """
    Emits a structured log entry with business context and extra metadata.

    Args:
        logger: The channel logger to use.
        level: Level name (DEBUG, INFO, WARNING, ERROR).
        message: Human-readable message.
        context: Business identifiers (professor_id, class_id, student_key...).
        extra_data: Additional metadata (counts, durations, policies).
    """
    logger.log(
        getattr(logging, level.upper(), logging.INFO),
        message,
        extra={
            "context": context or {},
            "extra_data": extra_data or {},
            "channel": logger.name.rsplit(".", 1)[-1],
        },
    )


def generate_request_id() -> str:
    return str(uuid.uuid4())
