"""
Logging setup for the exam prep backend.

Every entry is written to stdout, by default as one JSON object per line.
Entries carry the channel they were logged on (http, db, auth, scoring),
the id of the HTTP request being served and, once a bearer token has been
accepted, the id of the signed-in user. Set LOG_FORMAT=text for readable
lines during local development.
"""

import logging
import json
import os
import uuid
from datetime import datetime, timezone
from contextvars import ContextVar

request_id_var: ContextVar[str] = ContextVar("request_id", default="")
user_id_var: ContextVar[str] = ContextVar("user_id", default="")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.getenv("LOG_FORMAT", "json").lower()

LOGGER_PREFIX = "examprep"
CHANNELS = ("http", "db", "auth", "scoring")


def _channel_of(record: logging.LogRecord) -> str:
    channel = getattr(record, "channel", None)
    if channel:
        return channel
    prefix, _, rest = record.name.partition(".")
    return rest if prefix == LOGGER_PREFIX and rest else "app"


def _request_context(record: logging.LogRecord) -> dict:
    context = {"request_id": request_id_var.get("")}
    if user_id_var.get(""):
        context["user_id"] = user_id_var.get("")
    context.update(getattr(record, "context", None) or {})
    return context


class StructuredJsonFormatter(logging.Formatter):
    """
    One JSON object per record:
    - timestamp: UTC, millisecond precision, Z suffix
    - level, message, channel
    - context: request_id, user_id and ids passed by the caller
      (test_id, result_id, question_id, ...)
    - extra: measurements such as duration_ms or counts
    - exception: formatted traceback, when there is one
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "message": record.getMessage(),
            "channel": _channel_of(record),
            "context": _request_context(record),
            "extra": getattr(record, "extra_data", None) or {}
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Single-line text output: time, level, channel, message and context."""

    def format(self, record: logging.LogRecord) -> str:
        context = " ".join(f"{k}={v}" for k, v in _request_context(record).items() if v)
        line = "{} {:<7} [{}] {}".format(
            datetime.now(timezone.utc).strftime("%H:%M:%S"),
            record.levelname, _channel_of(record), record.getMessage())
        if context:
            line = f"{line} ({context})"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def setup_logging():
    """Route all logging through a single stdout handler."""
    level = getattr(logging, LOG_LEVEL, logging.INFO)

    handler = logging.StreamHandler()
    handler.setFormatter(ConsoleFormatter() if LOG_FORMAT == "text" else StructuredJsonFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    for channel in CHANNELS:
        get_logger(channel).setLevel(level)

    return root_logger


def get_logger(channel: str) -> logging.Logger:
    return logging.getLogger(f"{LOGGER_PREFIX}.{channel}")


def log_with_context(logger: logging.Logger, level: str, message: str,
                     context: dict = None, extra_data: dict = None, exc_info=None):
    """
    Log on a channel logger with ids in context and measurements in extra_data.

    Example:
        log_with_context(scoring_logger, "INFO", "Score computed",
                         context={"result_id": result.id},
                         extra_data={"duration_ms": 4.2})
    """
    logger.log(
        getattr(logging, level.upper(), logging.INFO),
        message,
        exc_info=exc_info,
        extra={
            "context": context or {},
            "extra_data": extra_data or {},
            "channel": logger.name.rpartition(".")[2]
        }
    )


def generate_request_id() -> str:
    return str(uuid.uuid4())
