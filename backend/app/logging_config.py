"""JSON log lines on stdout, one logger per channel, tagged with the current request id."""

import logging
import json
import uuid
from datetime import datetime, timezone
from contextvars import ContextVar

from app.config import LOG_LEVEL

# Set per request by the middleware in main.py
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

CHANNELS = ["http", "store", "chat"]


class StructuredJsonFormatter(logging.Formatter):
    """One JSON object per record: timestamp, level, message, channel, context, extra."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
            "level": record.levelname,
            "message": record.getMessage(),
            "channel": getattr(record, "channel", record.name.split(".")[-1] if "." in record.name else "app"),
            "context": {
                "request_id": request_id_var.get(""),
                **(getattr(record, "context", {}) or {})
            },
            "extra": getattr(record, "extra_data", {}) or {}
        }
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


def setup_logging():
    """Configure the root logger and the channel loggers to emit JSON on stdout."""
    handler = logging.StreamHandler()
    handler.setFormatter(StructuredJsonFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
    root_logger.handlers = [handler]

    for channel in CHANNELS:
        logging.getLogger(f"app.{channel}").setLevel(getattr(logging, LOG_LEVEL, logging.INFO))

    return root_logger


def get_logger(channel: str) -> logging.Logger:
    """Get the logger for a channel (http, store, chat)."""
    return logging.getLogger(f"app.{channel}")


def log_with_context(logger: logging.Logger, level: str, message: str,
                     context: dict = None, extra_data: dict = None):
    """Log `message` with business `context` (student_id, provider) and `extra_data` (duration_ms, ...)."""
    log_level = getattr(logging, level.upper(), logging.INFO)
    logger.log(
        log_level,
        message,
        extra={"context": context or {}, "extra_data": extra_data or {}, "channel": logger.name.split(".")[-1]}
    )


def generate_request_id() -> str:
    return str(uuid.uuid4())
