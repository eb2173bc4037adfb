"""
Structured logging configuration.

JSON in production, plain text elsewhere. Modules add structured context
with `extra={"extra_fields": {...}}`.

Resonance is anonymous: identity keys are dropped from structured context
before a line is written, so no log line ties a user to an axis or a day.
"""
import logging
import sys
import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from core.config import settings

IDENTITY_FIELDS = frozenset({"user_id", "email", "token"})


def scrub_identity(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in fields.items() if k not in IDENTITY_FIELDS}


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
            "environment": settings.ENVIRONMENT,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra_fields = getattr(record, "extra_fields", None)
        if extra_fields:
            log_data.update(scrub_identity(extra_fields))

        # date, Decimal and UUID values fall back to str
        return json.dumps(log_data, default=str)


def setup_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> logging.Logger:
    """
    Configure the root logger.

    `level` and `fmt` ("json" or "text") default to LOG_LEVEL and LOG_FORMAT;
    production always logs JSON unless a format is passed explicitly.
    """
    log_level = getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO)
    fmt = fmt or ("json" if settings.ENVIRONMENT == "production" else settings.LOG_FORMAT)

    if fmt == "json":
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # Set levels for noisy libraries
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("alembic").setLevel(logging.INFO)
    logging.getLogger("redis").setLevel(logging.WARNING)

    return root_logger
