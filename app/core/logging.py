"""Structured logging configuration for the Settlement Readiness Engine.

Lines are rendered as ``key=value`` pairs. Settlement names often contain
spaces, so values with whitespace are quoted to keep lines splittable.
"""

import logging
import sys
from typing import Any

# Record attributes promoted to top-level fields when present
CONTEXT_FIELDS = ("settlement", "weights_version", "source")


class StructuredFormatter(logging.Formatter):
    """Key=value structured log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "module": record.module,
            "function": record.funcName,
            "message": record.getMessage(),
        }

        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_data[field] = value

        if hasattr(record, "extra_data"):
            log_data.update(record.extra_data)

        line = " ".join(f"{k}={_format_value(v)}" for k, v in log_data.items())
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def _format_value(value: Any) -> str:
    text = str(value)
    if not text or any(ch.isspace() for ch in text):
        return '"' + text.replace('"', '\\"') + '"'
    return text


def get_logger(name: str) -> logging.Logger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(StructuredFormatter())
        logger.addHandler(handler)

        try:
            from app.core.config import get_settings

            env = get_settings().READINESS_ENV
        except Exception:
            # Settings not loadable yet (missing env); stay at INFO
            env = None
        logger.setLevel(logging.DEBUG if env == "dev" else logging.INFO)

    return logger


def log_with_context(logger: logging.Logger, level: int, msg: str, **kwargs: Any) -> None:
    """
    Log with additional context fields.

    Known context fields (settlement, weights_version, source) become
    top-level fields; anything else goes to ``extra_data``.

    Args:
        logger: Logger instance
        level: Log level (logging.INFO, etc.)
        msg: Log message
        **kwargs: Context fields
    """
    extra: dict[str, Any] = {k: kwargs.pop(k) for k in CONTEXT_FIELDS if k in kwargs}
    extra["extra_data"] = kwargs
    logger.log(level, msg, extra=extra)
