# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Structured logging for the orchestrator.

Every component logs through a child of the ``orchestrator`` logger. The
handler and level live on that one parent and come from Config, so component
loggers are plain ``logging.getLogger`` children that carry no handlers of
their own. Structured fields go in ``extra=`` and end up as JSON keys.
"""

import logging
import json
import sys
from datetime import datetime, timezone
from typing import Any, Optional, TextIO

ROOT_LOGGER_NAME = "orchestrator"

# LogRecord attributes that are not caller-supplied extra fields
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}

_configured = False


class JSONFormatter(logging.Formatter):
    """One JSON object per record: timestamp, level, logger, message, extras."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (key, value) for key, value in record.__dict__.items() if key not in _RECORD_ATTRS
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable lines; extra fields are appended as key=value."""

    def __init__(self):
        super().__init__(fmt="%(asctime)s %(levelname)-7s %(name)s: %(message)s", datefmt="%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = " ".join(
            f"{key}={value}" for key, value in record.__dict__.items() if key not in _RECORD_ATTRS
        )
        return f"{line} {fields}" if fields else line


def get_logger(
    name: str,
    log_level: str = "INFO",
    log_format: str = "json",
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Give a logger exactly one stream handler with the requested format.

    Calling it again for the same name replaces the handler rather than
    stacking another one.

    Args:
        name: Logger name
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        log_format: json or text
        stream: Output stream (stdout if omitted)
    """
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JSONFormatter() if log_format == "json" else TextFormatter())

    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    logger.handlers = [handler]
    return logger


def configure_logging(config=None, stream: Optional[TextIO] = None) -> logging.Logger:
    """Set up the ``orchestrator`` parent logger from config (process config if omitted)."""
    global _configured
    if config is None:
        from orchestrator.core.config import get_config
        config = get_config()

    logger = get_logger(ROOT_LOGGER_NAME, config.log_level, config.log_format, stream)
    _configured = True
    return logger


def get_service_logger(service_name: str) -> logging.Logger:
    """Logger for a core component (catalog, context, gate, workflow)."""
    if not _configured:
        configure_logging()
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.service.{service_name}")


def log_event(logger: logging.Logger, event: str, level: str = "INFO", **fields: Any) -> None:
    """Log an event name with structured fields."""
    logger.log(getattr(logging, level.upper(), logging.INFO), event, extra=fields)
