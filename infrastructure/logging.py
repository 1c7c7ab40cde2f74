"""Structured JSON logging for the order lifecycle service."""
import json
import logging
import os
import sys
import traceback
from datetime import datetime, timezone
from typing import Any, Dict


class StructuredLogger:
    """Logger that writes one JSON object per line, with keyword context."""

    def __init__(self, service_name: str, level: int | str | None = None):
        self.service_name = service_name
        self.logger = logging.getLogger(service_name)
        self.logger.setLevel(level if level is not None else _default_level())
        self.logger.propagate = False

        self.logger.handlers.clear()
        self.logger.addHandler(self._setup_handler(sys.stdout))

    def _setup_handler(self, stream):
        handler = logging.StreamHandler(stream)
        handler.setFormatter(JsonFormatter(self.service_name))
        return handler

    def debug(self, message: str, **context):
        self.logger.debug(message, extra={"context": context})

    def info(self, message: str, **context):
        self.logger.info(message, extra={"context": context})

    def warning(self, message: str, **context):
        self.logger.warning(message, extra={"context": context})

    def error(self, message: str, exc_info: bool = False, **context):
        self.logger.error(message, exc_info=exc_info, extra={"context": context})


class JsonFormatter(logging.Formatter):
    def __init__(self, service_name: str):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "service": self.service_name,
            "message": record.getMessage(),
        }

        context = getattr(record, "context", None)
        if context:
            entry.update(context)

        if record.exc_info:
            entry["exception"] = "".join(traceback.format_exception(*record.exc_info))

        # Enums and datetimes in context fall back to str().
        return json.dumps(entry, default=str)


def _default_level() -> str:
    return os.getenv("APP__LOG_LEVEL", "INFO").upper()


_loggers: Dict[str, StructuredLogger] = {}


def get_logger(service_name: str, level: int | str | None = None) -> StructuredLogger:
    """Return the structured logger for a service, creating it once."""
    logger = _loggers.get(service_name)
    if logger is None:
        logger = StructuredLogger(service_name=service_name, level=level)
        _loggers[service_name] = logger
    elif level is not None:
        logger.logger.setLevel(level)
    return logger
