"""Logging setup for the ``semantic_rag`` logger tree.

Modules log through ``logging.getLogger(__name__)`` and attach operation
context with ``extra=``, for example
``logger.debug("Searching", extra={"collection": name, "strategy": "hnsw"})``.
Both formatters render the fields listed in ``CONTEXT_FIELDS`` when a
record carries them.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Any

ROOT_LOGGER_NAME = "semantic_rag"

CONTEXT_FIELDS = (
    "collection",
    "strategy",
    "count",
    "stage",
    "error_code",
    "status",
    "method",
    "path",
)


def record_context(record: logging.LogRecord) -> dict[str, Any]:
    """Context fields attached to a record, in ``CONTEXT_FIELDS`` order."""
    return {name: getattr(record, name) for name in CONTEXT_FIELDS if hasattr(record, name)}


class TextFormatter(logging.Formatter):
    """``time | LEVEL | logger | message key=value ...`` lines."""

    def __init__(self) -> None:
        super().__init__(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def formatMessage(self, record: logging.LogRecord) -> str:
        line = super().formatMessage(record)
        context = record_context(record)
        if not context:
            return line
        return line + " " + " ".join(f"{key}={value}" for key, value in context.items())


class JSONFormatter(logging.Formatter):
    """One JSON object per record, context fields under ``context``."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "source": f"{record.module}:{record.funcName}:{record.lineno}",
        }

        context = record_context(record)
        if context:
            entry["context"] = context

        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(entry, default=str)


def setup_logging(
    level: str = "INFO",
    log_file: Path | None = None,
    json_format: bool = False,
) -> logging.Logger:
    """Configure the package logger, replacing handlers from earlier calls.

    Args:
        level: Logging level name.
        log_file: Also write records to this file.
        json_format: Emit JSON objects instead of text lines.

    Returns:
        The package logger.
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter: logging.Formatter = JSONFormatter() if json_format else TextFormatter()
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger
