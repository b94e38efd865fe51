"""Render exceptions for the API and the CLI.

Engine errors know their own code and HTTP status; anything else is
described from its traceback and mapped through a short table of builtin
exception types.
"""

import logging
import traceback
from pathlib import PurePath
from typing import Any

from ...core.domain.exceptions import SemanticRagError

logger = logging.getLogger(__name__)

FOREIGN_ERROR_CODE = "PYTHON_ERR"

_BUILTIN_STATUS: tuple[tuple[type[Exception], int], ...] = (
    (ValueError, 400),
    (ConnectionError, 503),
    (TimeoutError, 503),
)


def get_error_code(exc: Exception) -> str:
    """``SR_*`` code of an engine error, ``PYTHON_ERR`` for anything else."""
    if isinstance(exc, SemanticRagError):
        return exc.error_code
    return FOREIGN_ERROR_CODE


def get_http_status_code(exc: Exception) -> int:
    if isinstance(exc, SemanticRagError):
        return exc.status_code
    for exc_type, status in _BUILTIN_STATUS:
        if isinstance(exc, exc_type):
            return status
    return 500


def _trace_lines(exc: BaseException) -> list[str]:
    chunks = traceback.format_exception(type(exc), exc, exc.__traceback__)
    return [line.rstrip() for chunk in chunks for line in chunk.splitlines() if line.strip()]


def _describe_foreign(exc: Exception, include_trace: bool) -> dict[str, Any]:
    frames = traceback.extract_tb(exc.__traceback__)
    last = frames[-1] if frames else None

    result: dict[str, Any] = {
        "error": {"type": type(exc).__name__, "code": FOREIGN_ERROR_CODE, "message": str(exc)},
        "location": {
            "class": "<unknown>",
            "method": last.name if last else "<unknown>",
            "file": PurePath(last.filename.replace("\\", "/")).name if last else "<unknown>",
            "line": (last.lineno or 0) if last else 0,
        },
    }
    if include_trace:
        result["stack_trace"] = _trace_lines(exc)
    return result


def format_exception_json(
    exc: Exception,
    include_trace: bool = False,
    extra_context: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build the JSON error body for any exception.

    Args:
        exc: The exception to describe.
        include_trace: Add the formatted traceback (debug mode).
        extra_context: Request details merged into ``context``.
    """
    if isinstance(exc, SemanticRagError):
        result = exc.to_dict(include_trace=include_trace)
    else:
        result = _describe_foreign(exc, include_trace)

    if extra_context:
        result["context"] = {**result.get("context", {}), **extra_context}
    return result


def log_exception(
    exc: Exception,
    log: logging.Logger | None = None,
    extra_context: dict[str, Any] | None = None,
) -> None:
    """Log an exception with its code, status and collection as record fields.

    Client errors (4xx) log at WARNING without a traceback; everything
    else logs at ERROR with one.
    """
    status = get_http_status_code(exc)
    fields: dict[str, Any] = {"error_code": get_error_code(exc), "status": status}
    if isinstance(exc, SemanticRagError) and exc.collection:
        fields["collection"] = exc.collection
    if extra_context:
        fields.update(extra_context)

    level = logging.WARNING if status < 500 else logging.ERROR
    (log or logger).log(
        level,
        "%s: %s",
        type(exc).__name__,
        exc,
        exc_info=exc if level >= logging.ERROR else None,
        extra=fields,
    )
