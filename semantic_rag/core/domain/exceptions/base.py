"""Root of the engine's exception hierarchy.

Each error class declares a stable ``SR_*`` code and the HTTP status the
API answers with. Instances remember where they were raised and serialize
to the JSON error body shared by the API and the CLI.
"""

import inspect
import traceback
from dataclasses import dataclass
from pathlib import PurePath
from typing import Any


@dataclass(frozen=True)
class RaiseSite:
    """Class, method, file and line of the statement that raised an error."""

    owner: str
    method: str
    file: str
    line: int

    @classmethod
    def of_caller(cls, depth: int) -> "RaiseSite":
        """Describe the frame ``depth`` levels above the caller."""
        frame = inspect.currentframe()
        for _ in range(depth + 1):
            frame = frame.f_back if frame else None
        if frame is None:
            return cls("<unknown>", "<unknown>", "<unknown>", 0)

        instance = frame.f_locals.get("self")
        return cls(
            owner=type(instance).__name__ if instance is not None else "<module>",
            method=frame.f_code.co_name,
            file=PurePath(frame.f_code.co_filename.replace("\\", "/")).name,
            line=frame.f_lineno,
        )

    def to_dict(self) -> dict[str, Any]:
        return {"class": self.owner, "method": self.method, "file": self.file, "line": self.line}


class SemanticRagError(Exception):
    """Base exception for all engine errors.

    ``context`` holds whatever identifies the failing operation, usually
    the collection name and the offending values::

        raise DimensionMismatchError(
            "Embedding dimensions mismatch",
            context={"collection": "docs", "expected": 768, "actual": 3},
        )
    """

    error_code: str = "SR_ERR_001"
    status_code: int = 500

    def __init__(
        self,
        message: str,
        *,
        cause: Exception | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.context = dict(context or {})
        # __init__ -> raise statement
        self.raised_at = RaiseSite.of_caller(1)

    @property
    def collection(self) -> str | None:
        """Collection the failing operation targeted, when known."""
        return self.context.get("collection")

    def cause_trace(self) -> list[str]:
        """Formatted traceback of the wrapped exception, one line per entry."""
        if self.cause is None or self.cause.__traceback__ is None:
            return []
        lines = traceback.format_exception(type(self.cause), self.cause, self.cause.__traceback__)
        return [line.rstrip() for chunk in lines for line in chunk.splitlines() if line.strip()]

    def to_dict(self, include_trace: bool = False) -> dict[str, Any]:
        """Serialize as ``{error, location, context?, cause?, stack_trace?}``."""
        result: dict[str, Any] = {
            "error": {
                "type": type(self).__name__,
                "code": self.error_code,
                "message": self.message,
            },
            "location": self.raised_at.to_dict(),
        }
        if self.context:
            result["context"] = self.context
        if self.cause is not None:
            result["cause"] = {"type": type(self.cause).__name__, "message": str(self.cause)}
        if include_trace:
            trace = self.cause_trace()
            if trace:
                result["stack_trace"] = trace
        return result
