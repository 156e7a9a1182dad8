"""
Helpers shared by the handler implementations.
"""

import logging
import traceback
from dataclasses import dataclass
from typing import Optional

from uem.models.definition import Severity

SEVERITY_LOG_LEVELS = {
    Severity.CRITICAL: logging.CRITICAL,
    Severity.ERROR: logging.ERROR,
    Severity.WARNING: logging.WARNING,
    Severity.NOTICE: logging.INFO,
}


@dataclass
class ExceptionDetails:
    """Flattened view of an exception for logs and notifications."""

    class_name: str = ""
    message: str = ""
    file: str = ""
    line: Optional[int] = None
    trace: str = ""

    @classmethod
    def from_exception(cls, exc: Optional[BaseException]) -> "ExceptionDetails":
        if exc is None:
            return cls()
        frames = traceback.extract_tb(exc.__traceback__) if exc.__traceback__ else []
        last = frames[-1] if frames else None
        return cls(
            class_name=type(exc).__name__,
            message=str(exc),
            file=last.filename if last else "",
            line=last.lineno if last else None,
            trace="".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
        )

    def trace_lines(self, max_lines: int) -> str:
        lines = self.trace.splitlines()
        snippet = "\n".join(lines[:max_lines])
        if len(lines) > max_lines:
            snippet += f"\n... ({len(lines) - max_lines} more lines)"
        return snippet
