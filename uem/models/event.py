"""
Per-occurrence models: the event that flows through the handler chain
and the response handed back to the caller.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from uem.models.definition import ErrorDefinition


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ErrorEvent:
    """One handled error. Created per dispatch call, never persisted."""

    code: str                              # Code requested by the caller
    definition: ErrorDefinition            # Resolved (maybe a fallback)
    context: dict = field(default_factory=dict)
    exception: Optional[BaseException] = None
    timestamp: datetime = field(default_factory=_utcnow)


@dataclass
class ErrorResponse:
    """What the dispatcher returns for the caller to relay."""

    error_code: str
    message: str
    blocking: str
    display_mode: str
    http_status: int
    terminal: bool = False

    def to_dict(self) -> dict:
        """Server error JSON body, as read by the client mirror."""
        return {
            "error": self.error_code,
            "message": self.message,
            "blocking": self.blocking,
            "display_mode": self.display_mode,
        }


class UEMError(Exception):
    """Raised when a critical, blocking error is dispatched with force_throw.

    Also usable directly by application code to carry an error code up to
    ErrorDispatcher.handle_exception().
    """

    def __init__(
        self,
        message: str,
        status: int = 500,
        code: str = "UNEXPECTED_ERROR",
        context: Optional[dict] = None,
    ):
        self.message = message
        self.status = status
        self.code = code
        self.context = context or {}
        super().__init__(message)
