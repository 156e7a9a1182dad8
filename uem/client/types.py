"""
Client-side models for the definitions endpoint and server error bodies.
"""

from dataclasses import dataclass, field
from typing import Optional

from uem.models.definition import ErrorDefinition


@dataclass(frozen=True)
class ErrorTypeConfig:
    """Defaults per severity, from the `types` section."""

    log_level: str
    notify_team: bool = False
    http_status: int = 500

    @classmethod
    def from_dict(cls, data: dict) -> "ErrorTypeConfig":
        return cls(
            log_level=str(data.get("log_level", "error")),
            notify_team=bool(data.get("notify_team", False)),
            http_status=int(data.get("http_status", 500)),
        )


@dataclass(frozen=True)
class BlockingLevelConfig:
    """Flow behaviour per blocking level, from `blocking_levels`."""

    terminate_request: bool
    clear_session: Optional[bool] = None
    flash_session: Optional[bool] = None

    @classmethod
    def from_dict(cls, data: dict) -> "BlockingLevelConfig":
        return cls(
            terminate_request=bool(data.get("terminate_request", False)),
            clear_session=data.get("clear_session"),
            flash_session=data.get("flash_session"),
        )


@dataclass
class ErrorConfigSet:
    """One complete, cached copy of the definitions. Replaced wholesale on reload."""

    errors: dict[str, ErrorDefinition] = field(default_factory=dict)
    types: dict[str, ErrorTypeConfig] = field(default_factory=dict)
    blocking_levels: dict[str, BlockingLevelConfig] = field(default_factory=dict)


@dataclass(frozen=True)
class ServerErrorResponse:
    """JSON body of an error response: {error, message, blocking, display_mode}."""

    error: str
    message: str
    blocking: Optional[str] = None
    display_mode: Optional[str] = None

    @classmethod
    def from_payload(cls, payload) -> Optional["ServerErrorResponse"]:
        """Parse a decoded body, or None if it does not have the server error shape."""
        if not isinstance(payload, dict):
            return None
        error, message = payload.get("error"), payload.get("message")
        if not isinstance(error, str) or not isinstance(message, str):
            return None
        blocking = payload.get("blocking")
        display_mode = payload.get("display_mode")
        return cls(
            error=error,
            message=message,
            blocking=blocking if isinstance(blocking, str) else None,
            display_mode=display_mode if isinstance(display_mode, str) else None,
        )
