"""
Error definition models.

An ErrorDefinition is the full, immutable description of one error code:
how bad it is, whether it stops the request, what to tell developers and
users, and which channels should hear about it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class DefinitionError(Exception):
    """An error definition in configuration is malformed."""

    pass


class Severity(str, Enum):
    """How serious the error is. Drives log level and notification defaults."""

    CRITICAL = "critical"
    ERROR = "error"
    WARNING = "warning"
    NOTICE = "notice"


class BlockingLevel(str, Enum):
    """Impact on the flow of the operation that raised the error."""

    BLOCKING = "blocking"
    SEMI_BLOCKING = "semi-blocking"
    NOT_BLOCKING = "not-blocking"

    @classmethod
    def parse(cls, value: str) -> "BlockingLevel":
        # Older configuration files spell not-blocking as "not"
        if value == "not":
            return cls.NOT_BLOCKING
        return cls(value)


class DisplayTarget(str, Enum):
    """Where the user-facing message is rendered."""

    DIV = "div"
    MODAL = "modal"
    TOAST = "toast"
    LOG_ONLY = "log-only"

    @classmethod
    def parse(cls, value: str) -> "DisplayTarget":
        if value == "sweet-alert":
            return cls.MODAL
        return cls(value)


@dataclass(frozen=True)
class MessageRef:
    """A message given either as literal text or as a translation key."""

    text: str = ""
    key: str = ""

    def __bool__(self) -> bool:
        return bool(self.text or self.key)


@dataclass(frozen=True)
class NotifyFlags:
    """Which notification channels a definition asks for."""

    dev_team_email: bool = False
    slack: bool = False


@dataclass(frozen=True)
class ErrorDefinition:
    """Everything the pipeline needs to know about one error code."""

    code: str
    severity: Severity
    blocking: BlockingLevel
    dev_message: MessageRef = field(default_factory=MessageRef)
    user_message: MessageRef = field(default_factory=MessageRef)
    http_status_code: int = 500
    notify: NotifyFlags = field(default_factory=NotifyFlags)
    display_target: DisplayTarget = DisplayTarget.DIV
    recovery_action: Optional[str] = None

    @property
    def is_critical_blocking(self) -> bool:
        return (
            self.severity == Severity.CRITICAL
            and self.blocking == BlockingLevel.BLOCKING
        )

    @classmethod
    def from_dict(cls, code: str, data: dict) -> "ErrorDefinition":
        """Build a definition from its configuration mapping.

        Raises DefinitionError when an enum field holds an unknown value or the
        status code is not an integer.
        """
        try:
            severity = Severity(data.get("type", "error"))
            blocking = BlockingLevel.parse(data.get("blocking", "blocking"))
            target = DisplayTarget.parse(data.get("msg_to", "div"))
            status = int(data.get("http_status_code", 500))
        except (ValueError, TypeError) as e:
            raise DefinitionError(f"Invalid definition for '{code}': {e}") from e

        return cls(
            code=code,
            severity=severity,
            blocking=blocking,
            dev_message=MessageRef(
                text=data.get("dev_message") or "",
                key=data.get("dev_message_key") or "",
            ),
            user_message=MessageRef(
                text=data.get("user_message") or "",
                key=data.get("user_message_key") or "",
            ),
            http_status_code=status,
            notify=NotifyFlags(
                dev_team_email=bool(data.get("devTeam_email_need", False)),
                slack=bool(data.get("notify_slack", False)),
            ),
            display_target=target,
            recovery_action=data.get("recovery_action") or None,
        )

    def to_dict(self) -> dict:
        data = {
            "type": self.severity.value,
            "blocking": self.blocking.value,
            "http_status_code": self.http_status_code,
            "devTeam_email_need": self.notify.dev_team_email,
            "notify_slack": self.notify.slack,
            "msg_to": self.display_target.value,
        }
        if self.dev_message.key:
            data["dev_message_key"] = self.dev_message.key
        if self.dev_message.text:
            data["dev_message"] = self.dev_message.text
        if self.user_message.key:
            data["user_message_key"] = self.user_message.key
        if self.user_message.text:
            data["user_message"] = self.user_message.text
        if self.recovery_action:
            data["recovery_action"] = self.recovery_action
        return data
