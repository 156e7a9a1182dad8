"""
Persisted error log record.
"""

import json
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Optional


@dataclass
class ErrorLogRecord:
    """One persisted error occurrence. Context is already sanitized."""

    code: str
    severity: str
    blocking: str
    dev_message: str = ""
    user_message: str = ""
    http_status_code: int = 500
    display_target: str = "div"
    context: dict = field(default_factory=dict)

    exception_class: str = ""
    exception_message: str = ""
    exception_file: str = ""
    exception_line: Optional[int] = None
    exception_trace: str = ""

    request_method: str = ""
    request_url: str = ""
    user_agent: str = ""
    ip_address: str = ""
    user_id: Optional[str] = None

    resolved: bool = False
    resolved_at: str = ""
    resolved_by: str = ""
    resolution_notes: str = ""
    notified: bool = False

    id: str = ""
    created_at: str = ""

    def mark_resolved(self, resolved_by: str = "", notes: str = "") -> None:
        self.resolved = True
        self.resolved_at = datetime.now(timezone.utc).isoformat()
        self.resolved_by = resolved_by
        self.resolution_notes = notes

    def mark_unresolved(self) -> None:
        self.resolved = False
        self.resolved_at = ""
        self.resolved_by = ""
        self.resolution_notes = ""

    def context_summary(self, max_length: int = 100) -> str:
        """Short single-line rendering of the context for list views."""
        if not self.context:
            return "No context"
        summary = json.dumps(self.context, default=str)
        if len(summary) > max_length:
            return summary[:max_length] + "..."
        return summary

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "ErrorLogRecord":
        known = {f for f in cls.__dataclass_fields__}
        return cls(**{k: v for k, v in data.items() if k in known})
