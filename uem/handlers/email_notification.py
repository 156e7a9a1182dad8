"""
EmailNotificationHandler — emails the dev team about errors that ask for it.

Sensitive payload fields (IP, user agent, user details, trace) are each
behind their own setting and default to off.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Optional

from uem.config import EmailSettings
from uem.handlers.base import ExceptionDetails
from uem.interfaces.handler import ErrorHandler
from uem.interfaces.mailer import EmailMessage, Mailer
from uem.models.definition import ErrorDefinition
from uem.models.request import RequestInfoProvider, no_request
from uem.sanitization import SanitizationPolicy

logger = logging.getLogger("uem.handlers.email")


class EmailNotificationHandler(ErrorHandler):
    """Sends a plain-text error report through a Mailer."""

    def __init__(
        self,
        mailer: Mailer,
        settings: EmailSettings,
        app_name: str,
        environment: str,
        sensitive_keys: list[str],
        request_info: RequestInfoProvider = no_request,
    ):
        self.mailer = mailer
        self.settings = settings
        self.app_name = app_name
        self.environment = environment
        self.request_info = request_info
        self.policy = SanitizationPolicy.of(
            sensitive_keys, settings.context_max_string_length
        )

    def should_handle(self, definition: ErrorDefinition) -> bool:
        return (
            definition.notify.dev_team_email
            and self.settings.enabled
            and bool(self.settings.to)
        )

    def handle(
        self,
        code: str,
        definition: ErrorDefinition,
        context: dict,
        exception: Optional[BaseException] = None,
    ) -> None:
        try:
            payload = self.build_payload(code, definition, context, exception)
            self.mailer.send(EmailMessage(
                to=list(self.settings.to),
                sender=self.settings.sender,
                subject=self.subject(code),
                body=self.render_body(payload),
            ))
            logger.info(f"Error notification email sent for [{code}]")
        except Exception as e:
            logger.error(f"Failed to send error notification email for [{code}]: {e}")

    def subject(self, code: str) -> str:
        return f"{self.settings.subject_prefix}{self.app_name} ({self.environment}): {code}"

    def build_payload(
        self,
        code: str,
        definition: ErrorDefinition,
        context: dict,
        exception: Optional[BaseException] = None,
    ) -> dict:
        """Structured email payload. Optional fields appear only when enabled."""
        s = self.settings
        payload = {
            "app_name": self.app_name,
            "environment": self.environment,
            "error_code": code,
            "severity": definition.severity.value,
            "blocking": definition.blocking.value,
            "dev_message": definition.dev_message.text,
            "user_message": definition.user_message.text,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

        request = self.request_info()
        if request is not None:
            payload["request_method"] = request.method
            payload["request_url"] = self.policy.truncate(request.url)
            if s.include_ip_address:
                payload["ip_address"] = request.ip_address
            if s.include_user_agent:
                payload["user_agent"] = self.policy.truncate(request.user_agent)
            if s.include_user_details and request.user_id:
                payload["user"] = {
                    "id": request.user_id,
                    "name": request.user_name,
                    "email": request.user_email,
                }

        if s.include_context and context:
            payload["context"] = self.policy.apply(context)

        if exception is not None:
            details = ExceptionDetails.from_exception(exception)
            payload["exception"] = {
                "class": details.class_name,
                "message": self.policy.truncate(details.message),
                "file": details.file,
                "line": details.line,
            }
            if s.include_trace:
                payload["exception"]["trace"] = details.trace_lines(s.trace_max_lines)

        return payload

    def render_body(self, payload: dict) -> str:
        lines = [
            f"An error occurred in {payload['app_name']} ({payload['environment']}).",
            "",
            f"Error code:  {payload['error_code']}",
            f"Severity:    {payload['severity']} / {payload['blocking']}",
            f"Timestamp:   {payload['timestamp']}",
            f"Message:     {payload['dev_message']}",
        ]
        if payload.get("user_message"):
            lines.append(f"User saw:    {payload['user_message']}")

        if "request_url" in payload:
            lines += ["", f"Request:     {payload['request_method']} {payload['request_url']}"]
            if "ip_address" in payload:
                lines.append(f"IP address:  {payload['ip_address']}")
            if "user_agent" in payload:
                lines.append(f"User agent:  {payload['user_agent']}")
            if "user" in payload:
                user = payload["user"]
                lines.append(f"User:        {user['name']} <{user['email']}> (id {user['id']})")

        if "exception" in payload:
            exc = payload["exception"]
            lines += [
                "",
                f"Exception:   {exc['class']}: {exc['message']}",
                f"Location:    {exc['file']}:{exc['line']}",
            ]
            if "trace" in exc:
                lines += ["", "Trace:", exc["trace"]]

        if "context" in payload:
            lines += ["", "Context:", json.dumps(payload["context"], indent=2, default=str)]

        return "\n".join(lines)
