"""
SlackNotificationHandler — posts errors to a Slack incoming webhook.

Payload uses Block Kit with a colored attachment per severity. Context is
sanitized with nested collections summarised, then capped as JSON.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Optional

import httpx

from uem.config import SlackSettings
from uem.handlers.base import ExceptionDetails
from uem.interfaces.handler import ErrorHandler
from uem.models.definition import ErrorDefinition, Severity
from uem.models.request import RequestInfoProvider, no_request
from uem.sanitization import SanitizationPolicy

logger = logging.getLogger("uem.handlers.slack")

SEVERITY_COLORS = {
    Severity.CRITICAL: "danger",
    Severity.ERROR: "#FFA500",
    Severity.WARNING: "warning",
    Severity.NOTICE: "#439FE0",
}

SEVERITY_EMOJI = {
    Severity.CRITICAL: ":rotating_light:",
    Severity.ERROR: ":x:",
    Severity.WARNING: ":warning:",
    Severity.NOTICE: ":information_source:",
}


class SlackNotificationHandler(ErrorHandler):
    """Sends a Block Kit message through a webhook with httpx."""

    def __init__(
        self,
        settings: SlackSettings,
        app_name: str,
        environment: str,
        sensitive_keys: list[str],
        request_info: RequestInfoProvider = no_request,
        client: Optional[httpx.Client] = None,
    ):
        self.settings = settings
        self.app_name = app_name
        self.environment = environment
        self.request_info = request_info
        self._client = client
        self.policy = SanitizationPolicy.of(
            sensitive_keys, settings.context_string_max_length, summarize_nested=True
        )

    @property
    def client(self) -> httpx.Client:
        # Created on first send so disabled handlers hold no connection pool
        if self._client is None:
            self._client = httpx.Client(timeout=self.settings.timeout)
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def should_handle(self, definition: ErrorDefinition) -> bool:
        wanted = definition.notify.slack or (
            self.settings.notify_all_critical and definition.severity == Severity.CRITICAL
        )
        return wanted and self.settings.enabled and bool(self.settings.webhook_url)

    def handle(
        self,
        code: str,
        definition: ErrorDefinition,
        context: dict,
        exception: Optional[BaseException] = None,
    ) -> None:
        try:
            payload = self.build_payload(code, definition, context, exception)
            resp = self.client.post(
                self.settings.webhook_url,
                json=payload,
                timeout=self.settings.timeout,
            )
            if resp.status_code >= 300:
                logger.error(
                    f"Slack webhook returned {resp.status_code} for [{code}]: "
                    f"{resp.text[:200]}"
                )
                return
            logger.info(f"Slack notification sent for [{code}]")
        except httpx.HTTPError as e:
            logger.error(f"Slack notification failed for [{code}]: {e}")
        except Exception as e:
            logger.error(f"Failed to build Slack notification for [{code}]: {e}")

    def build_payload(
        self,
        code: str,
        definition: ErrorDefinition,
        context: dict,
        exception: Optional[BaseException] = None,
    ) -> dict:
        s = self.settings
        emoji = SEVERITY_EMOJI.get(definition.severity, ":x:")
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")

        fields = [
            {"type": "mrkdwn", "text": f"*Error code:*\n`{code}`"},
            {"type": "mrkdwn", "text": f"*Severity:*\n{definition.severity.value} / {definition.blocking.value}"},
            {"type": "mrkdwn", "text": f"*Environment:*\n{self.environment}"},
            {"type": "mrkdwn", "text": f"*Time:*\n{timestamp}"},
        ]

        request = self.request_info()
        if request is not None:
            fields.append({
                "type": "mrkdwn",
                "text": f"*Request:*\n{request.method} {self.policy.truncate(request.url)}",
            })
            if s.include_ip_address and request.ip_address:
                fields.append({"type": "mrkdwn", "text": f"*IP:*\n{request.ip_address}"})
            if s.include_user_details and request.user_id:
                fields.append({
                    "type": "mrkdwn",
                    "text": f"*User:*\n{request.user_name or request.user_id} ({request.user_id})",
                })

        blocks = [
            {
                "type": "header",
                "text": {"type": "plain_text", "text": f"{self.app_name}: {code}", "emoji": True},
            },
            {"type": "section", "fields": fields},
            {
                "type": "section",
                "text": {"type": "mrkdwn", "text": f"{emoji} *Message:*\n{definition.dev_message.text}"},
            },
        ]

        if exception is not None:
            details = ExceptionDetails.from_exception(exception)
            text = (
                f"*Exception:* `{details.class_name}`\n"
                f"{self.policy.truncate(details.message)}\n"
                f"_{details.file}:{details.line}_"
            )
            blocks.append({"type": "section", "text": {"type": "mrkdwn", "text": text}})
            if s.include_trace_snippet:
                blocks.append({
                    "type": "section",
                    "text": {"type": "mrkdwn", "text": f"```{details.trace_lines(s.trace_max_lines)}```"},
                })

        if s.include_context and context:
            context_json = json.dumps(self.policy.apply(context), indent=2, default=str)
            if len(context_json) > s.context_max_length:
                context_json = context_json[: s.context_max_length] + "\n...(truncated)"
            blocks.append({
                "type": "section",
                "text": {"type": "mrkdwn", "text": f"*Context:*\n```{context_json}```"},
            })

        payload = {
            "text": f"{emoji} [{self.environment}] {code}: {definition.dev_message.text}",
            "username": s.username,
            "icon_emoji": s.icon_emoji,
            "attachments": [
                {
                    "color": SEVERITY_COLORS.get(definition.severity, "danger"),
                    "blocks": blocks,
                }
            ],
        }
        if s.channel:
            payload["channel"] = s.channel
        return payload
