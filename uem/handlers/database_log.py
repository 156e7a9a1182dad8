"""
DatabaseLogHandler — persists each error as an ErrorLogRecord.

Context is sanitized and the trace truncated before anything is written.
Persistence failures are logged here and go no further.
"""

import logging
from typing import Optional

from uem.config import DatabaseLogSettings
from uem.handlers.base import ExceptionDetails
from uem.interfaces.error_log_store import ErrorLogStore
from uem.interfaces.handler import ErrorHandler
from uem.models.definition import ErrorDefinition
from uem.models.log_record import ErrorLogRecord
from uem.models.request import RequestInfoProvider, no_request
from uem.sanitization import SanitizationPolicy, truncate

logger = logging.getLogger("uem.handlers.database")


class DatabaseLogHandler(ErrorHandler):
    """Writes ErrorLogRecords through an ErrorLogStore."""

    def __init__(
        self,
        store: ErrorLogStore,
        settings: DatabaseLogSettings,
        request_info: RequestInfoProvider = no_request,
    ):
        self.store = store
        self.settings = settings
        self.request_info = request_info
        self.policy = SanitizationPolicy.of(
            settings.sensitive_keys, settings.max_string_length
        )

    def should_handle(self, definition: ErrorDefinition) -> bool:
        return self.settings.enabled

    def handle(
        self,
        code: str,
        definition: ErrorDefinition,
        context: dict,
        exception: Optional[BaseException] = None,
    ) -> None:
        try:
            record = self._build_record(code, definition, context, exception)
            saved = self.store.add(record)
            logger.debug(f"Persisted error log {saved.id} for [{code}]")
        except Exception as e:
            logger.error(f"Failed to persist error log for [{code}]: {e}")

    def _build_record(
        self,
        code: str,
        definition: ErrorDefinition,
        context: dict,
        exception: Optional[BaseException],
    ) -> ErrorLogRecord:
        details = ExceptionDetails.from_exception(exception)
        trace = ""
        if self.settings.include_trace and details.trace:
            trace = truncate(details.trace, self.settings.max_trace_length)

        record = ErrorLogRecord(
            code=code,
            severity=definition.severity.value,
            blocking=definition.blocking.value,
            dev_message=definition.dev_message.text,
            user_message=definition.user_message.text,
            http_status_code=definition.http_status_code,
            display_target=definition.display_target.value,
            context=self.policy.apply(context),
            exception_class=details.class_name,
            exception_message=self.policy.truncate(details.message),
            exception_file=details.file,
            exception_line=details.line,
            exception_trace=trace,
        )

        request = self.request_info()
        if request is not None:
            record.request_method = request.method
            record.request_url = self.policy.truncate(request.url)
            record.user_agent = self.policy.truncate(request.user_agent)
            record.ip_address = request.ip_address
            record.user_id = request.user_id
        return record
