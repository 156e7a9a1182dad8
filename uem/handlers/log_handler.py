"""
LogHandler — writes every handled error to the application log.
"""

import logging
from typing import Optional

from uem.handlers.base import SEVERITY_LOG_LEVELS
from uem.interfaces.handler import ErrorHandler
from uem.models.definition import ErrorDefinition

logger = logging.getLogger("uem.handlers.log")


class LogHandler(ErrorHandler):
    """Logs at the level mapped from the definition's severity."""

    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logger

    def should_handle(self, definition: ErrorDefinition) -> bool:
        return True

    def handle(
        self,
        code: str,
        definition: ErrorDefinition,
        context: dict,
        exception: Optional[BaseException] = None,
    ) -> None:
        level = SEVERITY_LOG_LEVELS.get(definition.severity, logging.ERROR)
        self.log.log(
            level,
            f"[{code}] {definition.dev_message.text or 'No developer message'}",
            exc_info=exception,
            extra={
                "uem_code": code,
                "uem_severity": definition.severity.value,
                "uem_blocking": definition.blocking.value,
                "uem_context_keys": list(context),
            },
        )
