"""
ErrorResolver — code → ErrorDefinition, never failing.

Fallback chain:
  1. the requested code
  2. UNDEFINED_ERROR_CODE
  3. FALLBACK_ERROR (the fallback_error configuration section)
  4. FATAL_FALLBACK_FAILURE, hardcoded here and never read from configuration
"""

import logging

from uem.models.definition import (
    BlockingLevel, DisplayTarget, ErrorDefinition, MessageRef, NotifyFlags, Severity,
)
from uem.registry import ErrorDefinitionRegistry, FALLBACK_ERROR

logger = logging.getLogger("uem.resolver")

UNDEFINED_ERROR_CODE = "UNDEFINED_ERROR_CODE"

FATAL_FALLBACK_FAILURE = ErrorDefinition(
    code="FATAL_FALLBACK_FAILURE",
    severity=Severity.CRITICAL,
    blocking=BlockingLevel.BLOCKING,
    dev_message=MessageRef(
        text="FATAL: Fallback configuration missing or invalid. System cannot respond.",
        key="errors.dev.fatal_fallback_failure",
    ),
    user_message=MessageRef(
        text="A critical system error occurred. Please contact support immediately. [Ref: FATAL]",
        key="errors.user.fatal_fallback_failure",
    ),
    http_status_code=500,
    notify=NotifyFlags(dev_team_email=True, slack=True),
    display_target=DisplayTarget.MODAL,
)


class ErrorResolver:
    """Resolves codes against a registry with a guaranteed terminal fallback."""

    def __init__(self, registry: ErrorDefinitionRegistry):
        self.registry = registry

    def resolve(self, code: str) -> ErrorDefinition:
        definition = self.registry.get(code)
        if definition is not None:
            return definition

        logger.warning(f"Undefined error code '{code}', trying {UNDEFINED_ERROR_CODE}")
        definition = self.registry.get(UNDEFINED_ERROR_CODE)
        if definition is not None:
            return definition

        logger.error(
            f"{UNDEFINED_ERROR_CODE} not configured (original '{code}'), "
            f"trying {FALLBACK_ERROR}"
        )
        definition = self.registry.get(FALLBACK_ERROR)
        if definition is not None:
            return definition

        logger.critical(
            f"{FALLBACK_ERROR} not configured (original '{code}'), "
            f"using {FATAL_FALLBACK_FAILURE.code}"
        )
        return FATAL_FALLBACK_FAILURE
