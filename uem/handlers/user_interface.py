"""
UserInterfaceHandler — leaves the user message for the next request.

Slots are keyed by display target (error_div, error_modal, error_toast)
so each rendering mechanism reads its own slot.
"""

import logging
from typing import Optional

from uem.config import UISettings
from uem.interfaces.flash_store import FlashStore
from uem.interfaces.handler import ErrorHandler
from uem.models.definition import DisplayTarget, ErrorDefinition

logger = logging.getLogger("uem.handlers.ui")


class UserInterfaceHandler(ErrorHandler):
    """Flashes the sanitized user message into a FlashStore."""

    def __init__(self, flash: FlashStore, settings: UISettings):
        self.flash = flash
        self.settings = settings

    def should_handle(self, definition: ErrorDefinition) -> bool:
        return (
            definition.display_target != DisplayTarget.LOG_ONLY
            and bool(definition.user_message)
        )

    def handle(
        self,
        code: str,
        definition: ErrorDefinition,
        context: dict,
        exception: Optional[BaseException] = None,
    ) -> None:
        target = definition.display_target.value
        message = definition.user_message.text

        self.flash.flash(f"error_{target}", message)
        if self.settings.show_error_codes:
            self.flash.flash(f"error_code_{target}", code)

        self.flash.flash("error_info", {
            "error_code": code,
            "message": message,
            "type": definition.severity.value,
            "blocking": definition.blocking.value,
            "display_target": target,
        })
        logger.debug(f"Flashed [{code}] to error_{target}")
