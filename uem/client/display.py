"""
ErrorDisplayHandler — client-side UI channel.

Keeps the most recent messages per display target and forwards each one
to an optional renderer (a toast library, a modal, a status line).
"""

import logging
from collections import deque
from dataclasses import dataclass
from typing import Callable, Optional

from uem.interfaces.handler import ErrorHandler
from uem.models.definition import DisplayTarget, ErrorDefinition

logger = logging.getLogger("uem.client.display")

Renderer = Callable[["DisplayedMessage"], None]


@dataclass(frozen=True)
class DisplayedMessage:
    code: str
    message: str
    target: str
    blocking: str


class ErrorDisplayHandler(ErrorHandler):
    """Shows the user message unless the definition is log-only."""

    def __init__(self, renderer: Optional[Renderer] = None, history: int = 50):
        self.renderer = renderer
        self.displayed: deque[DisplayedMessage] = deque(maxlen=history)

    def should_handle(self, definition: ErrorDefinition) -> bool:
        return definition.display_target != DisplayTarget.LOG_ONLY

    def handle(
        self,
        code: str,
        definition: ErrorDefinition,
        context: dict,
        exception: Optional[BaseException] = None,
    ) -> None:
        shown = DisplayedMessage(
            code=code,
            message=definition.user_message.text,
            target=definition.display_target.value,
            blocking=definition.blocking.value,
        )
        self.displayed.append(shown)
        if self.renderer is not None:
            self.renderer(shown)

    def latest(self, target: Optional[str] = None) -> Optional[DisplayedMessage]:
        for shown in reversed(self.displayed):
            if target is None or shown.target == target:
                return shown
        return None
