"""
RecoveryActionHandler — runs the recovery action named by a definition.

Actions are plain callables registered by id, e.g.:

    recovery.register("create_temp_directory", lambda code, ctx, exc: make_dirs(ctx["path"]))

An action returns True on success. Unknown ids and failures are logged.
"""

import logging
from typing import Callable, Optional

from uem.interfaces.handler import ErrorHandler
from uem.models.definition import ErrorDefinition

logger = logging.getLogger("uem.handlers.recovery")

RecoveryAction = Callable[[str, dict, Optional[BaseException]], bool]


class RecoveryActionHandler(ErrorHandler):
    """Dispatches to registered recovery callables."""

    def __init__(self, actions: Optional[dict[str, RecoveryAction]] = None):
        self._actions: dict[str, RecoveryAction] = dict(actions or {})

    def register(self, action_id: str, action: RecoveryAction) -> None:
        self._actions[action_id] = action

    def available(self) -> list[str]:
        return sorted(self._actions)

    def should_handle(self, definition: ErrorDefinition) -> bool:
        return bool(definition.recovery_action)

    def handle(
        self,
        code: str,
        definition: ErrorDefinition,
        context: dict,
        exception: Optional[BaseException] = None,
    ) -> None:
        action_id = definition.recovery_action
        action = self._actions.get(action_id)
        if action is None:
            logger.warning(
                f"Unknown recovery action '{action_id}' for [{code}] "
                f"(registered: {', '.join(self.available()) or 'none'})"
            )
            return

        try:
            succeeded = bool(action(code, context, exception))
        except Exception as e:
            logger.error(f"Recovery action '{action_id}' failed for [{code}]: {e}")
            return

        if succeeded:
            logger.info(f"Recovery action '{action_id}' succeeded for [{code}]")
        else:
            logger.warning(f"Recovery action '{action_id}' did not recover [{code}]")
