"""
Error Handler Interface

Every channel in the handler chain implements this two-method contract.
Implementations: LogHandler, DatabaseLogHandler, EmailNotificationHandler,
SlackNotificationHandler, UserInterfaceHandler, RecoveryActionHandler,
ErrorSimulationHandler.
"""

from abc import ABC, abstractmethod
from typing import Optional

from uem.models.definition import ErrorDefinition


class ErrorHandler(ABC):
    """
    A pluggable consumer of resolved errors.

    The dispatcher calls should_handle() first, then handle() only if it
    returned True. handle() is side-effecting only; its return value is
    ignored and any exception it raises is caught by the dispatcher.
    """

    @abstractmethod
    def should_handle(self, definition: ErrorDefinition) -> bool:
        """Whether this handler wants to process errors of this definition."""
        ...

    @abstractmethod
    def handle(
        self,
        code: str,
        definition: ErrorDefinition,
        context: dict,
        exception: Optional[BaseException] = None,
    ) -> None:
        """Process one error occurrence."""
        ...
