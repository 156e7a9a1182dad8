"""
ErrorSimulationHandler — records whether an error was fault-injected.

Observational only: reads TestingConditionsManager, never changes it.
Registered only outside production.
"""

import logging
from typing import Optional

from uem.interfaces.handler import ErrorHandler
from uem.models.definition import ErrorDefinition
from uem.testing_conditions import TestingConditionsManager

logger = logging.getLogger("uem.handlers.simulation")


class ErrorSimulationHandler(ErrorHandler):

    def __init__(self, conditions: TestingConditionsManager, environment: str):
        self.conditions = conditions
        self.environment = environment

    def should_handle(self, definition: ErrorDefinition) -> bool:
        return self.environment != "production"

    def handle(
        self,
        code: str,
        definition: ErrorDefinition,
        context: dict,
        exception: Optional[BaseException] = None,
    ) -> None:
        is_simulated = self.conditions.is_testing(code)
        original = context.get("_original_code")
        if not is_simulated and original:
            is_simulated = self.conditions.is_testing(original)

        logger.info(
            f"[{code}] is_simulated={is_simulated}",
            extra={
                "uem_code": code,
                "is_simulated": is_simulated,
                "environment": self.environment,
                "definition": definition.to_dict(),
                "context": context,
                "exception_class": type(exception).__name__ if exception else None,
            },
        )
