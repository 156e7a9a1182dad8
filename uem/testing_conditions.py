"""
Fault-injection flags.

One instance per process, built by build_dispatcher() and passed to
whoever needs it. A condition is active only when the global switch and
the per-code flag are both on.
"""

import logging

logger = logging.getLogger("uem.testing")


class TestingConditionsManager:
    """Global enable switch plus per-code booleans."""

    # Not a pytest test class
    __test__ = False

    def __init__(self, environment: str = "production"):
        self._conditions: dict[str, bool] = {}
        self._enabled = environment != "production"

    def set_condition(self, code: str, value: bool = True) -> None:
        self._conditions[code] = bool(value)
        logger.debug(f"Testing condition {code} = {value}")

    def clear_condition(self, code: str) -> None:
        self._conditions.pop(code, None)

    def is_testing(self, code: str) -> bool:
        return self._enabled and self._conditions.get(code, False)

    def set_global_enabled(self, enabled: bool) -> None:
        self._enabled = bool(enabled)
        logger.info(f"Testing conditions {'enabled' if enabled else 'disabled'}")

    def is_testing_enabled(self) -> bool:
        return self._enabled

    def active_conditions(self) -> dict[str, bool]:
        """Per-code flags currently set to True (ignores the global switch)."""
        return {code: True for code, value in self._conditions.items() if value}

    def reset_all(self) -> None:
        self._conditions.clear()
