"""
Error Definition Registry — code → ErrorDefinition.

Static definitions come from errors.yaml. Definitions added at runtime
with define() take priority over static ones with the same code.
"""

import logging
from pathlib import Path
from typing import Optional

import yaml

from uem.models.definition import ErrorDefinition

logger = logging.getLogger("uem.registry")

FALLBACK_ERROR = "FALLBACK_ERROR"


class ErrorDefinitionRegistry:
    """Holds every known error definition plus the severity/blocking tables."""

    def __init__(self):
        self._static: dict[str, ErrorDefinition] = {}
        self._runtime: dict[str, ErrorDefinition] = {}
        self.types: dict[str, dict] = {}
        self.blocking_levels: dict[str, dict] = {}

    @classmethod
    def from_dict(cls, data: dict) -> "ErrorDefinitionRegistry":
        """Build from the errors.yaml mapping.

        Expected keys: errors, fallback_error, types, blocking_levels.
        Raises DefinitionError if any definition is malformed.
        """
        registry = cls()
        for code, entry in (data.get("errors") or {}).items():
            registry._static[code] = ErrorDefinition.from_dict(code, entry)

        fallback = data.get("fallback_error")
        if fallback:
            registry._static[FALLBACK_ERROR] = ErrorDefinition.from_dict(
                FALLBACK_ERROR, fallback
            )

        registry.types = dict(data.get("types") or {})
        registry.blocking_levels = dict(data.get("blocking_levels") or {})
        return registry

    @classmethod
    def from_yaml(cls, path: Path) -> "ErrorDefinitionRegistry":
        path = Path(path)
        if not path.exists():
            logger.warning(f"Error definitions file not found: {path}")
            return cls()
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        registry = cls.from_dict(data)
        logger.info(f"Loaded {len(registry._static)} error definitions from {path.name}")
        return registry

    def get(self, code: str) -> Optional[ErrorDefinition]:
        definition = self._runtime.get(code) or self._static.get(code)
        if definition is None:
            logger.debug(f"No definition for code '{code}'")
        return definition

    def define(self, definition: ErrorDefinition) -> None:
        """Add or replace a definition at runtime."""
        if definition.code in self._static:
            logger.info(f"Runtime definition overrides static '{definition.code}'")
        self._runtime[definition.code] = definition

    def has(self, code: str) -> bool:
        return code in self._runtime or code in self._static

    def codes(self) -> list[str]:
        return sorted(set(self._static) | set(self._runtime))

    def all(self) -> dict[str, ErrorDefinition]:
        merged = dict(self._static)
        merged.update(self._runtime)
        return merged

    def to_payload(self) -> dict:
        """The definitions endpoint body: {errors, types, blocking_levels}."""
        return {
            "errors": {code: d.to_dict() for code, d in sorted(self.all().items())},
            "types": self.types,
            "blocking_levels": self.blocking_levels,
        }
