"""
Message catalog and placeholder formatting.

Messages live in resources/lang/<locale>.yaml as a nested mapping and are
addressed by dotted keys ("errors.user.validation_error"). Placeholders are
written :name and filled from scalar context values.
"""

import logging
from pathlib import Path
from typing import Optional

import yaml

from uem.models.definition import MessageRef

logger = logging.getLogger("uem.messages")

_SCALARS = (str, int, float, bool)


def format_message(template: str, context: Optional[dict]) -> str:
    """Replace :name tokens with scalar values from context.

    Longer keys are substituted first so :file_id is not eaten by :file.
    Non-scalar values and missing keys leave the token in place.
    """
    if not template or not context:
        return template or ""
    message = template
    for key in sorted(context, key=lambda k: len(str(k)), reverse=True):
        value = context[key]
        if isinstance(value, _SCALARS) or value is None:
            message = message.replace(f":{key}", "" if value is None else str(value))
    return message


class MessageCatalog:
    """Dotted-key lookup over a nested message mapping."""

    def __init__(self, messages: Optional[dict] = None):
        self._messages = messages or {}

    @classmethod
    def from_directory(cls, lang_dir: Path, locale: str = "en") -> "MessageCatalog":
        path = Path(lang_dir) / f"{locale}.yaml"
        if not path.exists():
            logger.warning(f"Message file not found: {path}")
            return cls({})
        with open(path) as f:
            return cls(yaml.safe_load(f) or {})

    def get(self, key: str) -> Optional[str]:
        node = self._messages
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return None
            node = node[part]
        return node if isinstance(node, str) else None

    def has(self, key: str) -> bool:
        return self.get(key) is not None


class MessageRenderer:
    """Turns a MessageRef into display text."""

    def __init__(self, catalog: MessageCatalog):
        self.catalog = catalog

    def render(
        self,
        ref: MessageRef,
        context: Optional[dict] = None,
        fallback: str = "",
    ) -> str:
        """Translation key first, then literal text, then fallback."""
        template = ""
        if ref.key:
            template = self.catalog.get(ref.key) or ""
            if not template:
                logger.debug(f"Missing translation for key '{ref.key}'")
        if not template:
            template = ref.text
        if not template:
            template = fallback
        return format_message(template, context)

    def generic(self, key: str = "errors.generic_error") -> str:
        return self.catalog.get(key) or (
            "An error has occurred. Please try again later or contact support."
        )
