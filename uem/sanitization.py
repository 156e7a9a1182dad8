"""
Context sanitization.

Applied to every context map before it is persisted or sent off-process.
Each channel carries its own SanitizationPolicy (different key sets and
length limits), but they all go through sanitize().
"""

from dataclasses import dataclass, field
from typing import Any, Iterable

REDACTED = "[REDACTED]"
TRUNCATED = "...[TRUNCATED]"

# Substring patterns that always mark a key as sensitive
SENSITIVE_PATTERNS = ("password", "secret", "token", "_key")


def is_sensitive_key(key: Any, sensitive_keys: Iterable[str]) -> bool:
    """Exact (case-insensitive) match on the set, or substring match on the patterns."""
    name = str(key).lower()
    if name in {k.lower() for k in sensitive_keys}:
        return True
    return any(pattern in name for pattern in SENSITIVE_PATTERNS)


def truncate(value: str, max_length: int) -> str:
    value = value.replace("\x00", "")
    if max_length > 0 and len(value) > max_length:
        return value[:max_length] + TRUNCATED
    return value


def sanitize(
    context: dict,
    sensitive_keys: Iterable[str],
    max_string_length: int,
    summarize_nested: bool = False,
) -> dict:
    """Return a redacted, truncated copy of context. The input is not modified.

    Args:
        context: Arbitrary nested mapping.
        sensitive_keys: Keys (any depth) whose values are replaced by REDACTED.
        max_string_length: Longer strings are cut and suffixed with TRUNCATED.
        summarize_nested: Replace nested collections with "[Array:N items]"
            instead of recursing (compact chat payloads).
    """
    keys = frozenset(k.lower() for k in sensitive_keys)
    return _sanitize_mapping(context or {}, keys, max_string_length, summarize_nested)


def _sanitize_mapping(data: dict, keys, max_len: int, summarize: bool) -> dict:
    clean = {}
    for key, value in data.items():
        if is_sensitive_key(key, keys):
            clean[key] = REDACTED
        else:
            clean[key] = _sanitize_value(value, keys, max_len, summarize)
    return clean


def _sanitize_value(value: Any, keys, max_len: int, summarize: bool) -> Any:
    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, str):
        return truncate(value, max_len)
    if isinstance(value, (dict, list, tuple)):
        if summarize:
            return f"[Array:{len(value)} items]"
        if isinstance(value, dict):
            return _sanitize_mapping(value, keys, max_len, summarize)
        return [_sanitize_value(v, keys, max_len, summarize) for v in value]
    return f"[Object:{type(value).__name__}]"


@dataclass(frozen=True)
class SanitizationPolicy:
    """Per-channel sanitization parameters."""

    sensitive_keys: frozenset = field(default_factory=frozenset)
    max_string_length: int = 1000
    summarize_nested: bool = False

    @classmethod
    def of(cls, keys: Iterable[str], max_string_length: int, summarize_nested: bool = False):
        return cls(frozenset(k.lower() for k in keys), max_string_length, summarize_nested)

    def apply(self, context: dict) -> dict:
        return sanitize(
            context, self.sensitive_keys, self.max_string_length, self.summarize_nested
        )

    def truncate(self, value: str) -> str:
        return truncate(value, self.max_string_length)
