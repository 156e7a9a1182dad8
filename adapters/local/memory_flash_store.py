"""
Local Flash Store — in-process dict.

Stands in for a per-session flash bag in local development and tests.
"""

from typing import Any, Optional

from uem.interfaces.flash_store import FlashStore


class MemoryFlashStore(FlashStore):

    def __init__(self):
        self._data: dict[str, Any] = {}

    def flash(self, key: str, value: Any) -> None:
        self._data[key] = value

    def peek(self, key: str) -> Optional[Any]:
        return self._data.get(key)

    def pull(self, key: str) -> Optional[Any]:
        return self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)
