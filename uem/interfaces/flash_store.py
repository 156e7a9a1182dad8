"""
Flash Store Interface

Transient next-request storage, read once by whatever renders the UI.
Implementations: MemoryFlashStore (local).
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class FlashStore(ABC):
    """Key/value slots that survive exactly until the next pull()."""

    @abstractmethod
    def flash(self, key: str, value: Any) -> None:
        """Store a value for the next request."""
        ...

    @abstractmethod
    def peek(self, key: str) -> Optional[Any]:
        """Read a value without consuming it."""
        ...

    @abstractmethod
    def pull(self, key: str) -> Optional[Any]:
        """Read and remove a value."""
        ...

    @abstractmethod
    def keys(self) -> list[str]:
        ...
