"""
Client event bus.

Application code subscribes to ULTRA_ERROR and CONFIG_LOADED instead of
browser CustomEvents. A failing listener is logged and skipped.
"""

import logging
from typing import Callable

logger = logging.getLogger("uem.client.events")

ULTRA_ERROR = "ultraError"
CONFIG_LOADED = "errorConfigLoaded"

Listener = Callable[[dict], None]


class ClientEvents:

    def __init__(self):
        self._listeners: dict[str, list[Listener]] = {}

    def on(self, name: str, listener: Listener) -> None:
        self._listeners.setdefault(name, []).append(listener)

    def off(self, name: str, listener: Listener) -> None:
        listeners = self._listeners.get(name, [])
        if listener in listeners:
            listeners.remove(listener)

    def emit(self, name: str, detail: dict) -> None:
        for listener in list(self._listeners.get(name, [])):
            try:
                listener(detail)
            except Exception:
                logger.exception(f"Listener for '{name}' failed")
