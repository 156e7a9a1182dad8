"""
UEM client — the asyncio mirror of the server pipeline.

Definitions are fetched from GET /api/error-definitions, cached, retried
with backoff and replaced by a hardcoded set when the server is unreachable.
"""

from uem.client.config_loader import ConfigFetchError, ErrorConfigLoader, LoaderState
from uem.client.dispatcher import ClientErrorDispatcher
from uem.client.display import DisplayedMessage, ErrorDisplayHandler
from uem.client.events import CONFIG_LOADED, ULTRA_ERROR, ClientEvents
from uem.client.safe_fetch import safe_fetch
from uem.client.scheduler import AsyncioScheduler, Scheduler

__all__ = [
    "ConfigFetchError", "ErrorConfigLoader", "LoaderState",
    "ClientErrorDispatcher",
    "DisplayedMessage", "ErrorDisplayHandler",
    "CONFIG_LOADED", "ULTRA_ERROR", "ClientEvents",
    "safe_fetch",
    "AsyncioScheduler", "Scheduler",
]
