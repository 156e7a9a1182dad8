"""
ErrorConfigLoader — fetches, caches and falls back for error definitions.

States:
    IDLE → LOADING → RETRY_PENDING → LOADING → ... → LOADED | FALLBACK_LOADED

Concurrent load_config() calls share one in-flight task. Each failed
attempt n waits 2**n seconds before the next; after max_attempts failures
the hardcoded FALLBACK_ERRORS set is installed. Either way CONFIG_LOADED is
emitted so callers are never left waiting on the server.

A forced reload starts a new generation. A fetch from an older generation
that completes afterwards is discarded and never touches the cache.
"""

import asyncio
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

import httpx

from uem.client.events import CONFIG_LOADED, ClientEvents
from uem.client.scheduler import AsyncioScheduler, Scheduler
from uem.client.types import BlockingLevelConfig, ErrorConfigSet, ErrorTypeConfig
from uem.models.definition import (
    BlockingLevel, DefinitionError, DisplayTarget, ErrorDefinition,
    MessageRef, NotifyFlags, Severity,
)

logger = logging.getLogger("uem.client.config")

DEFINITIONS_ENDPOINT = "/api/error-definitions"
MAX_RETRY_ATTEMPTS = 3


class ConfigFetchError(Exception):
    """The definitions endpoint answered with something unusable."""

    pass


# ValueError covers undecodable JSON; TypeError and AttributeError malformed sections
_FETCH_ERRORS = (httpx.HTTPError, ConfigFetchError, ValueError, TypeError, AttributeError)


class LoaderState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    RETRY_PENDING = "retry_pending"
    LOADED = "loaded"
    FALLBACK_LOADED = "fallback_loaded"


def _fallback(
    code: str,
    severity: Severity,
    blocking: BlockingLevel,
    status: int,
    notify: bool,
    target: DisplayTarget,
    key: str,
    user_text: str,
) -> ErrorDefinition:
    return ErrorDefinition(
        code=code,
        severity=severity,
        blocking=blocking,
        dev_message=MessageRef(key=f"errors.dev.{key}"),
        user_message=MessageRef(text=user_text, key=f"errors.user.{key}"),
        http_status_code=status,
        notify=NotifyFlags(dev_team_email=notify, slack=notify),
        display_target=target,
    )


_C, _E, _W = Severity.CRITICAL, Severity.ERROR, Severity.WARNING
_B, _SB = BlockingLevel.BLOCKING, BlockingLevel.SEMI_BLOCKING

FALLBACK_ERRORS = {
    d.code: d for d in [
        _fallback("UNDEFINED_ERROR_CODE", _C, _B, 500, True, DisplayTarget.MODAL,
                  "undefined_error_code",
                  "An unexpected error occurred. Please contact support if the issue persists. [Ref: UNDEFINED]"),
        _fallback("FALLBACK_ERROR", _C, _B, 500, True, DisplayTarget.MODAL,
                  "fallback_error",
                  "An unexpected system issue occurred. Please try again later or contact support. [Ref: FALLBACK]"),
        _fallback("FATAL_FALLBACK_FAILURE", _C, _B, 500, True, DisplayTarget.MODAL,
                  "fatal_fallback_failure",
                  "A critical system error occurred. Please contact support immediately. [Ref: FATAL]"),
        _fallback("UNEXPECTED_ERROR", _C, _SB, 500, True, DisplayTarget.MODAL,
                  "unexpected_error",
                  "An unexpected error has occurred. Our technical team has been notified. Please try again later. [Ref: UNEXPECTED]"),
        _fallback("NETWORK_ERROR", _E, _SB, 503, True, DisplayTarget.MODAL,
                  "network_error",
                  "Unable to reach the server. Please check your connection and try again. [Ref: NETWORK]"),
        _fallback("JSON_ERROR", _E, _SB, 500, True, DisplayTarget.DIV,
                  "json_error",
                  "A data processing error occurred. Please check your input or try again later. [Ref: JSON]"),
        _fallback("SERVER_ERROR", _E, _SB, 500, False, DisplayTarget.DIV,
                  "generic_server_error",
                  "A server error has occurred. Please try again later or contact support if the problem continues. [Ref: SERVER]"),
        _fallback("VALIDATION_ERROR", _W, _SB, 422, False, DisplayTarget.DIV,
                  "validation_error",
                  "Please correct the errors highlighted in the form and try again."),
    ]
}

FALLBACK_TYPES = {
    "critical": ErrorTypeConfig("critical", notify_team=True, http_status=500),
    "error": ErrorTypeConfig("error", notify_team=False, http_status=400),
    "warning": ErrorTypeConfig("warning", notify_team=False, http_status=400),
    "notice": ErrorTypeConfig("notice", notify_team=False, http_status=200),
}

FALLBACK_BLOCKING_LEVELS = {
    "blocking": BlockingLevelConfig(terminate_request=True, clear_session=False),
    "semi-blocking": BlockingLevelConfig(terminate_request=False, flash_session=True),
    "not-blocking": BlockingLevelConfig(terminate_request=False, flash_session=True),
}


def fallback_config() -> ErrorConfigSet:
    return ErrorConfigSet(
        errors=dict(FALLBACK_ERRORS),
        types=dict(FALLBACK_TYPES),
        blocking_levels=dict(FALLBACK_BLOCKING_LEVELS),
    )


class ErrorConfigLoader:
    """Loads definitions from the server once and serves them from cache."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        events: ClientEvents,
        scheduler: Optional[Scheduler] = None,
        endpoint: str = DEFINITIONS_ENDPOINT,
        max_attempts: int = MAX_RETRY_ATTEMPTS,
    ):
        self.client = client
        self.events = events
        self.scheduler = scheduler or AsyncioScheduler()
        self.endpoint = endpoint
        self.max_attempts = max_attempts

        self.state = LoaderState.IDLE
        self.failed_attempts = 0
        self.using_fallback = False
        self.fetch_count = 0
        self._config: Optional[ErrorConfigSet] = None
        self._task: Optional[asyncio.Task] = None
        self._generation = 0

    # --- Loading ---

    async def load_config(self, force_reload: bool = False) -> None:
        """Ensure definitions are available. Never raises for server failures."""
        if force_reload:
            self._generation += 1
            self._task = None
            self._config = None
            self.failed_attempts = 0
            self.using_fallback = False
            self.state = LoaderState.IDLE
            logger.info(f"Forced reload (generation {self._generation})")
        elif self.is_config_loaded():
            return

        while True:
            if self._task is None:
                self._task = asyncio.ensure_future(self._run(self._generation))
            task = self._task
            # Shielded so one cancelled caller does not cancel the shared load
            await asyncio.shield(task)
            # A superseded task finishes without loading; wait for its successor
            if self._task is task or self.is_config_loaded():
                return

    async def _run(self, generation: int) -> None:
        while generation == self._generation:
            self.state = LoaderState.LOADING
            try:
                config = await self._fetch()
            except _FETCH_ERRORS as e:
                if generation != self._generation:
                    return
                self.failed_attempts += 1
                logger.warning(
                    f"Loading error definitions failed "
                    f"(attempt {self.failed_attempts}/{self.max_attempts}): {e}"
                )
                if self.failed_attempts >= self.max_attempts:
                    logger.error("Giving up on server definitions, using fallback set")
                    self._install(fallback_config(), using_fallback=True)
                    return
                self.state = LoaderState.RETRY_PENDING
                await self.scheduler.sleep(2 ** self.failed_attempts)
                continue

            if generation != self._generation:
                logger.info("Discarding definitions from a superseded load")
                return
            self._install(config, using_fallback=False)
            return

    async def _fetch(self) -> ErrorConfigSet:
        self.fetch_count += 1
        resp = await self.client.get(self.endpoint, headers={"Accept": "application/json"})
        if not resp.is_success:
            raise ConfigFetchError(f"HTTP {resp.status_code} from {self.endpoint}")

        content_type = resp.headers.get("content-type", "")
        if "application/json" not in content_type:
            raise ConfigFetchError(f"Expected JSON, got '{content_type}'")

        data = resp.json()
        if not isinstance(data, dict) or not all(
            isinstance(data.get(k), dict) for k in ("errors", "types", "blocking_levels")
        ):
            raise ConfigFetchError("Response missing errors/types/blocking_levels")

        errors = {}
        for code, entry in data["errors"].items():
            try:
                errors[code] = ErrorDefinition.from_dict(code, entry)
            except (DefinitionError, TypeError, AttributeError) as e:
                logger.warning(f"Skipping malformed definition '{code}': {e}")

        return ErrorConfigSet(
            errors=errors,
            types={k: ErrorTypeConfig.from_dict(v) for k, v in data["types"].items()},
            blocking_levels={
                k: BlockingLevelConfig.from_dict(v)
                for k, v in data["blocking_levels"].items()
            },
        )

    def _install(self, config: ErrorConfigSet, using_fallback: bool) -> None:
        self._config = config
        self.using_fallback = using_fallback
        self.state = LoaderState.FALLBACK_LOADED if using_fallback else LoaderState.LOADED
        logger.info(
            f"Error definitions loaded: {len(config.errors)} codes"
            f"{' (fallback)' if using_fallback else ''}"
        )
        self.events.emit(CONFIG_LOADED, {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "errorCount": len(config.errors),
            "usingFallback": using_fallback,
        })

    # --- Accessors ---

    def is_config_loaded(self) -> bool:
        return self._config is not None

    def get_error_config(self, code: str) -> Optional[ErrorDefinition]:
        return self._config.errors.get(code) if self._config else None

    def get_error_type_config(self, severity: str) -> Optional[ErrorTypeConfig]:
        return self._config.types.get(severity) if self._config else None

    def get_blocking_level_config(self, level: str) -> Optional[BlockingLevelConfig]:
        if not self._config:
            return None
        try:
            key = BlockingLevel.parse(level).value
        except ValueError:
            return None
        return self._config.blocking_levels.get(key)

    def get_all_error_codes(self) -> list[str]:
        return sorted(self._config.errors) if self._config else []

    def get_errors_by_type(self, severity: str) -> list[str]:
        if not self._config:
            return []
        return sorted(
            code for code, d in self._config.errors.items()
            if d.severity.value == severity
        )
