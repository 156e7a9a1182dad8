"""
Composition root for the pipeline.

Builds the shared services once and registers the handler chain in its
fixed order. Infrastructure (store, mailer, flash, HTTP client) is passed
in by the caller; adapters/local/dev_server.py and tests do the wiring.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import httpx

from uem.config import DEFAULT_ERRORS_FILE, DEFAULT_LANG_DIR, UEMSettings, load_settings
from uem.dispatcher import ErrorDispatcher
from uem.handlers import (
    DatabaseLogHandler,
    EmailNotificationHandler,
    ErrorSimulationHandler,
    LogHandler,
    RecoveryActionHandler,
    SlackNotificationHandler,
    UserInterfaceHandler,
)
from uem.handlers.recovery_action import RecoveryAction
from uem.interfaces.error_log_store import ErrorLogStore
from uem.interfaces.flash_store import FlashStore
from uem.interfaces.mailer import Mailer
from uem.messages import MessageCatalog, MessageRenderer
from uem.models.request import RequestInfoProvider, no_request
from uem.registry import ErrorDefinitionRegistry
from uem.resolver import ErrorResolver
from uem.testing_conditions import TestingConditionsManager

logger = logging.getLogger("uem.bootstrap")


@dataclass
class UEMServices:
    """Everything built by build_services(), shared for the process lifetime."""

    settings: UEMSettings
    registry: ErrorDefinitionRegistry
    conditions: TestingConditionsManager
    dispatcher: ErrorDispatcher
    recovery: RecoveryActionHandler
    store: Optional[ErrorLogStore] = None

    def close(self) -> None:
        """Release connections held by handlers."""
        for handler in self.dispatcher.handlers:
            close = getattr(handler, "close", None)
            if close is not None:
                close()


def build_services(
    settings: Optional[UEMSettings] = None,
    registry: Optional[ErrorDefinitionRegistry] = None,
    catalog: Optional[MessageCatalog] = None,
    store: Optional[ErrorLogStore] = None,
    mailer: Optional[Mailer] = None,
    flash: Optional[FlashStore] = None,
    slack_client: Optional[httpx.Client] = None,
    request_info: RequestInfoProvider = no_request,
    recovery_actions: Optional[dict[str, RecoveryAction]] = None,
    errors_file: Path = DEFAULT_ERRORS_FILE,
    lang_dir: Path = DEFAULT_LANG_DIR,
) -> UEMServices:
    """Build the dispatcher and its handler chain.

    Handler order: Log, Database, Email, Slack, UserInterface,
    RecoveryAction, then ErrorSimulation outside production. Handlers whose
    infrastructure is not supplied (no store, mailer or flash) are skipped.
    """
    settings = settings or load_settings()
    registry = registry or ErrorDefinitionRegistry.from_yaml(errors_file)
    catalog = catalog or MessageCatalog.from_directory(lang_dir, settings.locale)
    conditions = TestingConditionsManager(settings.environment)
    sensitive = settings.database_logging.sensitive_keys

    dispatcher = ErrorDispatcher(
        ErrorResolver(registry),
        MessageRenderer(catalog),
        generic_message_key=settings.ui.generic_message_key,
        slow_handler_threshold=settings.slow_handler_threshold,
    )
    recovery = RecoveryActionHandler(recovery_actions)

    dispatcher.register_handler(LogHandler())
    if store is not None:
        dispatcher.register_handler(
            DatabaseLogHandler(store, settings.database_logging, request_info)
        )
    if mailer is not None:
        dispatcher.register_handler(EmailNotificationHandler(
            mailer, settings.email, settings.app_name, settings.environment,
            sensitive, request_info,
        ))
    dispatcher.register_handler(SlackNotificationHandler(
        settings.slack, settings.app_name, settings.environment,
        sensitive, request_info, client=slack_client,
    ))
    if flash is not None:
        dispatcher.register_handler(UserInterfaceHandler(flash, settings.ui))
    dispatcher.register_handler(recovery)
    if not settings.is_production:
        dispatcher.register_handler(
            ErrorSimulationHandler(conditions, settings.environment)
        )

    logger.info(
        f"Handler chain: {[type(h).__name__ for h in dispatcher.handlers]}"
    )
    return UEMServices(
        settings=settings,
        registry=registry,
        conditions=conditions,
        dispatcher=dispatcher,
        recovery=recovery,
        store=store,
    )


def build_dispatcher(**kwargs) -> ErrorDispatcher:
    """Shortcut for callers that only need the dispatcher."""
    return build_services(**kwargs).dispatcher
