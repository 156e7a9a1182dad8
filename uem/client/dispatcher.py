"""
ClientErrorDispatcher — resolve → handle → broadcast, on the client.

Mirrors the server dispatcher but sources definitions from an
ErrorConfigLoader and broadcasts an ULTRA_ERROR event for application
listeners after the client handler chain has run.
"""

import logging
import traceback
from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional

from uem.client.config_loader import FALLBACK_ERRORS, ErrorConfigLoader
from uem.client.events import ULTRA_ERROR, ClientEvents
from uem.client.types import ServerErrorResponse
from uem.interfaces.handler import ErrorHandler
from uem.messages import MessageCatalog, format_message
from uem.models.definition import BlockingLevel, DisplayTarget, ErrorDefinition, MessageRef

logger = logging.getLogger("uem.client.dispatcher")

UNEXPECTED_ERROR = "UNEXPECTED_ERROR"
GENERIC_MESSAGE = "An error has occurred. Please try again later or contact support."


class ClientErrorDispatcher:

    def __init__(
        self,
        loader: ErrorConfigLoader,
        events: ClientEvents,
        catalog: Optional[MessageCatalog] = None,
    ):
        self.loader = loader
        self.events = events
        self.catalog = catalog or MessageCatalog()
        self._handlers: list[ErrorHandler] = []

    def register_handler(self, handler: ErrorHandler) -> None:
        self._handlers.append(handler)

    @property
    def handlers(self) -> list[ErrorHandler]:
        return list(self._handlers)

    # --- Entry points ---

    async def handle_client_error(
        self,
        code: str,
        context: Optional[dict] = None,
        error: Optional[BaseException] = None,
    ) -> dict:
        """Handle an error raised on the client. Returns the broadcast detail."""
        await self.loader.load_config()
        context = dict(context or {})

        definition = self.loader.get_error_config(code)
        if definition is None:
            logger.warning(f"Unknown client error code '{code}', using {UNEXPECTED_ERROR}")
            context["_original_code"] = code
            code = UNEXPECTED_ERROR
            definition = self._unexpected()

        message = self._user_message(definition, context)
        return self._dispatch(code, definition, message, context, error)

    async def handle_server_error(
        self,
        payload: ServerErrorResponse | dict,
        context: Optional[dict] = None,
    ) -> dict:
        """Handle an error body returned by the server.

        The server's message is already localized and wins over the cached
        definition; blocking and display mode fall back from the response to
        the definition to safe defaults.
        """
        await self.loader.load_config()
        if isinstance(payload, dict):
            parsed = ServerErrorResponse.from_payload(payload)
            if parsed is None:
                return await self.handle_client_error(
                    UNEXPECTED_ERROR, {**(context or {}), "responseBody": payload}
                )
            payload = parsed

        context = dict(context or {})
        definition = self.loader.get_error_config(payload.error)
        base = definition or replace(self._unexpected(), code=payload.error)

        display = _parse_or(DisplayTarget.parse, payload.display_mode, None)
        blocking = _parse_or(BlockingLevel.parse, payload.blocking, None)
        resolved = replace(
            base,
            display_target=display or (
                base.display_target if definition else DisplayTarget.DIV
            ),
            blocking=blocking or (
                base.blocking if definition else BlockingLevel.NOT_BLOCKING
            ),
        )

        message = payload.message or self._user_message(resolved, context)
        return self._dispatch(payload.error, resolved, message, context, None)

    # --- Internals ---

    def _unexpected(self) -> ErrorDefinition:
        return self.loader.get_error_config(UNEXPECTED_ERROR) or FALLBACK_ERRORS[UNEXPECTED_ERROR]

    def _user_message(self, definition: ErrorDefinition, context: dict) -> str:
        """Translation key, then user text, then dev text, then generic with a reference."""
        template = ""
        if definition.user_message.key:
            template = self.catalog.get(definition.user_message.key) or ""
        if not template:
            template = definition.user_message.text
        if not template:
            template = definition.dev_message.text
        if not template:
            template = f"{GENERIC_MESSAGE} [Ref: {definition.code}]"
        return format_message(template, {"errorCode": definition.code, **context})

    def _dispatch(
        self,
        code: str,
        definition: ErrorDefinition,
        message: str,
        context: dict,
        error: Optional[BaseException],
    ) -> dict:
        rendered = replace(definition, user_message=MessageRef(text=message))
        for handler in self._handlers:
            try:
                if handler.should_handle(rendered):
                    handler.handle(code, rendered, dict(context), error)
            except Exception:
                logger.exception(f"Client handler {type(handler).__name__} failed for [{code}]")

        if rendered.is_critical_blocking:
            self._handle_critical_blocking(code, message, context, error)

        detail = {
            "errorCode": code,
            "message": message,
            "blocking": rendered.blocking.value,
            "context": context,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        if error is not None:
            original = {"name": type(error).__name__, "message": str(error)}
            if error.__traceback__ is not None:
                original["stack"] = "".join(traceback.format_tb(error.__traceback__))
            detail["originalError"] = original
        self.events.emit(ULTRA_ERROR, detail)
        return detail

    def _handle_critical_blocking(
        self,
        code: str,
        message: str,
        context: dict,
        error: Optional[BaseException],
    ) -> None:
        logger.critical(
            f"Critical blocking error [{code}]: {message}",
            exc_info=error,
            extra={"uem_code": code, "uem_context_keys": list(context)},
        )


def _parse_or(parse, value: Optional[str], default):
    if not value:
        return default
    try:
        return parse(value)
    except ValueError:
        return default
