"""
ErrorDispatcher — the public entry point of the pipeline.

Usage:
    from uem.bootstrap import build_dispatcher

    dispatcher = build_dispatcher()

    try:
        save_upload(file)
    except OSError as e:
        response = dispatcher.handle("ERROR_DURING_FILE_UPLOAD", {"filename": name}, e)
        return response.to_dict(), response.http_status
"""

import logging
import time
from dataclasses import replace
from typing import Callable, Optional

from uem.exception_mapping import code_for_exception
from uem.interfaces.handler import ErrorHandler
from uem.messages import MessageRenderer
from uem.models.definition import ErrorDefinition, MessageRef
from uem.models.event import ErrorEvent, ErrorResponse, UEMError
from uem.resolver import ErrorResolver

logger = logging.getLogger("uem.dispatcher")


class ErrorDispatcher:
    """Resolves a code, runs the handler chain, and decides on the response."""

    def __init__(
        self,
        resolver: ErrorResolver,
        renderer: MessageRenderer,
        generic_message_key: str = "errors.generic_error",
        slow_handler_threshold: float = 2.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.resolver = resolver
        self.renderer = renderer
        self.generic_message_key = generic_message_key
        self.slow_handler_threshold = slow_handler_threshold
        self._clock = clock
        self._handlers: list[ErrorHandler] = []

    # --- Handler chain ---

    def register_handler(self, handler: ErrorHandler) -> None:
        """Append a handler. Execution order is registration order."""
        self._handlers.append(handler)
        logger.debug(f"Registered handler #{len(self._handlers)}: {type(handler).__name__}")

    @property
    def handlers(self) -> list[ErrorHandler]:
        return list(self._handlers)

    # --- Definitions ---

    def define_error(self, code: str, data: dict | ErrorDefinition) -> ErrorDefinition:
        """Register a definition at runtime. Raises DefinitionError if malformed."""
        if isinstance(data, ErrorDefinition):
            definition = replace(data, code=code)
        else:
            definition = ErrorDefinition.from_dict(code, data)
        self.resolver.registry.define(definition)
        return definition

    def get_error_config(self, code: str) -> Optional[ErrorDefinition]:
        return self.resolver.registry.get(code)

    # --- Dispatch ---

    def handle(
        self,
        code: str,
        context: Optional[dict] = None,
        exception: Optional[BaseException] = None,
        force_throw: bool = False,
    ) -> ErrorResponse:
        """Handle one error occurrence.

        Returns a terminal response for critical + blocking errors (or raises
        UEMError when force_throw is set); any other error returns a
        non-terminal response for the caller to relay. Handler failures are
        never raised from here.
        """
        context = dict(context or {})
        logger.info(
            f"Handling error [{code}] (context keys: {list(context)}, "
            f"exception: {type(exception).__name__ if exception else None})"
        )

        definition = self.resolver.resolve(code)
        if definition.code != code:
            context["_original_code"] = code

        rendered = self._render(definition, context)
        event = ErrorEvent(code=code, definition=rendered, context=context, exception=exception)
        self._run_handlers(event)

        message = rendered.user_message.text or self.renderer.generic(self.generic_message_key)
        response = ErrorResponse(
            error_code=rendered.code,
            message=message,
            blocking=rendered.blocking.value,
            display_mode=rendered.display_target.value,
            http_status=rendered.http_status_code,
            terminal=rendered.is_critical_blocking,
        )

        if response.terminal and force_throw:
            logger.warning(
                f"Raising UEMError for [{rendered.code}] (status {response.http_status})"
            )
            raise UEMError(
                message,
                status=response.http_status,
                code=rendered.code,
                context=context,
            ) from exception
        return response

    def handle_exception(
        self,
        exc: BaseException,
        context: Optional[dict] = None,
        force_throw: bool = False,
    ) -> ErrorResponse:
        """Handle an exception that arrived without an explicit error code."""
        if isinstance(exc, UEMError):
            merged = {**exc.context, **(context or {})}
            return self.handle(exc.code, merged, exc, force_throw)

        code = code_for_exception(exc)
        merged = {"exception_message": str(exc), **(context or {})}
        return self.handle(code, merged, exc, force_throw)

    # --- Internals ---

    def _render(self, definition: ErrorDefinition, context: dict) -> ErrorDefinition:
        """Resolve translation keys and placeholders into literal messages."""
        fmt_context = {"errorCode": definition.code, **context}
        dev = self.renderer.render(definition.dev_message, fmt_context)
        user = self.renderer.render(definition.user_message, fmt_context)
        return replace(
            definition,
            dev_message=MessageRef(text=dev, key=definition.dev_message.key),
            user_message=MessageRef(text=user, key=definition.user_message.key)
            if user else MessageRef(),
        )

    def _run_handlers(self, event: ErrorEvent) -> None:
        definition = event.definition
        for handler in self._handlers:
            name = type(handler).__name__
            started = self._clock()
            try:
                if not handler.should_handle(definition):
                    continue
                handler.handle(definition.code, definition, dict(event.context), event.exception)
            except Exception:
                logger.exception(f"Handler {name} failed while handling [{definition.code}]")
                continue

            elapsed = self._clock() - started
            if elapsed > self.slow_handler_threshold:
                logger.warning(
                    f"Handler {name} took {elapsed:.2f}s for [{definition.code}]"
                )

