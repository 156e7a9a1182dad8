"""
Dispatcher tests.

Verifies the orchestration contract:
- Handlers run in registration order, and a failing handler never stops the rest
- Critical + blocking errors are terminal (or raise with force_throw)
- Messages are rendered from the catalog with :placeholder substitution
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from uem.dispatcher import ErrorDispatcher
from uem.interfaces.handler import ErrorHandler
from uem.messages import MessageCatalog, MessageRenderer
from uem.models.definition import ErrorDefinition
from uem.models.event import UEMError
from uem.registry import ErrorDefinitionRegistry
from uem.resolver import ErrorResolver

DEFINITIONS = {
    "errors": {
        "UCM_NOT_FOUND": {
            "type": "error",
            "blocking": "not-blocking",
            "dev_message_key": "errors.dev.ucm_not_found",
            "user_message_key": "errors.user.ucm_not_found",
            "http_status_code": 404,
            "msg_to": "toast",
        },
        "DATABASE_ERROR": {
            "type": "critical",
            "blocking": "blocking",
            "dev_message": "DB down: :details",
            "user_message": "A database error occurred.",
            "http_status_code": 500,
            "msg_to": "modal",
        },
        "VALIDATION_ERROR": {
            "type": "warning",
            "blocking": "semi-blocking",
            "user_message": "Please check :field.",
            "http_status_code": 422,
        },
        "UNDEFINED_ERROR_CODE": {
            "type": "error",
            "blocking": "semi-blocking",
            "dev_message": "Undefined code :_original_code",
            "http_status_code": 500,
        },
    },
}

MESSAGES = {
    "errors": {
        "dev": {"ucm_not_found": "Configuration key not found: :key."},
        "user": {"ucm_not_found": "The requested configuration setting was not found."},
        "generic_error": "An error has occurred.",
    }
}


class RecordingHandler(ErrorHandler):
    def __init__(self, name: str, calls: list, wants: bool = True):
        self.name = name
        self.calls = calls
        self.wants = wants

    def should_handle(self, definition: ErrorDefinition) -> bool:
        return self.wants

    def handle(self, code, definition, context, exception=None) -> None:
        self.calls.append((self.name, code, definition, context, exception))


class ExplodingHandler(ErrorHandler):
    def __init__(self, calls: list, in_predicate: bool = False):
        self.calls = calls
        self.in_predicate = in_predicate

    def should_handle(self, definition: ErrorDefinition) -> bool:
        if self.in_predicate:
            raise RuntimeError("predicate blew up")
        return True

    def handle(self, code, definition, context, exception=None) -> None:
        self.calls.append(("exploding", code))
        raise ConnectionError("smtp unreachable")


class FakeClock:
    def __init__(self, step: float):
        self.now = 0.0
        self.step = step

    def __call__(self) -> float:
        self.now += self.step
        return self.now


def _dispatcher(clock: Optional[FakeClock] = None) -> ErrorDispatcher:
    registry = ErrorDefinitionRegistry.from_dict(DEFINITIONS)
    kwargs = {"clock": clock} if clock else {}
    return ErrorDispatcher(
        ErrorResolver(registry), MessageRenderer(MessageCatalog(MESSAGES)), **kwargs
    )


# --- Handler chain ---


def test_handlers_run_in_registration_order():
    calls = []
    dispatcher = _dispatcher()
    for name in ("first", "second", "third"):
        dispatcher.register_handler(RecordingHandler(name, calls))

    dispatcher.handle("UCM_NOT_FOUND", {"key": "site.name"})
    assert [c[0] for c in calls] == ["first", "second", "third"]


def test_failing_handler_does_not_stop_later_handlers(caplog):
    calls = []
    dispatcher = _dispatcher()
    dispatcher.register_handler(RecordingHandler("before", calls))
    dispatcher.register_handler(ExplodingHandler(calls))
    dispatcher.register_handler(ExplodingHandler(calls, in_predicate=True))
    dispatcher.register_handler(RecordingHandler("after", calls))

    with caplog.at_level(logging.ERROR, logger="uem.dispatcher"):
        response = dispatcher.handle("UCM_NOT_FOUND", {"key": "k"})

    assert [c[0] for c in calls] == ["before", "exploding", "after"]
    assert response.error_code == "UCM_NOT_FOUND"
    assert "ExplodingHandler" in caplog.text


def test_should_handle_false_skips_handler():
    calls = []
    dispatcher = _dispatcher()
    dispatcher.register_handler(RecordingHandler("skipped", calls, wants=False))
    dispatcher.register_handler(RecordingHandler("ran", calls))
    dispatcher.handle("UCM_NOT_FOUND")
    assert [c[0] for c in calls] == ["ran"]


def test_slow_handler_is_logged(caplog):
    dispatcher = _dispatcher(clock=FakeClock(step=5.0))
    dispatcher.register_handler(RecordingHandler("slow", []))
    with caplog.at_level(logging.WARNING, logger="uem.dispatcher"):
        dispatcher.handle("UCM_NOT_FOUND")
    assert "RecordingHandler took" in caplog.text


# --- Responses ---


def test_non_blocking_error_returns_non_terminal_response():
    response = _dispatcher().handle("UCM_NOT_FOUND", {"key": "site.name"})

    assert not response.terminal
    assert response.http_status == 404
    assert response.to_dict() == {
        "error": "UCM_NOT_FOUND",
        "message": "The requested configuration setting was not found.",
        "blocking": "not-blocking",
        "display_mode": "toast",
    }


def test_critical_blocking_returns_terminal_response():
    response = _dispatcher().handle("DATABASE_ERROR", {"details": "timeout"})
    assert response.terminal
    assert response.http_status == 500


def test_critical_blocking_with_force_throw_raises_after_handlers():
    calls = []
    dispatcher = _dispatcher()
    dispatcher.register_handler(RecordingHandler("log", calls))
    cause = TimeoutError("db timeout")

    with pytest.raises(UEMError) as exc_info:
        dispatcher.handle("DATABASE_ERROR", {"details": "timeout"}, cause, force_throw=True)

    assert exc_info.value.code == "DATABASE_ERROR"
    assert exc_info.value.status == 500
    assert exc_info.value.__cause__ is cause
    assert len(calls) == 1


def test_force_throw_ignored_for_non_critical_errors():
    response = _dispatcher().handle("VALIDATION_ERROR", {"field": "email"}, force_throw=True)
    assert not response.terminal


# --- Rendering ---


def test_messages_rendered_before_handlers_see_them():
    calls = []
    dispatcher = _dispatcher()
    dispatcher.register_handler(RecordingHandler("h", calls))
    dispatcher.handle("UCM_NOT_FOUND", {"key": "site.name"})

    definition = calls[0][2]
    assert definition.dev_message.text == "Configuration key not found: site.name."
    assert definition.user_message.text == "The requested configuration setting was not found."


def test_fallback_adds_original_code_to_context():
    calls = []
    dispatcher = _dispatcher()
    dispatcher.register_handler(RecordingHandler("h", calls))
    response = dispatcher.handle("NOT_CONFIGURED", {"a": 1})

    _, code, definition, context, _ = calls[0]
    assert code == "UNDEFINED_ERROR_CODE"
    assert context["_original_code"] == "NOT_CONFIGURED"
    assert definition.dev_message.text == "Undefined code NOT_CONFIGURED"
    # No user message configured, so the generic one is returned
    assert response.message == "An error has occurred."


def test_define_error_at_runtime():
    dispatcher = _dispatcher()
    dispatcher.define_error("QUOTA_EXCEEDED", {
        "type": "warning",
        "blocking": "semi-blocking",
        "user_message": "You have used :used of :limit uploads.",
        "http_status_code": 429,
    })
    response = dispatcher.handle("QUOTA_EXCEEDED", {"used": 10, "limit": 10})
    assert response.message == "You have used 10 of 10 uploads."
    assert dispatcher.get_error_config("QUOTA_EXCEEDED").http_status_code == 429


# --- Exceptions ---


class ValidationError(Exception):
    pass


def test_handle_exception_maps_by_class_name():
    response = _dispatcher().handle_exception(ValidationError("bad email"), {"field": "email"})
    assert response.error_code == "VALIDATION_ERROR"
    assert response.message == "Please check email."


def test_handle_exception_keeps_uem_error_code():
    error = UEMError("nope", code="UCM_NOT_FOUND", context={"key": "x"})
    response = _dispatcher().handle_exception(error)
    assert response.error_code == "UCM_NOT_FOUND"


def test_unmapped_exception_becomes_unexpected_error():
    calls = []
    dispatcher = _dispatcher()
    dispatcher.register_handler(RecordingHandler("h", calls))
    dispatcher.handle_exception(RuntimeError("boom"))
    # UNEXPECTED_ERROR is not configured here, so it falls back
    assert calls[0][3]["_original_code"] == "UNEXPECTED_ERROR"
