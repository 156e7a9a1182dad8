"""
Client dispatcher and safe_fetch tests.
"""

import logging
import sys
from pathlib import Path

import httpx
import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from uem.client import (
    ULTRA_ERROR, ClientErrorDispatcher, ClientEvents, ErrorConfigLoader,
    ErrorDisplayHandler, safe_fetch,
)
from uem.client.scheduler import Scheduler
from uem.client.types import ServerErrorResponse
from uem.config import DEFAULT_ERRORS_FILE, DEFAULT_LANG_DIR
from uem.messages import MessageCatalog
from uem.registry import ErrorDefinitionRegistry


class NoWait(Scheduler):
    async def sleep(self, seconds: float) -> None:
        pass


def _definitions() -> dict:
    payload = ErrorDefinitionRegistry.from_yaml(DEFAULT_ERRORS_FILE).to_payload()
    payload["errors"]["AUDIT_ONLY"] = {
        "type": "notice",
        "blocking": "not-blocking",
        "user_message": "Recorded.",
        "msg_to": "log-only",
    }
    # Client falls back to its own UNEXPECTED_ERROR when the server omits it
    payload["errors"].pop("UNEXPECTED_ERROR")
    return payload


class Api:
    """Mock server: definitions endpoint plus canned responses per path."""

    def __init__(self):
        self.routes: dict[str, httpx.Response] = {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/error-definitions":
            return httpx.Response(200, json=_definitions())
        if request.url.path in self.routes:
            return self.routes[request.url.path]
        return httpx.Response(404, json={"error": "ROUTE_NOT_FOUND", "message": "Not found"})


@pytest.fixture
def api():
    return Api()


@pytest.fixture
def client(api):
    return httpx.AsyncClient(transport=httpx.MockTransport(api), base_url="http://test")


@pytest.fixture
def events():
    return ClientEvents()


@pytest.fixture
def display():
    return ErrorDisplayHandler()


@pytest.fixture
def dispatcher(client, events, display):
    loader = ErrorConfigLoader(client, events, NoWait())
    dispatcher = ClientErrorDispatcher(
        loader, events, MessageCatalog.from_directory(DEFAULT_LANG_DIR)
    )
    dispatcher.register_handler(display)
    return dispatcher


# --- Client errors ---


async def test_known_code_is_broadcast(dispatcher, events, display):
    received = []
    events.on(ULTRA_ERROR, received.append)

    detail = await dispatcher.handle_client_error("UCM_NOT_FOUND", {"key": "site.name"})

    assert received == [detail]
    assert detail["errorCode"] == "UCM_NOT_FOUND"
    assert detail["blocking"] == "not-blocking"
    assert detail["context"] == {"key": "site.name"}
    assert "originalError" not in detail
    assert display.latest().target == "toast"
    assert display.latest().message == detail["message"]


async def test_unknown_code_uses_unexpected_error(dispatcher, display):
    detail = await dispatcher.handle_client_error("NO_SUCH_CODE", {"a": 1})

    assert detail["errorCode"] == "UNEXPECTED_ERROR"
    assert detail["context"]["_original_code"] == "NO_SUCH_CODE"
    assert detail["blocking"] == "semi-blocking"
    assert display.latest().code == "UNEXPECTED_ERROR"


async def test_original_error_included(dispatcher):
    detail = await dispatcher.handle_client_error("JSON_ERROR", {}, ValueError("Expecting value"))
    assert detail["originalError"] == {"name": "ValueError", "message": "Expecting value"}


async def test_raised_error_carries_stack(dispatcher):
    def parse():
        raise ValueError("Expecting value")

    try:
        parse()
    except ValueError as e:
        error = e

    detail = await dispatcher.handle_client_error("JSON_ERROR", {}, error)

    assert detail["originalError"]["name"] == "ValueError"
    assert "in parse" in detail["originalError"]["stack"]


async def test_log_only_errors_skip_display_but_broadcast(dispatcher, events, display):
    received = []
    events.on(ULTRA_ERROR, received.append)

    await dispatcher.handle_client_error("AUDIT_ONLY")

    assert display.latest() is None
    assert received[0]["errorCode"] == "AUDIT_ONLY"


async def test_failing_handler_does_not_stop_broadcast(dispatcher, events):
    class Broken(ErrorDisplayHandler):
        def handle(self, code, definition, context, exception=None):
            raise RuntimeError("renderer gone")

    dispatcher.register_handler(Broken())
    received = []
    events.on(ULTRA_ERROR, received.append)

    await dispatcher.handle_client_error("UCM_NOT_FOUND")
    assert len(received) == 1


async def test_removed_listener_is_not_called(dispatcher, events):
    received = []
    events.on(ULTRA_ERROR, received.append)
    events.off(ULTRA_ERROR, received.append)
    events.off(ULTRA_ERROR, received.append)

    await dispatcher.handle_client_error("UCM_NOT_FOUND")
    assert received == []


async def test_critical_blocking_is_logged(dispatcher, caplog):
    with caplog.at_level(logging.CRITICAL, logger="uem.client.dispatcher"):
        await dispatcher.handle_client_error("DATABASE_ERROR", {"details": "timeout"})
    assert "Critical blocking error [DATABASE_ERROR]" in caplog.text


# --- Server errors ---


async def test_server_message_wins(dispatcher, display):
    detail = await dispatcher.handle_server_error(
        {"error": "UCM_NOT_FOUND", "message": "Setting 'site.name' does not exist."}
    )
    assert detail["message"] == "Setting 'site.name' does not exist."
    assert detail["blocking"] == "not-blocking"
    assert display.latest().target == "toast"


async def test_server_display_mode_and_blocking_override_definition(dispatcher, display):
    detail = await dispatcher.handle_server_error(ServerErrorResponse(
        error="UCM_NOT_FOUND", message="m", blocking="blocking", display_mode="modal",
    ))
    assert detail["blocking"] == "blocking"
    assert display.latest().target == "modal"


async def test_unknown_server_code_uses_safe_defaults(dispatcher, display):
    detail = await dispatcher.handle_server_error({"error": "PLUGIN_FAILED", "message": "m"})
    assert detail["errorCode"] == "PLUGIN_FAILED"
    assert detail["blocking"] == "not-blocking"
    assert display.latest().target == "div"


async def test_malformed_server_payload_becomes_unexpected(dispatcher):
    detail = await dispatcher.handle_server_error({"error": 42})
    assert detail["errorCode"] == "UNEXPECTED_ERROR"
    assert detail["context"]["responseBody"] == {"error": 42}


# --- safe_fetch ---


class SpyDispatcher:
    def __init__(self):
        self.client_errors = []
        self.server_errors = []

    async def handle_client_error(self, code, context=None, error=None):
        self.client_errors.append((code, context, error))
        return {}

    async def handle_server_error(self, payload, context=None):
        self.server_errors.append((payload, context))
        return {}


async def test_success_passes_through(api, client):
    api.routes["/api/save"] = httpx.Response(200, json={"ok": True})
    spy = SpyDispatcher()

    resp = await safe_fetch(client, spy, "/api/save", method="POST", json={"a": 1})

    assert resp.json() == {"ok": True}
    assert spy.client_errors == [] and spy.server_errors == []


async def test_server_error_shape_goes_to_server_handler(api, client):
    api.routes["/api/save"] = httpx.Response(
        500, json={"error": "DATABASE_ERROR", "message": "DB down", "blocking": "blocking"}
    )
    spy = SpyDispatcher()

    resp = await safe_fetch(client, spy, "/api/save", method="POST")

    assert resp.status_code == 500
    payload, status = spy.server_errors[0]
    assert payload.error == "DATABASE_ERROR"
    assert payload.blocking == "blocking"
    assert status == {"status": 500, "statusText": "Internal Server Error", "url": "/api/save"}


async def test_non_json_error_is_server_error(api, client):
    api.routes["/api/save"] = httpx.Response(
        502, text="Bad gateway", headers={"content-type": "text/html"}
    )
    spy = SpyDispatcher()

    resp = await safe_fetch(client, spy, "/api/save")

    assert resp.status_code == 502
    code, context, _ = spy.client_errors[0]
    assert code == "SERVER_ERROR"
    assert context["contentType"] == "text/html"


async def test_undecodable_json_is_json_error(api, client):
    api.routes["/api/save"] = httpx.Response(
        500, content=b"{not json", headers={"content-type": "application/json"}
    )
    spy = SpyDispatcher()

    await safe_fetch(client, spy, "/api/save")

    code, _, error = spy.client_errors[0]
    assert code == "JSON_ERROR"
    assert isinstance(error, ValueError)


async def test_other_json_error_is_unexpected(api, client):
    api.routes["/api/save"] = httpx.Response(400, json={"detail": "nope"})
    spy = SpyDispatcher()

    await safe_fetch(client, spy, "/api/save")

    code, context, _ = spy.client_errors[0]
    assert code == "UNEXPECTED_ERROR"
    assert context["responseBody"] == {"detail": "nope"}


async def test_network_error_reported_and_reraised():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(refuse), base_url="http://test")
    spy = SpyDispatcher()

    with pytest.raises(httpx.ConnectError):
        await safe_fetch(client, spy, "/api/save")

    code, context, error = spy.client_errors[0]
    assert code == "NETWORK_ERROR"
    assert context["url"] == "/api/save"
    assert isinstance(error, httpx.ConnectError)


async def test_safe_fetch_end_to_end(api, client, dispatcher, events):
    api.routes["/api/settings"] = httpx.Response(
        404, json={"error": "UCM_NOT_FOUND", "message": "No such setting."}
    )
    received = []
    events.on(ULTRA_ERROR, received.append)

    await safe_fetch(client, dispatcher, "/api/settings")

    assert received[0]["errorCode"] == "UCM_NOT_FOUND"
    assert received[0]["message"] == "No such setting."
    assert received[0]["context"]["status"] == 404
