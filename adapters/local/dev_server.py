"""
UEM Local Development Server

A simple HTTP server that wires the local adapters into the pipeline and
serves the UEM API (definitions endpoint, simulations, error log).

Extra dev-only routes:
  POST /api/trigger/{code}    dispatch an error with the JSON body as context
  GET  /api/flash             pull everything the UI handler flashed

Usage:
    APP_ENV=local python -m adapters.local.dev_server
"""

import json
import logging
import os
import sys
from http.server import HTTPServer, BaseHTTPRequestHandler
from pathlib import Path
from urllib.parse import parse_qsl, urlparse

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from uem.api import ErrorAdminAPI
from uem.bootstrap import UEMServices, build_services
from uem.config import load_settings
from uem.models.event import UEMError
from uem.models.request import RequestInfo
from adapters.local.memory_flash_store import MemoryFlashStore
from adapters.local.smtp_mailer import SmtpMailer
from adapters.local.sqlite_error_log_store import SQLiteErrorLogStore

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)
logger = logging.getLogger("uem.dev")

# --- Global state (initialized in init) ---
services: UEMServices
api: ErrorAdminAPI
flash: MemoryFlashStore
current_request: RequestInfo | None = None


def _request_info() -> RequestInfo | None:
    return current_request


class DevHandler(BaseHTTPRequestHandler):
    """HTTP request handler for local development."""

    def do_GET(self):
        self._route("GET")

    def do_POST(self):
        self._route("POST")

    def do_DELETE(self):
        self._route("DELETE")

    def _route(self, method: str):
        global current_request
        url = urlparse(self.path)
        current_request = RequestInfo(
            method=method,
            url=self.path,
            user_agent=self.headers.get("User-Agent", ""),
            ip_address=self.client_address[0],
        )
        try:
            if method == "GET" and url.path == "/health":
                self._json_response({"status": "ok", "env": services.settings.environment})
            elif method == "GET" and url.path == "/api/flash":
                self._json_response({key: flash.pull(key) for key in flash.keys()})
            elif method == "POST" and url.path.startswith("/api/trigger/"):
                self._trigger(url.path.split("/")[-1])
            elif url.path.startswith("/api/"):
                data, status = api.handle_request(
                    method, url.path, self._read_body(), dict(parse_qsl(url.query))
                )
                self._json_response(data, status)
            else:
                self.send_error(404)
        finally:
            current_request = None

    def _trigger(self, code: str):
        context = self._read_body()
        try:
            response = services.dispatcher.handle(code, context, force_throw=True)
        except UEMError as e:
            self._json_response({"error": e.code, "message": e.message, "terminal": True}, e.status)
            return
        self._json_response(response.to_dict(), response.http_status)

    def _read_body(self) -> dict:
        length = int(self.headers.get("Content-Length") or 0)
        if not length:
            return {}
        try:
            body = json.loads(self.rfile.read(length))
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}

    def _json_response(self, data: dict, status: int = 200):
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Access-Control-Allow-Origin", "*")
        self.end_headers()
        self.wfile.write(json.dumps(data, default=str).encode())

    def do_OPTIONS(self):
        self.send_response(204)
        self.send_header("Access-Control-Allow-Origin", "*")
        self.send_header("Access-Control-Allow-Methods", "GET, POST, DELETE, OPTIONS")
        self.send_header("Access-Control-Allow-Headers", "Content-Type")
        self.end_headers()

    def log_message(self, format, *args):
        pass


def init():
    """Initialize all components."""
    global services, api, flash

    os.environ.setdefault("APP_ENV", "local")
    settings = load_settings(env_file=".env")

    flash = MemoryFlashStore()
    mailer = SmtpMailer.from_env(timeout=settings.email.timeout) if settings.email.enabled else None

    services = build_services(
        settings=settings,
        store=SQLiteErrorLogStore("data/uem.db"),
        mailer=mailer,
        flash=flash,
        request_info=_request_info,
    )
    api = ErrorAdminAPI(services)

    logger.info(f"Loaded {len(services.registry.codes())} error codes")
    logger.info(f"Environment: {settings.environment}")


def main():
    init()

    port = int(os.getenv("PORT", "8080"))
    server = HTTPServer(("0.0.0.0", port), DevHandler)
    logger.info(f"UEM dev server on http://localhost:{port}")

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        services.close()


if __name__ == "__main__":
    main()
