"""
Pipeline settings.

Loaded from resources/error_manager.yaml (or a path given by the caller),
then overridden from environment variables. A local .env file is read
into os.environ first, without clobbering variables already set.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger("uem.config")

RESOURCES_DIR = Path(__file__).parent / "resources"
DEFAULT_SETTINGS_FILE = RESOURCES_DIR / "error_manager.yaml"
DEFAULT_ERRORS_FILE = RESOURCES_DIR / "errors.yaml"
DEFAULT_LANG_DIR = RESOURCES_DIR / "lang"

DEFAULT_SENSITIVE_KEYS = [
    "password", "secret", "token", "auth", "key", "credentials",
    "authorization", "php_auth_user", "php_auth_pw", "credit_card",
    "cvv", "api_key",
]


@dataclass
class DatabaseLogSettings:
    enabled: bool = True
    include_trace: bool = True
    max_trace_length: int = 10000
    max_string_length: int = 1000
    sensitive_keys: list[str] = field(default_factory=lambda: list(DEFAULT_SENSITIVE_KEYS))


@dataclass
class EmailSettings:
    enabled: bool = False
    to: list[str] = field(default_factory=list)
    sender: str = ""
    subject_prefix: str = "[UEM Error] "
    include_ip_address: bool = False
    include_user_agent: bool = False
    include_user_details: bool = False
    include_context: bool = True
    include_trace: bool = False
    context_max_string_length: int = 500
    trace_max_lines: int = 30
    timeout: float = 15.0


@dataclass
class SlackSettings:
    enabled: bool = False
    webhook_url: str = ""
    channel: str = ""
    username: str = "UEM Error Bot"
    icon_emoji: str = ":boom:"
    notify_all_critical: bool = False
    include_ip_address: bool = False
    include_user_details: bool = False
    include_context: bool = True
    include_trace_snippet: bool = False
    trace_max_lines: int = 10
    context_max_length: int = 1500
    context_string_max_length: int = 200
    timeout: float = 15.0


@dataclass
class UISettings:
    show_error_codes: bool = False
    generic_message_key: str = "errors.generic_error"


@dataclass
class UEMSettings:
    """All pipeline settings."""

    app_name: str = "UEM"
    environment: str = "production"
    locale: str = "en"
    slow_handler_threshold: float = 2.0
    database_logging: DatabaseLogSettings = field(default_factory=DatabaseLogSettings)
    email: EmailSettings = field(default_factory=EmailSettings)
    slack: SlackSettings = field(default_factory=SlackSettings)
    ui: UISettings = field(default_factory=UISettings)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


def load_env_file(env_file: str = ".env") -> None:
    """Load a .env file into os.environ. Existing variables win."""
    path = Path(env_file)
    if not path.exists():
        return
    with open(path) as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#") and "=" in line:
                key, value = line.split("=", 1)
                os.environ.setdefault(key.strip(), value.strip())


def _env_bool(name: str) -> Optional[bool]:
    value = os.getenv(name)
    if value is None or value == "":
        return None
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_list(value: str | list | None) -> list[str]:
    if not value:
        return []
    if isinstance(value, list):
        return [str(v).strip() for v in value if str(v).strip()]
    return [v.strip() for v in str(value).split(",") if v.strip()]


def settings_from_dict(data: dict) -> UEMSettings:
    """Build settings from the parsed YAML mapping. Unknown keys are ignored."""
    db = data.get("database_logging") or {}
    email = data.get("email_notification") or {}
    slack = data.get("slack_notification") or {}
    ui = data.get("ui") or {}

    database_logging = DatabaseLogSettings(
        enabled=bool(db.get("enabled", True)),
        include_trace=bool(db.get("include_trace", True)),
        max_trace_length=int(db.get("max_trace_length", 10000)),
        max_string_length=int(db.get("max_string_length", 1000)),
        sensitive_keys=list(db.get("sensitive_keys") or DEFAULT_SENSITIVE_KEYS),
    )

    email_settings = EmailSettings(
        enabled=bool(email.get("enabled", False)),
        to=_env_list(email.get("to")),
        sender=email.get("from") or "",
        subject_prefix=email.get("subject_prefix", "[UEM Error] "),
        include_ip_address=bool(email.get("include_ip_address", False)),
        include_user_agent=bool(email.get("include_user_agent", False)),
        include_user_details=bool(email.get("include_user_details", False)),
        include_context=bool(email.get("include_context", True)),
        include_trace=bool(email.get("include_trace", False)),
        context_max_string_length=int(email.get("context_max_string_length", 500)),
        trace_max_lines=int(email.get("trace_max_lines", 30)),
        timeout=float(email.get("timeout", 15)),
    )

    slack_settings = SlackSettings(
        enabled=bool(slack.get("enabled", False)),
        webhook_url=slack.get("webhook_url") or "",
        channel=slack.get("channel") or "",
        username=slack.get("username", "UEM Error Bot"),
        icon_emoji=slack.get("icon_emoji", ":boom:"),
        notify_all_critical=bool(slack.get("notify_all_critical", False)),
        include_ip_address=bool(slack.get("include_ip_address", False)),
        include_user_details=bool(slack.get("include_user_details", False)),
        include_context=bool(slack.get("include_context", True)),
        include_trace_snippet=bool(slack.get("include_trace_snippet", False)),
        trace_max_lines=int(slack.get("trace_max_lines", 10)),
        context_max_length=int(slack.get("context_max_length", 1500)),
        context_string_max_length=int(slack.get("context_string_max_length", 200)),
        timeout=float(slack.get("timeout", 15)),
    )

    return UEMSettings(
        app_name=data.get("app_name", "UEM"),
        environment=data.get("environment", "production"),
        locale=data.get("locale", "en"),
        slow_handler_threshold=float(data.get("slow_handler_threshold", 2.0)),
        database_logging=database_logging,
        email=email_settings,
        slack=slack_settings,
        ui=UISettings(
            show_error_codes=bool(ui.get("show_error_codes", False)),
            generic_message_key=ui.get("generic_message_key", "errors.generic_error"),
        ),
    )


def apply_env_overrides(settings: UEMSettings) -> UEMSettings:
    """Overlay environment variables onto loaded settings (in place)."""
    settings.app_name = os.getenv("APP_NAME", settings.app_name)
    settings.environment = os.getenv("APP_ENV", settings.environment)

    db_enabled = _env_bool("UEM_DB_LOGGING_ENABLED")
    if db_enabled is not None:
        settings.database_logging.enabled = db_enabled

    email_enabled = _env_bool("UEM_EMAIL_ENABLED")
    if email_enabled is not None:
        settings.email.enabled = email_enabled
    if os.getenv("UEM_EMAIL_TO"):
        settings.email.to = _env_list(os.getenv("UEM_EMAIL_TO"))
    settings.email.sender = os.getenv("UEM_EMAIL_FROM", settings.email.sender)

    slack_enabled = _env_bool("UEM_SLACK_ENABLED")
    if slack_enabled is not None:
        settings.slack.enabled = slack_enabled
    settings.slack.webhook_url = os.getenv("UEM_SLACK_WEBHOOK_URL", settings.slack.webhook_url)
    settings.slack.channel = os.getenv("UEM_SLACK_CHANNEL", settings.slack.channel)

    return settings


def load_settings(
    path: Optional[Path] = None,
    env_file: Optional[str] = ".env",
) -> UEMSettings:
    """Load settings from YAML, then apply .env and environment overrides."""
    if env_file:
        load_env_file(env_file)

    settings_path = Path(path) if path else DEFAULT_SETTINGS_FILE
    data: dict = {}
    if settings_path.exists():
        with open(settings_path) as f:
            data = yaml.safe_load(f) or {}
    else:
        logger.warning(f"Settings file not found: {settings_path}, using defaults")

    settings = apply_env_overrides(settings_from_dict(data))
    logger.info(
        f"Settings loaded (env={settings.environment}, "
        f"db={settings.database_logging.enabled}, "
        f"email={settings.email.enabled}, slack={settings.slack.enabled})"
    )
    return settings
