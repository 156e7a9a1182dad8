from uem.handlers.log_handler import LogHandler
from uem.handlers.database_log import DatabaseLogHandler
from uem.handlers.email_notification import EmailNotificationHandler
from uem.handlers.slack_notification import SlackNotificationHandler
from uem.handlers.user_interface import UserInterfaceHandler
from uem.handlers.recovery_action import RecoveryActionHandler
from uem.handlers.error_simulation import ErrorSimulationHandler

__all__ = [
    "LogHandler",
    "DatabaseLogHandler",
    "EmailNotificationHandler",
    "SlackNotificationHandler",
    "UserInterfaceHandler",
    "RecoveryActionHandler",
    "ErrorSimulationHandler",
]
