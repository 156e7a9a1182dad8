"""
UEM Interfaces — contracts between the pipeline and its infrastructure.

Core code depends on these interfaces only.
Local and AWS implementations live in adapters/.
"""

from uem.interfaces.handler import ErrorHandler
from uem.interfaces.error_log_store import ErrorLogStore, ErrorLogNotFound
from uem.interfaces.mailer import EmailMessage, Mailer, MailerError
from uem.interfaces.flash_store import FlashStore

__all__ = [
    "ErrorHandler",
    "ErrorLogStore", "ErrorLogNotFound",
    "EmailMessage", "Mailer", "MailerError",
    "FlashStore",
]
