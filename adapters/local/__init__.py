from adapters.local.sqlite_error_log_store import SQLiteErrorLogStore
from adapters.local.memory_flash_store import MemoryFlashStore
from adapters.local.smtp_mailer import SmtpMailer

__all__ = [
    "SQLiteErrorLogStore",
    "MemoryFlashStore",
    "SmtpMailer",
]
