"""
Local Mailer — SMTP.

Works against a local catch-all SMTP server (MailHog, smtp4dev) in
development. Settings come from SMTP_HOST / SMTP_PORT / SMTP_USER /
SMTP_PASSWORD via from_env().
"""

import os
import smtplib
from email.message import EmailMessage as MIMEEmail

from uem.interfaces.mailer import EmailMessage, Mailer, MailerError


class SmtpMailer(Mailer):
    """Sends plain-text mail over SMTP, one connection per message."""

    def __init__(
        self,
        host: str = "localhost",
        port: int = 1025,
        username: str = "",
        password: str = "",
        use_tls: bool = False,
        timeout: float = 15.0,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    @classmethod
    def from_env(cls, timeout: float = 15.0) -> "SmtpMailer":
        return cls(
            host=os.getenv("SMTP_HOST", "localhost"),
            port=int(os.getenv("SMTP_PORT", "1025")),
            username=os.getenv("SMTP_USER", ""),
            password=os.getenv("SMTP_PASSWORD", ""),
            use_tls=os.getenv("SMTP_TLS", "").lower() in ("1", "true", "yes"),
            timeout=timeout,
        )

    def send(self, message: EmailMessage) -> None:
        mime = MIMEEmail()
        mime["Subject"] = message.subject
        mime["From"] = message.sender
        mime["To"] = ", ".join(message.to)
        if message.reply_to:
            mime["Reply-To"] = ", ".join(message.reply_to)
        mime.set_content(message.body)

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                if self.use_tls:
                    smtp.starttls()
                if self.username:
                    smtp.login(self.username, self.password)
                smtp.send_message(mime)
        except (smtplib.SMTPException, OSError) as e:
            raise MailerError(f"SMTP delivery to {message.to} failed: {e}") from e
