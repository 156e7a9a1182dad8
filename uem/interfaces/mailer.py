"""
Mailer Interface

Outbound email for team notifications.
Implementations: SmtpMailer (local), SesMailer (AWS).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass
class EmailMessage:
    """A plain-text email ready to send."""

    to: list[str]
    sender: str
    subject: str
    body: str
    reply_to: list[str] = field(default_factory=list)


class Mailer(ABC):
    """Sends one email. Raises MailerError on delivery failure."""

    @abstractmethod
    def send(self, message: EmailMessage) -> None:
        ...


class MailerError(Exception):
    pass
