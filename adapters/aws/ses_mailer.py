"""
AWS Mailer — Amazon SES.

The sender address (or its domain) must be verified in SES for the region.
"""

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from uem.interfaces.mailer import EmailMessage, Mailer, MailerError


class SesMailer(Mailer):
    """SES SendEmail with a plain-text body."""

    def __init__(self, region: str = "us-east-1", timeout: float = 15.0):
        config = Config(connect_timeout=timeout, read_timeout=timeout, retries={"max_attempts": 2})
        self.client = boto3.client("ses", region_name=region, config=config)

    def send(self, message: EmailMessage) -> None:
        kwargs = {
            "Source": message.sender,
            "Destination": {"ToAddresses": list(message.to)},
            "Message": {
                "Subject": {"Data": message.subject, "Charset": "UTF-8"},
                "Body": {"Text": {"Data": message.body, "Charset": "UTF-8"}},
            },
        }
        if message.reply_to:
            kwargs["ReplyToAddresses"] = list(message.reply_to)

        try:
            self.client.send_email(**kwargs)
        except ClientError as e:
            code = e.response["Error"]["Code"]
            raise MailerError(f"SES rejected message ({code}): {e}") from e
