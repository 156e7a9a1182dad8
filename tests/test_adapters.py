"""
Mailer and DynamoDB adapter tests.

AWS calls are intercepted with botocore's Stubber; SMTP with a fake
smtplib.SMTP.
"""

import sys
from pathlib import Path

import pytest
from botocore.stub import Stubber

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from adapters.aws.dynamodb_error_log_store import DynamoDBErrorLogStore
from adapters.aws.ses_mailer import SesMailer
from adapters.local import smtp_mailer
from adapters.local.smtp_mailer import SmtpMailer
from uem.interfaces.error_log_store import ErrorLogNotFound
from uem.interfaces.mailer import EmailMessage, MailerError

MESSAGE = EmailMessage(
    to=["dev@example.com", "ops@example.com"],
    sender="uem@example.com",
    subject="[UEM Error] Shop (staging): DATABASE_ERROR",
    body="An error occurred.",
)


@pytest.fixture(autouse=True)
def aws_credentials(monkeypatch):
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


# --- SES ---


def test_ses_sends_plain_text_email():
    mailer = SesMailer(region="us-east-1")
    with Stubber(mailer.client) as stub:
        stub.add_response("send_email", {"MessageId": "m-1"}, {
            "Source": "uem@example.com",
            "Destination": {"ToAddresses": ["dev@example.com", "ops@example.com"]},
            "Message": {
                "Subject": {"Data": MESSAGE.subject, "Charset": "UTF-8"},
                "Body": {"Text": {"Data": MESSAGE.body, "Charset": "UTF-8"}},
            },
        })
        mailer.send(MESSAGE)
        stub.assert_no_pending_responses()


def test_ses_rejection_becomes_mailer_error():
    mailer = SesMailer(region="us-east-1")
    with Stubber(mailer.client) as stub:
        stub.add_client_error("send_email", service_error_code="MessageRejected")
        with pytest.raises(MailerError, match="MessageRejected"):
            mailer.send(MESSAGE)


# --- SMTP ---


class FakeSMTP:
    instances: list["FakeSMTP"] = []
    refuse = False

    def __init__(self, host, port, timeout=None):
        if FakeSMTP.refuse:
            raise ConnectionRefusedError("connection refused")
        self.host, self.port, self.timeout = host, port, timeout
        self.sent = []
        self.logged_in = None
        self.tls = False
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        self.tls = True

    def login(self, username, password):
        self.logged_in = (username, password)

    def send_message(self, mime):
        self.sent.append(mime)


@pytest.fixture
def fake_smtp(monkeypatch):
    FakeSMTP.instances = []
    FakeSMTP.refuse = False
    monkeypatch.setattr(smtp_mailer.smtplib, "SMTP", FakeSMTP)
    return FakeSMTP


def test_smtp_sends_message(fake_smtp):
    SmtpMailer(host="mail.local", port=2525, username="u", password="p", use_tls=True).send(MESSAGE)

    smtp = fake_smtp.instances[0]
    assert (smtp.host, smtp.port) == ("mail.local", 2525)
    assert smtp.tls
    assert smtp.logged_in == ("u", "p")
    mime = smtp.sent[0]
    assert mime["To"] == "dev@example.com, ops@example.com"
    assert mime["Subject"] == MESSAGE.subject
    assert mime.get_content().strip() == "An error occurred."


def test_smtp_failure_becomes_mailer_error(fake_smtp):
    fake_smtp.refuse = True
    with pytest.raises(MailerError, match="connection refused"):
        SmtpMailer().send(MESSAGE)


def test_smtp_from_env(monkeypatch):
    monkeypatch.setenv("SMTP_HOST", "smtp.example.com")
    monkeypatch.setenv("SMTP_PORT", "587")
    monkeypatch.setenv("SMTP_TLS", "true")
    mailer = SmtpMailer.from_env(timeout=5)
    assert (mailer.host, mailer.port, mailer.use_tls, mailer.timeout) == (
        "smtp.example.com", 587, True, 5,
    )


# --- DynamoDB ---


@pytest.fixture
def dynamo():
    store = DynamoDBErrorLogStore("uem-error-logs", region="us-east-1")
    with Stubber(store.table.meta.client) as stub:
        yield store, stub


def test_dynamodb_get_converts_item(dynamo):
    store, stub = dynamo
    stub.add_response("get_item", {"Item": {
        "pk": {"S": "ERROR#e-1"},
        "sk": {"S": "META"},
        "id": {"S": "e-1"},
        "code": {"S": "DATABASE_ERROR"},
        "severity": {"S": "critical"},
        "blocking": {"S": "blocking"},
        "http_status_code": {"N": "500"},
        "context": {"S": '{"details": "timeout"}'},
        "resolved": {"BOOL": False},
        "created_at": {"S": "2026-01-01T00:00:00+00:00"},
    }}, {"TableName": "uem-error-logs", "Key": {"pk": "ERROR#e-1", "sk": "META"}})

    record = store.get("e-1")
    assert record.code == "DATABASE_ERROR"
    assert record.http_status_code == 500
    assert isinstance(record.http_status_code, int)
    assert record.context == {"details": "timeout"}


def test_dynamodb_get_missing_raises(dynamo):
    store, stub = dynamo
    stub.add_response("get_item", {})
    with pytest.raises(ErrorLogNotFound):
        store.get("missing")


def test_dynamodb_delete_missing_raises(dynamo):
    store, stub = dynamo
    stub.add_client_error("delete_item", service_error_code="ConditionalCheckFailedException")
    with pytest.raises(ErrorLogNotFound):
        store.delete("missing")
