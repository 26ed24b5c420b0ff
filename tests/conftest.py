import os
import tempfile

# keep log files out of the working tree before app.* reads its settings
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="contact-logs-"))
os.environ.setdefault("EMAIL_DRY_RUN", "1")

import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.errors import TransportError
from app.main import create_app
from app.services.email import MailChannel

VALID = {
    "name": "Ada",
    "email": "ada@example.com",
    "subject": "Hi",
    "message": "Hello there",
}


class RecordingChannel(MailChannel):
    """Keeps every message it is asked to send; optionally fails instead."""

    name = "recording"

    def __init__(self, error: Exception | None = None):
        self.sent = []
        self.error = error

    def send(self, msg):
        self.sent.append(msg)
        if self.error is not None:
            raise self.error


@pytest.fixture
def settings(tmp_path):
    return Settings(
        LOG_DIR=str(tmp_path / "logs"),
        EMAIL_DRY_RUN=False,
        MAIL_VERIFY_ON_STARTUP=False,
        SMTP_USERNAME="mailbox@portfolio.test",
        SMTP_PASSWORD="s3cret-smtp-pass",
        FROM_EMAIL="mailbox@portfolio.test",
        FROM_NAME="Portfolio Site",
        RECIPIENT_EMAIL="owner@portfolio.test",
        CONTACT_EMAIL="owner@portfolio.test",
    )


@pytest.fixture
def channel():
    return RecordingChannel()


@pytest.fixture
def failing_channel():
    return RecordingChannel(
        TransportError("SMTP authentication failed", detail="535 b'auth failed for s3cret-smtp-pass'")
    )


@pytest.fixture
def make_client(settings):
    def _make(channel):
        return TestClient(create_app(settings=settings, channel=channel))
    return _make


@pytest.fixture
def client(make_client, channel):
    return make_client(channel)


@pytest.fixture
def valid_payload():
    return dict(VALID)
