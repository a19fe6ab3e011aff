import os

import pytest

os.environ["EMAIL_PROVIDER"] = "mock"
os.environ["MAIL_FROM"] = "alerts@example.com"
os.environ["MOCK_DELAY_SECONDS"] = "0"
os.environ["LOG_FILE"] = ""

from fastapi.testclient import TestClient

import app as app_module
from app import app
from email_factory import EmailFactory
from executor.notification_dispatcher import NotificationDispatcher
from senders.mock_senders import MockSender


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture(autouse=True)
def reset_dispatcher_cache():
    app_module.get_dispatcher.cache_clear()
    yield
    app_module.get_dispatcher.cache_clear()


@pytest.fixture
def email_factory():
    return EmailFactory(app_module.TEMPLATE_DIR)


@pytest.fixture
def mock_sender():
    return MockSender({"delay": 0})


@pytest.fixture
def dispatcher(mock_sender, email_factory):
    return NotificationDispatcher(
        sender=mock_sender,
        email_factory=email_factory,
        from_email="alerts@example.com",
        send_timeout=5,
    )
