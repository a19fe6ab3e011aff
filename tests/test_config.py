import pytest
from pydantic import ValidationError

from config import Settings, load_settings
from models.delivery_engine import EngineType

ENV_VARS = [
    "EMAIL_PROVIDER", "MAIL_FROM", "SES_FROM", "MAIL_FROM_NAME",
    "AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY", "AWS_REGION",
    "SMTP_HOST", "SMTP_PORT", "SMTP_USERNAME", "SMTP_PASSWORD", "SMTP_USE_TLS",
    "MOCK_DELAY_SECONDS", "MOCK_FAIL_ADDRESSES", "SEND_TIMEOUT_SECONDS",
    "MAX_SEND_WORKERS", "PORT", "LOG_LEVEL", "LOG_FILE",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    settings = load_settings()
    assert settings.email_provider == EngineType.AWS_SES
    assert settings.aws_region == "us-east-1"
    assert settings.port == 3000
    assert settings.send_timeout_seconds == 30.0
    assert settings.log_file == "email.log"
    assert settings.max_send_workers == 100


def test_ses_settings(clean_env):
    clean_env.setenv("SES_FROM", "alerts@example.com")
    clean_env.setenv("AWS_ACCESS_KEY_ID", "AKIA")
    clean_env.setenv("AWS_SECRET_ACCESS_KEY", "secret")
    clean_env.setenv("AWS_REGION", "eu-west-1")
    clean_env.setenv("SEND_TIMEOUT_SECONDS", "10")

    settings = load_settings()
    assert settings.sender_address() == "alerts@example.com"
    assert settings.sender_credentials() == {
        "region": "eu-west-1",
        "aws_access_key_id": "AKIA",
        "aws_secret_access_key": "secret",
        "timeout": 10.0,
    }


def test_smtp_settings(clean_env):
    clean_env.setenv("EMAIL_PROVIDER", " SMTP ")
    clean_env.setenv("SMTP_USERNAME", "relay@example.com")
    clean_env.setenv("SMTP_PASSWORD", "pw")
    clean_env.setenv("SMTP_PORT", "465")
    clean_env.setenv("SMTP_USE_TLS", "false")

    settings = load_settings()
    assert settings.email_provider == EngineType.SMTP
    # Falls back to the login name when no sender address is set
    assert settings.sender_address() == "relay@example.com"
    credentials = settings.sender_credentials()
    assert credentials["host"] == "smtp.gmail.com"
    assert credentials["port"] == 465
    assert credentials["use_tls"] is False


def test_mock_settings(clean_env):
    clean_env.setenv("EMAIL_PROVIDER", "mock")
    clean_env.setenv("MOCK_FAIL_ADDRESSES", "a@example.com, ,b@example.com")
    clean_env.setenv("LOG_FILE", "")

    settings = load_settings()
    assert settings.sender_address() == "noreply@example.com"
    assert settings.sender_credentials()["fail_addresses"] == ["a@example.com", "b@example.com"]
    assert settings.log_file is None


def test_missing_sender_address(clean_env):
    settings = load_settings()
    with pytest.raises(ValueError, match="MAIL_FROM"):
        settings.sender_address()


def test_invalid_values():
    with pytest.raises(ValidationError):
        Settings(email_provider="carrier_pigeon")
    with pytest.raises(ValidationError):
        Settings(log_level="LOUD")
    with pytest.raises(ValidationError):
        Settings(send_timeout_seconds=0)
    assert Settings(log_level="debug").log_level == "DEBUG"


def test_unknown_provider_rejected_at_load(clean_env):
    clean_env.setenv("EMAIL_PROVIDER", "carrier_pigeon")
    with pytest.raises(ValidationError):
        load_settings()
