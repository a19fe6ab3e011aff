"""Process settings, read once from the environment (and `.env` via python-dotenv)."""
import os
from typing import Optional, List

from pydantic import BaseModel, Field, field_validator

from models.delivery_engine import EngineType


class Settings(BaseModel):
    email_provider: EngineType = EngineType.AWS_SES
    mail_from: Optional[str] = None
    mail_from_name: Optional[str] = None

    # AWS SES
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_region: str = "us-east-1"

    # SMTP relay
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = Field(default=587, ge=1, le=65535)
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_use_tls: bool = True

    # Mock backend
    mock_delay_seconds: float = Field(default=0.1, ge=0)
    mock_fail_addresses: List[str] = []

    send_timeout_seconds: float = Field(default=30.0, gt=0)
    max_send_workers: int = Field(default=100, ge=1)
    port: int = Field(default=3000, ge=1, le=65535)
    log_level: str = "INFO"
    log_file: Optional[str] = "email.log"

    @field_validator("email_provider", mode="before")
    @classmethod
    def normalize_provider(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        valid = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}
        upper = value.upper()
        if upper not in valid:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(sorted(valid))}")
        return upper

    def sender_address(self) -> str:
        """Address used as From, Reply-To and in the List-Unsubscribe hint."""
        if self.mail_from:
            return self.mail_from
        if self.email_provider == EngineType.SMTP and self.smtp_username:
            return self.smtp_username
        if self.email_provider == EngineType.MOCK:
            return "noreply@example.com"
        raise ValueError("Sender address is not configured (set MAIL_FROM or SES_FROM)")

    def sender_credentials(self) -> dict:
        """Credentials dict handed to EmailFactory.get_sender for the configured provider."""
        if self.email_provider == EngineType.AWS_SES:
            return {
                "region": self.aws_region,
                "aws_access_key_id": self.aws_access_key_id,
                "aws_secret_access_key": self.aws_secret_access_key,
                "timeout": self.send_timeout_seconds,
            }
        if self.email_provider == EngineType.SMTP:
            return {
                "host": self.smtp_host,
                "port": self.smtp_port,
                "username": self.smtp_username,
                "password": self.smtp_password,
                "use_tls": self.smtp_use_tls,
                "timeout": self.send_timeout_seconds,
            }
        return {
            "delay": self.mock_delay_seconds,
            "fail_addresses": self.mock_fail_addresses,
        }


def _split_csv(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def load_settings() -> Settings:
    return Settings(
        email_provider=os.getenv("EMAIL_PROVIDER") or EngineType.AWS_SES,
        mail_from=os.getenv("MAIL_FROM") or os.getenv("SES_FROM") or None,
        mail_from_name=os.getenv("MAIL_FROM_NAME") or None,
        aws_access_key_id=os.getenv("AWS_ACCESS_KEY_ID") or None,
        aws_secret_access_key=os.getenv("AWS_SECRET_ACCESS_KEY") or None,
        aws_region=os.getenv("AWS_REGION") or "us-east-1",
        smtp_host=os.getenv("SMTP_HOST") or "smtp.gmail.com",
        smtp_port=os.getenv("SMTP_PORT") or 587,
        smtp_username=os.getenv("SMTP_USERNAME") or None,
        smtp_password=os.getenv("SMTP_PASSWORD") or None,
        smtp_use_tls=os.getenv("SMTP_USE_TLS") or True,
        mock_delay_seconds=os.getenv("MOCK_DELAY_SECONDS") or 0.1,
        mock_fail_addresses=_split_csv(os.getenv("MOCK_FAIL_ADDRESSES")),
        send_timeout_seconds=os.getenv("SEND_TIMEOUT_SECONDS") or 30.0,
        max_send_workers=os.getenv("MAX_SEND_WORKERS") or 100,
        port=os.getenv("PORT") or 3000,
        log_level=os.getenv("LOG_LEVEL") or "INFO",
        log_file=os.getenv("LOG_FILE", "email.log") or None,
    )
