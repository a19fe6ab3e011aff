from .base_sender import BaseSender, SendError
from typing import Dict, Any
import asyncio
import logging
import uuid
from collections import deque

logger = logging.getLogger(__name__)

DEFAULT_HISTORY = 100


class MockSender(BaseSender):
    """Logs messages instead of delivering them. Used for local runs and tests."""
    provider_name = "mock"

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.delay = float(config.get("delay", 0.1))
        self.fail_addresses = {a.strip().lower() for a in config.get("fail_addresses", []) if a.strip()}
        # Bounded: only the most recent messages are kept
        self.sent = deque(maxlen=int(config.get("history", DEFAULT_HISTORY)))

    async def send(self, from_email, to_email, subject, html_body, text_body=None, from_name=None, reply_to=None, headers=None) -> Dict[str, Any]:
        logger.info(f"[{self.provider_name}] Sending email...")
        logger.info(f"   From: {from_name} <{from_email}>")
        logger.info(f"   To: {to_email}")
        logger.info(f"   Subject: {subject}")
        # Simulate network latency
        await asyncio.sleep(self.delay)

        if to_email.strip().lower() in self.fail_addresses:
            raise SendError(
                f"Address rejected: {to_email}",
                code="MessageRejected",
                error_type="MockSendError",
            )

        message_id = f"mock-{uuid.uuid4().hex}"
        self.sent.append({
            "to": to_email,
            "subject": subject,
            "html_body": html_body,
            "text_body": text_body,
            "reply_to": reply_to,
            "headers": dict(headers or {}),
            "message_id": message_id,
        })
        return {"MessageId": message_id}
