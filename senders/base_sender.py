import asyncio
import functools
from abc import ABC, abstractmethod
from concurrent.futures import Executor
from email import policy
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Dict, Any, Optional


class SendError(Exception):
    """Raised by a sender when the backend rejects or fails to deliver a message."""

    def __init__(self, message: str, code: Optional[str] = None, error_type: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.error_type = error_type

    def to_dict(self) -> Dict[str, Any]:
        payload = {"message": self.message}
        if self.code:
            payload["code"] = self.code
        if self.error_type:
            payload["type"] = self.error_type
        return payload


def build_mime_message(
    from_email: str,
    to_email: str,
    subject: str,
    html_body: str,
    text_body: str = None,
    from_name: str = None,
    reply_to: str = None,
    headers: Dict[str, str] = None,
) -> MIMEMultipart:
    # SMTP policy: CRLF line endings and RFC 2047 encoding for non-ASCII headers
    msg = MIMEMultipart("alternative", policy=policy.SMTP)
    msg["Subject"] = subject
    msg["From"] = formataddr((from_name.strip(), from_email)) if from_name else from_email
    msg["To"] = to_email
    if reply_to:
        msg["Reply-To"] = reply_to

    if headers:
        for key, value in headers.items():
            # Avoid duplicate headers
            if key not in msg:
                msg.add_header(key, value)

    if text_body:
        msg.attach(MIMEText(text_body, "plain", "utf-8", policy=policy.SMTP))
    if html_body:
        msg.attach(MIMEText(html_body, "html", "utf-8", policy=policy.SMTP))
    return msg


class BaseSender(ABC):
    provider_name = "base"

    @abstractmethod
    async def send(self,
             from_email: str,
             to_email: str,
             subject: str,
             html_body: str,
             text_body: str = None,
             from_name: str = None,
             reply_to: str = None,
             headers: Dict[str, str] = None) -> Dict[str, Any]:
        """
        Deliver one message to a single address.

        Returns the provider's response (it always carries a message id).
        Raises SendError when the backend refuses the message.
        """


class BlockingSender(BaseSender):
    """
    Base for senders whose client library blocks (boto3, smtplib).

    `send_sync` does the delivery and must bound its own network calls with
    socket timeouts. `send` runs it on `executor`, or on the loop's default
    executor when none is given.
    """

    async def send(self,
             from_email: str,
             to_email: str,
             subject: str,
             html_body: str,
             text_body: str = None,
             from_name: str = None,
             reply_to: str = None,
             headers: Dict[str, str] = None,
             executor: Optional[Executor] = None) -> Dict[str, Any]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(executor, functools.partial(
            self.send_sync,
            from_email=from_email,
            to_email=to_email,
            subject=subject,
            html_body=html_body,
            text_body=text_body,
            from_name=from_name,
            reply_to=reply_to,
            headers=headers,
        ))

    @abstractmethod
    def send_sync(self,
             from_email: str,
             to_email: str,
             subject: str,
             html_body: str,
             text_body: str = None,
             from_name: str = None,
             reply_to: str = None,
             headers: Dict[str, str] = None) -> Dict[str, Any]:
        """Blocking delivery of one message; same contract as `send`."""
