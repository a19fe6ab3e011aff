import smtplib
import socket
from email.utils import make_msgid
from typing import Dict, Any
import logging
from .base_sender import BlockingSender, SendError, build_mime_message

logger = logging.getLogger(__name__)

SMTP_SSL_PORT = 465


def _decode_reply(reply) -> str:
    if isinstance(reply, bytes):
        return reply.decode("utf-8", errors="replace")
    return str(reply)


class SMTPSender(BlockingSender):
    provider_name = "smtp"

    def __init__(self, config: Dict[str, Any]):
        self.host = config.get("host")
        self.port = int(config.get("port") or 587)
        self.username = config.get("username")
        self.password = config.get("password")
        self.use_tls = config.get("use_tls", True)
        self.timeout = config.get("timeout", 30)

        if not self.host:
            raise ValueError("SMTP requires 'host' in credentials")
        if not self.username or not self.password:
            raise ValueError("SMTP requires 'username' and 'password' in credentials")

    def send_sync(
        self,
        from_email: str,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: str = None,
        from_name: str = None,
        reply_to: str = None,
        headers: Dict[str, str] = None
    ) -> Dict[str, Any]:
        # A trailing space (e.g., "email@...com ") can cause Gmail to silently drop the message.
        clean_from_email = from_email.strip() if from_email else ""
        clean_to_email = to_email.strip() if to_email else ""

        msg = build_mime_message(
            from_email=clean_from_email,
            to_email=clean_to_email,
            subject=subject,
            html_body=html_body,
            text_body=text_body,
            from_name=from_name,
            reply_to=reply_to,
            headers=headers,
        )
        message_id = make_msgid(domain=clean_from_email.rpartition("@")[2] or None)
        msg["Message-ID"] = message_id

        smtp_class = smtplib.SMTP_SSL if self.port == SMTP_SSL_PORT else smtplib.SMTP
        try:
            with smtp_class(self.host, self.port, timeout=self.timeout) as server:
                if self.use_tls and smtp_class is smtplib.SMTP:
                    server.starttls()
                server.login(self.username, self.password)
                refused = server.sendmail(clean_from_email, [clean_to_email], msg.as_bytes())
        except smtplib.SMTPRecipientsRefused as e:
            code, reply = e.recipients.get(clean_to_email, (None, str(e)))
            logger.error(f"SMTP recipient refused {to_email}: {code} {_decode_reply(reply)}")
            raise SendError(
                _decode_reply(reply),
                code=str(code) if code else None,
                error_type=type(e).__name__,
            ) from e
        except smtplib.SMTPResponseException as e:
            logger.error(f"SMTP send failed to {to_email}: {e.smtp_code} {_decode_reply(e.smtp_error)}")
            raise SendError(
                _decode_reply(e.smtp_error),
                code=str(e.smtp_code),
                error_type=type(e).__name__,
            ) from e
        except (socket.timeout, TimeoutError) as e:
            logger.error(f"SMTP send to {to_email} timed out after {self.timeout}s")
            raise SendError(
                f"SMTP timed out after {self.timeout} seconds",
                code="Timeout",
                error_type="TimeoutError",
            ) from e
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP send failed to {to_email}: {e}")
            raise SendError(str(e) or type(e).__name__, error_type=type(e).__name__) from e

        logger.info(f"SMTP response for {to_email}: {message_id}")
        return {
            "messageId": message_id,
            "accepted": [clean_to_email],
            "rejected": sorted(refused),
            "envelope": {"from": clean_from_email, "to": [clean_to_email]},
        }
