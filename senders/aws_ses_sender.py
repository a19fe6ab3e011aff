import logging
from typing import Dict, Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError, ConnectTimeoutError, ReadTimeoutError

from senders.base_sender import BlockingSender, SendError, build_mime_message

logger = logging.getLogger(__name__)


class AWSSESSender(BlockingSender):
    provider_name = "aws_ses"

    def __init__(self, credentials: dict):
        self.region = credentials.get("region") or "us-east-1"
        self.access_key = credentials.get("aws_access_key_id")
        self.secret_key = credentials.get("aws_secret_access_key")
        timeout = credentials.get("timeout", 30)

        # One attempt per recipient: botocore's own retries are disabled
        self.client = boto3.client(
            'ses',
            region_name=self.region,
            aws_access_key_id=self.access_key,
            aws_secret_access_key=self.secret_key,
            config=Config(
                connect_timeout=timeout,
                read_timeout=timeout,
                retries={"total_max_attempts": 1},
            ),
        )
        logger.info(f"SES client ready (region={self.region})")

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
        msg = build_mime_message(
            from_email=from_email,
            to_email=to_email,
            subject=subject,
            html_body=html_body,
            text_body=text_body,
            from_name=from_name,
            reply_to=reply_to,
            headers=headers,
        )

        try:
            response = self.client.send_raw_email(
                Source=from_email,
                Destinations=[to_email],
                RawMessage={'Data': msg.as_bytes()}
            )
        except ClientError as e:
            error = e.response.get("Error", {})
            logger.error(f"SES error for {to_email}: {error.get('Code')} {error.get('Message')}")
            raise SendError(
                error.get("Message") or str(e),
                code=error.get("Code"),
                error_type=type(e).__name__,
            ) from e
        except (ConnectTimeoutError, ReadTimeoutError) as e:
            logger.error(f"SES send to {to_email} timed out: {e}")
            raise SendError(str(e), code="Timeout", error_type=type(e).__name__) from e
        except BotoCoreError as e:
            logger.error(f"SES error for {to_email}: {e}")
            raise SendError(str(e), error_type=type(e).__name__) from e

        logger.info(f"SES response for {to_email}: {response.get('MessageId')}")
        return response
