import asyncio
import logging
import traceback
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

from email_factory import EmailFactory
from models.message import RecipientOutcome, RenderedMessage, SendResult
from senders.base_sender import BaseSender, BlockingSender, SendError

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """
    Sends one rendered security alert to every recipient concurrently.

    Each recipient gets its own task and its own outcome slot; a failure for
    one address never affects the others. `dispatch` returns only after every
    task has settled, with results in input order.

    Blocking senders run on a thread pool created for the dispatch, one worker
    per recipient up to `max_workers`, and are bounded by their client's socket
    timeouts. Coroutine senders are bounded by `send_timeout` directly.
    """

    def __init__(
        self,
        sender: BaseSender,
        email_factory: EmailFactory,
        from_email: str,
        from_name: Optional[str] = None,
        send_timeout: float = 30.0,
        max_workers: int = 100,
    ):
        self.sender = sender
        self.email_factory = email_factory
        self.from_email = from_email
        self.from_name = from_name
        self.send_timeout = send_timeout
        self.max_workers = max_workers

    async def dispatch(self, emails: List[str], platform: str, link: str) -> SendResult:
        message = self.email_factory.render_security_alert(platform, link, self.from_email)
        logger.info(f"Rendered alert '{message.subject}' for {len(emails)} recipient(s)")

        if emails and isinstance(self.sender, BlockingSender):
            workers = min(len(emails), self.max_workers)
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="mail-send") as pool:
                results = await asyncio.gather(*[self._send_one(email, message, pool) for email in emails])
        else:
            results = await asyncio.gather(*[self._send_one(email, message) for email in emails])

        failed = sum(1 for r in results if not r.succeeded)
        logger.info("=" * 80)
        logger.info("SEND COMPLETE")
        logger.info(f"   Total: {len(results)}")
        logger.info(f"   Succeeded: {len(results) - failed}")
        logger.info(f"   Failed: {failed}")
        logger.info("=" * 80)

        return SendResult(count=len(results), results=list(results))

    async def _send_one(
        self,
        email: str,
        message: RenderedMessage,
        pool: Optional[ThreadPoolExecutor] = None,
    ) -> RecipientOutcome:
        provider = self.sender.provider_name
        send_kwargs = dict(
            from_email=self.from_email,
            to_email=email.strip(),
            subject=message.subject,
            html_body=message.html_body,
            text_body=message.text_body,
            from_name=self.from_name,
            reply_to=message.reply_to,
            headers=message.headers,
        )
        try:
            if isinstance(self.sender, BlockingSender):
                # A worker thread can't be abandoned mid-send; waiting for it keeps the outcome truthful
                info = await self.sender.send(executor=pool, **send_kwargs)
            else:
                info = await asyncio.wait_for(self.sender.send(**send_kwargs), timeout=self.send_timeout)
        except asyncio.TimeoutError:
            logger.error(f"{provider} send to {email} timed out after {self.send_timeout}s")
            return RecipientOutcome(email=email, error={
                "message": f"Send timed out after {self.send_timeout} seconds",
                "code": "Timeout",
                "type": "TimeoutError",
            })
        except SendError as e:
            logger.error(f"{provider} error for {email}: {e}")
            return RecipientOutcome(email=email, error=e.to_dict())
        except Exception as e:
            logger.error(f"Unexpected error for {email}: {e}")
            logger.error(traceback.format_exc())
            return RecipientOutcome(email=email, error={
                "message": str(e) or type(e).__name__,
                "type": type(e).__name__,
            })

        message_id = info.get("MessageId") or info.get("messageId")
        logger.info(f"{provider} response for {email}: {message_id}")
        return RecipientOutcome(email=email, info=info)
