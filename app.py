from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from functools import lru_cache
import os
import logging
import traceback
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from config import load_settings
from email_factory import EmailFactory
from executor.notification_dispatcher import NotificationDispatcher
from models.message import SendRequest, SendResult, ErrorResponse

settings = load_settings()

# Configure logging to file and console
_handlers = [logging.StreamHandler()]
if settings.log_file:
    _handlers.insert(0, logging.FileHandler(settings.log_file))

logging.basicConfig(
    level=settings.log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s',
    handlers=_handlers
)
logger = logging.getLogger(__name__)

logger.info("=" * 80)
logger.info(f"SECURITY ALERT MAILER STARTING (provider: {settings.email_provider.value})")
logger.info("=" * 80)

MISSING_FIELDS_ERROR = "Missing required fields: emails, platform, link"
SEND_FAILED_ERROR = "Failed to send emails"

app = FastAPI(
    title="Security Alert Mailer",
    version="1.0.0",
    description="API for sending notification emails",
    docs_url="/api-docs",
)

# Initialize components
TEMPLATE_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "templates")
email_factory = EmailFactory(TEMPLATE_DIR)


@lru_cache(maxsize=1)
def get_dispatcher() -> NotificationDispatcher:
    """Builds the mail backend once per process. A failed build is retried on the next call."""
    provider = settings.email_provider.value
    logger.info(f"Initializing email sender: {provider}")
    sender = email_factory.get_sender(provider, settings.sender_credentials())
    return NotificationDispatcher(
        sender=sender,
        email_factory=email_factory,
        from_email=settings.sender_address(),
        from_name=settings.mail_from_name,
        send_timeout=settings.send_timeout_seconds,
        max_workers=settings.max_send_workers,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Rejected {request.method} {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=400, content={"error": MISSING_FIELDS_ERROR})


@app.get("/health")
async def health_check():
    return {"status": "ok", "provider": settings.email_provider.value}


@app.post(
    "/messages",
    response_model=SendResult,
    response_model_exclude_none=True,
    summary="Send notification emails to a list of recipients",
    responses={
        200: {"description": "Emails sent successfully"},
        400: {"model": ErrorResponse, "description": "Invalid input"},
        500: {"model": ErrorResponse, "description": "Error sending emails"},
    },
)
async def send_messages(payload: SendRequest):
    logger.info("=" * 80)
    logger.info(f"RECEIVED SEND REQUEST")
    logger.info(f"   Platform: {payload.platform}")
    logger.info(f"   Recipients Count: {len(payload.emails)}")
    logger.info("=" * 80)

    try:
        dispatcher = get_dispatcher()
        result = await dispatcher.dispatch(payload.emails, payload.platform, payload.link)
    except Exception as e:
        logger.error(f"Error sending emails: {e}")
        logger.error(traceback.format_exc())
        return JSONResponse(
            status_code=500,
            content={"error": SEND_FAILED_ERROR, "details": str(e)},
        )

    return result


if __name__ == "__main__":
    import uvicorn
    logger.info(f"Server running on http://localhost:{settings.port}")
    logger.info(f"Swagger docs at http://localhost:{settings.port}/api-docs")
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
