from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, List


class SendRequest(BaseModel):
    emails: List[str] = Field(..., description="List of email addresses")
    platform: str = Field(..., min_length=1, description="Platform name")
    link: str = Field(..., min_length=1, description="Confirmation link")


class RenderedMessage(BaseModel):
    subject: str
    html_body: str
    text_body: str
    reply_to: Optional[str] = None
    headers: Dict[str, str] = {}


class RecipientOutcome(BaseModel):
    """Result of one send attempt. Exactly one of `info` / `error` is set."""
    email: str
    info: Optional[Dict[str, Any]] = None
    error: Optional[Dict[str, Any]] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


class SendResult(BaseModel):
    message: str = "Emails sent successfully"
    count: int
    results: List[RecipientOutcome] = []


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None
