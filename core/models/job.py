"""Background job payloads."""

from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel, Field

from utils.timezone import now_utc


class ConfirmationJob(BaseModel):
    """Send the order confirmation email with the ticket PDF attached."""

    job_id: str = Field(default_factory=lambda: str(uuid4()))
    order_id: int
    download_token: str
    attempts: int = Field(default=0, ge=0)
    resend: bool = False  # operator request: send even if already sent
    enqueued_at: datetime = Field(default_factory=now_utc)
