"""Webhook and reconciliation schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class WebhookAck(BaseModel):
    received: bool = True
    queued: bool = False
    duplicate: bool = False


class FailedWebhook(BaseModel):
    webhook_id: str
    event: str
    attempts: int
    last_error: Optional[str] = None
    failed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ReconciliationStats(BaseModel):
    total_failed: int
    total_processed: int
    total_revenue: int  # kobo, today
    recent_failures: list[FailedWebhook]


class RetryWebhookRequest(BaseModel):
    webhook_id: str = Field(..., min_length=1)


class RetryWebhookResponse(BaseModel):
    success: bool
    webhook_id: str
    queued: bool
    status: str
