"""
Webhook router

Paystack delivers events here; admins inspect and replay dead-lettered
events through the reconciliation endpoints.
"""

import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...config import PAYSTACK_SECRET_KEY
from ...database import get_db
from ...models import User
from ...rate_limiter import generous_rate_limit
from ...webhook_security import verify_paystack_webhook
from .schemas import ReconciliationStats, RetryWebhookRequest, RetryWebhookResponse, WebhookAck
from .service import WebhookService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])
admin_router = APIRouter(prefix="/admin/reconciliation", tags=["Admin"])


def get_webhook_service(db: Session = Depends(get_db)) -> WebhookService:
    return WebhookService(db)


@router.post("/paystack", response_model=WebhookAck, dependencies=[Depends(generous_rate_limit)])
async def paystack_webhook(request: Request, service: WebhookService = Depends(get_webhook_service)):
    _, raw_body = await verify_paystack_webhook(request, PAYSTACK_SECRET_KEY)

    try:
        payload = json.loads(raw_body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.error(f"❌ Unparseable Paystack webhook body: {e}")
        raise HTTPException(status_code=400, detail="Invalid JSON payload") from e
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Invalid JSON payload")

    return await service.receive(payload, raw_body)


# ============================================================================
# RECONCILIATION (ADMIN)
# ============================================================================


@admin_router.get("/stats", response_model=ReconciliationStats)
async def reconciliation_stats(
    admin: User = Depends(require_admin),
    service: WebhookService = Depends(get_webhook_service),
):
    return service.reconciliation_stats()


@admin_router.post("/retry", response_model=RetryWebhookResponse)
async def retry_failed_webhook(
    data: RetryWebhookRequest,
    admin: User = Depends(require_admin),
    service: WebhookService = Depends(get_webhook_service),
):
    return await service.retry_dead_event(data.webhook_id, admin)
