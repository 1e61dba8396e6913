"""Webhook service - recording, dispatching and dead-lettering Paystack events"""

import hashlib
import logging
import time
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...config import WEBHOOK_MAX_ATTEMPTS
from ...models import Transaction, User, WebhookEvent
from ...shared.queue import enqueue_job
from .processor import process_webhook_event

logger = logging.getLogger(__name__)

WEBHOOK_TASK = "process_webhook_task"


def webhook_id_for(event: str, data: dict, raw_body: bytes) -> str:
    """
    Stable id for a delivery, so Paystack's redeliveries land on the same row.

    Subscription events carry the subscription's own id, which repeats on every
    enable/disable, so they are told apart by body instead.
    """
    if not event.startswith("subscription."):
        key = data.get("id") or data.get("reference") or data.get("transfer_code")
        if key:
            return f"{event}:{key}"
    return f"{event}:{hashlib.sha256(raw_body).hexdigest()[:32]}"


async def run_webhook_event(db: Session, webhook_id: str) -> WebhookEvent:
    """
    Run one processing attempt for a stored event.

    The attempt counter is committed before the handler runs so it survives the
    handler's rollback. When the last allowed attempt fails the event is marked
    ``dead`` and stays in the table for reconciliation. Handler errors are
    re-raised after bookkeeping.
    """
    record = db.query(WebhookEvent).filter(WebhookEvent.webhook_id == webhook_id).first()
    if not record:
        raise LookupError(f"Webhook {webhook_id} not found")
    if record.status in ("processed", "dead"):
        return record

    record.attempts += 1
    db.commit()
    logger.info(f"🔔 Processing webhook {webhook_id} attempt {record.attempts}/{record.max_attempts}")

    try:
        outcome = await process_webhook_event(db, record.event, (record.payload or {}).get("data") or {})
    except Exception as e:
        db.rollback()
        record.last_error = str(e)[:2000]
        if record.attempts >= record.max_attempts:
            record.status = "dead"
            record.failed_at = datetime.utcnow()
            logger.error(f"☠️ Webhook {webhook_id} moved to dead letter after {record.attempts} attempts: {e}")
        else:
            record.status = "failed"
            logger.warning(f"⚠️ Webhook {webhook_id} attempt {record.attempts} failed: {e}")
        db.commit()
        raise

    record.status = "processed"
    record.processed_at = datetime.utcnow()
    record.last_error = None
    db.commit()
    logger.info(f"✅ Webhook {webhook_id} {outcome}")
    return record


async def run_inline(db: Session, webhook_id: str) -> WebhookEvent:
    """Process without the worker, spending every remaining attempt right away."""
    while True:
        try:
            return await run_webhook_event(db, webhook_id)
        except LookupError:
            raise
        except Exception:
            record = db.query(WebhookEvent).filter(WebhookEvent.webhook_id == webhook_id).one()
            if record.status == "dead":
                return record


class WebhookService:
    def __init__(self, db: Session):
        self.db = db

    def record_event(self, webhook_id: str, payload: dict) -> Optional[WebhookEvent]:
        """Store the delivery; returns None when this webhook id was already received."""
        record = WebhookEvent(
            webhook_id=webhook_id,
            event=payload.get("event") or "unknown",
            payload=payload,
            status="queued",
            attempts=0,
            max_attempts=WEBHOOK_MAX_ATTEMPTS,
        )
        self.db.add(record)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.info(f"ℹ️ Duplicate webhook {webhook_id}, acknowledging")
            return None
        self.db.refresh(record)
        return record

    async def dispatch(self, record: WebhookEvent, job_id: Optional[str] = None) -> bool:
        """Queue the event for the worker; falls back to inline processing. Returns True if queued."""
        if await enqueue_job(WEBHOOK_TASK, record.webhook_id, job_id=job_id or record.webhook_id):
            return True
        try:
            await run_inline(self.db, record.webhook_id)
        except Exception as e:
            # Paystack only needs the acknowledgement; the row keeps the failure for retry
            logger.error(f"❌ Inline processing of webhook {record.webhook_id} failed: {e}")
        return False

    async def receive(self, payload: dict, raw_body: bytes) -> dict:
        event = payload.get("event")
        if not event:
            raise HTTPException(status_code=400, detail="Missing event type")
        data = payload.get("data") or {}

        webhook_id = webhook_id_for(event, data, raw_body)
        record = self.record_event(webhook_id, payload)
        if record is None:
            return {"received": True, "queued": False, "duplicate": True}

        logger.info(f"📥 Paystack webhook received: {event} ({webhook_id})")
        queued = await self.dispatch(record)
        return {"received": True, "queued": queued}

    # ========================================================================
    # RECONCILIATION
    # ========================================================================

    def reconciliation_stats(self) -> dict:
        midnight = datetime.utcnow().replace(hour=0, minute=0, second=0, microsecond=0)
        processed_today = self.db.query(Transaction).filter(
            Transaction.status == "success", Transaction.completed_at >= midnight
        )
        return {
            "total_failed": self.db.query(WebhookEvent).filter(WebhookEvent.status == "dead").count(),
            "total_processed": processed_today.count(),
            "total_revenue": processed_today.with_entities(func.coalesce(func.sum(Transaction.amount), 0)).scalar(),
            "recent_failures": (
                self.db.query(WebhookEvent)
                .filter(WebhookEvent.status == "dead")
                .order_by(WebhookEvent.failed_at.desc(), WebhookEvent.id.desc())
                .limit(20)
                .all()
            ),
        }

    async def retry_dead_event(self, webhook_id: str, admin: User) -> dict:
        record = (
            self.db.query(WebhookEvent)
            .filter(WebhookEvent.webhook_id == webhook_id, WebhookEvent.status == "dead")
            .first()
        )
        if not record:
            raise HTTPException(status_code=404, detail="Failed webhook not found")

        record.status = "queued"
        record.attempts = 0
        record.retried_at = datetime.utcnow()
        record.retried_by = admin.email
        self.db.commit()
        logger.info(f"🔁 Webhook {webhook_id} re-queued by {admin.email}")

        # A fresh job id; arq would otherwise drop the job as a duplicate of the dead one
        queued = await self.dispatch(record, job_id=f"{webhook_id}:retry:{int(time.time() * 1000)}")
        self.db.refresh(record)
        return {"success": True, "webhook_id": webhook_id, "queued": queued, "status": record.status}
