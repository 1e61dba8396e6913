"""
Paystack event handlers.

Every handler is safe to run more than once for the same event: payments are
keyed on the transaction's fulfilled_at and payouts on the payout status, so a
redelivered or retried webhook never credits a creator twice.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ... import email_service
from ...config import SUBSCRIPTION_PLATFORM_FEE_PERCENT
from ...currency import round_half_up
from ...models import (
    Booking,
    CollectionSubscription,
    Content,
    Creator,
    FanSubscription,
    Payout,
    Transaction,
    TutorialPurchase,
    User,
)
from ..bookings.service import BookingService

logger = logging.getLogger(__name__)

SUBSCRIPTION_PERIOD = timedelta(days=30)

SUBSCRIPTION_EVENT_STATUS = {
    "subscription.create": "active",
    "subscription.enable": "active",
    "subscription.disable": "cancelled",
}


class WebhookProcessingError(Exception):
    """The event refers to something we cannot find yet; the worker retries it."""


def _credit_creator(db: Session, creator_id: Optional[int], amount: int) -> None:
    if not creator_id or amount <= 0:
        return
    creator = db.query(Creator).filter(Creator.id == creator_id).with_for_update().first()
    if not creator:
        raise WebhookProcessingError(f"Creator {creator_id} not found")
    creator.current_balance += amount
    creator.total_earnings += amount


def _find_or_create_user(db: Session, email: str) -> User:
    email = email.lower()
    user = db.query(User).filter(User.email == email).first()
    if not user:
        # Placeholder uid; the first real sign-in with this email adopts the row
        user = User(firebase_uid=f"pending:{email}", email=email)
        db.add(user)
        db.flush()
        logger.info(f"🆕 Created user for buyer {email}")
    return user


def _customer_email(data: dict, transaction: Optional[Transaction] = None) -> Optional[str]:
    if transaction is not None and transaction.email:
        return transaction.email
    return (data.get("customer") or {}).get("email")


# ============================================================================
# CHARGES
# ============================================================================


def _handle_subscription(db: Session, data: dict, transaction: Transaction, fees: int) -> None:
    metadata = transaction.payment_metadata or {}
    fan_id = transaction.user_id
    if fan_id is None:
        email = _customer_email(data, transaction)
        if not email:
            raise WebhookProcessingError(f"No subscriber email on {transaction.reference}")
        fan_id = _find_or_create_user(db, email).id

    existing = (
        db.query(FanSubscription)
        .filter(
            FanSubscription.fan_id == fan_id,
            FanSubscription.creator_id == transaction.creator_id,
            FanSubscription.status == "active",
        )
        .first()
    )
    if existing:
        logger.info(f"ℹ️ Active subscription already exists for fan {fan_id}, skipping creation")
        return

    now = datetime.utcnow()
    db.add(
        FanSubscription(
            fan_id=fan_id,
            creator_id=transaction.creator_id,
            plan_id=metadata.get("plan_id"),
            status="active",
            paystack_authorization_code=(data.get("authorization") or {}).get("authorization_code"),
            paystack_subscription_code=(data.get("subscription") or {}).get("subscription_code"),
            current_period_start=now,
            current_period_end=now + SUBSCRIPTION_PERIOD,
        )
    )

    platform_fee = round_half_up(transaction.amount * SUBSCRIPTION_PLATFORM_FEE_PERCENT)
    _credit_creator(db, transaction.creator_id, transaction.amount - fees - platform_fee)
    creator = db.query(Creator).filter(Creator.id == transaction.creator_id).first()
    if creator:
        creator.subscriber_count += 1
    logger.info(f"✅ Subscription created for fan {fan_id} with creator {transaction.creator_id}")


def _handle_collection_subscription(db: Session, data: dict, transaction: Transaction, fees: int) -> None:
    metadata = transaction.payment_metadata or {}
    email = _customer_email(data, transaction)
    if not email or not metadata.get("collection_id"):
        raise WebhookProcessingError(f"Incomplete collection metadata on {transaction.reference}")
    email = email.lower()
    _find_or_create_user(db, email)

    subscription_type = metadata.get("subscription_type") or "one_time"
    db.add(
        CollectionSubscription(
            collection_id=metadata["collection_id"],
            email=email,
            subscription_type=subscription_type,
            payment_reference=transaction.reference,
            transaction_id=transaction.id,
            status="active",
            expires_at=datetime.utcnow() + SUBSCRIPTION_PERIOD if subscription_type == "recurring" else None,
        )
    )
    _credit_creator(db, transaction.creator_id, transaction.amount - fees)
    logger.info(f"✅ Collection {metadata['collection_id']} unlocked for {email}")


def _handle_tutorial_purchase(db: Session, data: dict, transaction: Transaction, fees: int) -> None:
    metadata = transaction.payment_metadata or {}
    email = _customer_email(data, transaction)
    content_id = metadata.get("content_id")
    if not email or not content_id:
        raise WebhookProcessingError(f"Incomplete tutorial metadata on {transaction.reference}")

    db.add(
        TutorialPurchase(
            content_id=content_id,
            email=email.lower(),
            payment_reference=transaction.reference,
            transaction_id=transaction.id,
        )
    )
    content = db.query(Content).filter(Content.id == content_id).first()
    if content:
        content.view_count += 1
    _credit_creator(db, transaction.creator_id, transaction.amount - fees)
    logger.info(f"✅ Tutorial {content_id} purchased by {email}")


async def _handle_booking(db: Session, transaction: Transaction) -> None:
    booking_id = (transaction.payment_metadata or {}).get("booking_id")
    booking = db.query(Booking).filter(Booking.id == booking_id).first() if booking_id else None
    if not booking:
        raise WebhookProcessingError(f"Booking not found for {transaction.reference}")

    # settle_payment commits the pending transaction update along with the escrow release
    if BookingService(db).settle_payment(booking, transaction.reference):
        await email_service.send_booking_confirmation(booking)


async def fulfil_transaction(db: Session, transaction: Transaction, data: dict) -> str:
    """
    Mark a charge successful and deliver what it paid for.

    Both the charge.success webhook and the verify endpoint land here. Whichever
    comes first does the work; the other finds ``fulfilled_at`` set and stops.
    """
    transaction = db.query(Transaction).filter(Transaction.id == transaction.id).with_for_update().one()
    if transaction.fulfilled_at is not None:
        logger.info(f"ℹ️ Transaction already fulfilled: {transaction.reference}")
        return "already_processed"

    fees = int(data.get("fees") or 0)
    now = datetime.utcnow()
    transaction.status = "success"
    transaction.fee_amount = fees
    transaction.net_amount = transaction.amount - fees
    transaction.gateway_response = data
    transaction.completed_at = transaction.completed_at or now
    transaction.fulfilled_at = now

    if transaction.type == "subscription" and transaction.creator_id:
        _handle_subscription(db, data, transaction, fees)
    elif transaction.type == "collection_subscription":
        _handle_collection_subscription(db, data, transaction, fees)
    elif transaction.type == "tutorial_purchase":
        _handle_tutorial_purchase(db, data, transaction, fees)
    elif transaction.type == "booking":
        await _handle_booking(db, transaction)
    else:
        _credit_creator(db, transaction.creator_id, transaction.amount - fees)

    db.commit()
    return "processed"


async def handle_charge_success(db: Session, data: dict) -> str:
    reference = data.get("reference")
    transaction = db.query(Transaction).filter(Transaction.reference == reference).first()
    if not transaction:
        raise WebhookProcessingError(f"Transaction not found for reference: {reference}")
    return await fulfil_transaction(db, transaction, data)


# ============================================================================
# SUBSCRIPTIONS & INVOICES
# ============================================================================


def _subscription_by_code(db: Session, code: Optional[str]) -> Optional[FanSubscription]:
    if not code:
        return None
    return db.query(FanSubscription).filter(FanSubscription.paystack_subscription_code == code).first()


def handle_subscription_event(db: Session, event: str, data: dict) -> str:
    code = data.get("subscription_code")
    subscription = _subscription_by_code(db, code)

    if not subscription and event == "subscription.create":
        # The charge may have landed first; attach the code to the fan's newest subscription
        email = _customer_email(data)
        user = db.query(User).filter(User.email == email.lower()).first() if email else None
        if user:
            subscription = (
                db.query(FanSubscription)
                .filter(
                    FanSubscription.fan_id == user.id,
                    FanSubscription.paystack_subscription_code.is_(None),
                )
                .order_by(FanSubscription.id.desc())
                .first()
            )
            if subscription:
                subscription.paystack_subscription_code = code

    if not subscription:
        logger.warning(f"⚠️ No fan subscription for code {code} ({event})")
        return "ignored"

    subscription.status = SUBSCRIPTION_EVENT_STATUS[event]
    db.commit()
    logger.info(f"🔄 Subscription {code} is now {subscription.status}")
    return "processed"


def handle_invoice_event(db: Session, event: str, data: dict) -> str:
    code = (data.get("subscription") or {}).get("subscription_code") or data.get("subscription_code")
    subscription = _subscription_by_code(db, code)
    if not subscription:
        logger.warning(f"⚠️ No fan subscription for invoice on {code}")
        return "ignored"

    if event == "invoice.payment_succeeded":
        now = datetime.utcnow()
        start = max(now, subscription.current_period_end)
        subscription.current_period_start = start
        subscription.current_period_end = start + SUBSCRIPTION_PERIOD
        subscription.status = "active"
        logger.info(f"🔁 Subscription {code} renewed until {subscription.current_period_end:%Y-%m-%d}")
    else:
        subscription.status = "past_due"
        logger.warning(f"⚠️ Renewal failed for subscription {code}")
    db.commit()
    return "processed"


# ============================================================================
# TRANSFERS
# ============================================================================


def handle_transfer_event(db: Session, event: str, data: dict) -> str:
    transfer_code = data.get("transfer_code")
    payout = db.query(Payout).filter(Payout.paystack_transfer_code == transfer_code).first()
    if not payout:
        raise WebhookProcessingError(f"Payout not found for transfer code: {transfer_code}")
    if payout.status != "processing":
        logger.info(f"ℹ️ Payout {payout.id} already {payout.status}")
        return "already_processed"

    payout.processed_at = datetime.utcnow()
    if event == "transfer.success":
        payout.status = "success"
        logger.info(f"✅ Payout marked as successful: {transfer_code}")
    else:
        payout.status = "failed"
        fallback = "Transfer reversed" if event == "transfer.reversed" else "Transfer failed"
        payout.failure_reason = data.get("reason") or data.get("gateway_response") or fallback
        # Money never left; give it back so the next payout run retries it
        creator = db.query(Creator).filter(Creator.id == payout.creator_id).with_for_update().first()
        if creator:
            creator.current_balance += payout.amount
        logger.warning(f"⚠️ Payout {payout.id} {payout.status}, {payout.amount} kobo re-credited")
    db.commit()
    return "processed"


async def process_webhook_event(db: Session, event: str, data: dict) -> str:
    """Apply one Paystack event. Returns ``processed``, ``already_processed`` or ``ignored``."""
    if event == "charge.success":
        return await handle_charge_success(db, data)
    if event in SUBSCRIPTION_EVENT_STATUS:
        return handle_subscription_event(db, event, data)
    if event in ("transfer.success", "transfer.failed", "transfer.reversed"):
        return handle_transfer_event(db, event, data)
    if event in ("invoice.payment_succeeded", "invoice.payment_failed"):
        return handle_invoice_event(db, event, data)

    logger.info(f"ℹ️ Unhandled webhook event: {event}")
    return "ignored"
