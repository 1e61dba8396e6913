"""Payment service - checkout initialization and verification against Paystack"""

import logging
import secrets
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import FRONTEND_URL
from ...currency import to_kobo
from ...models import Creator, CreatorPlan, Transaction, User
from .paystack_service import PaystackError, paystack_service
from .schemas import InitializePaymentRequest

logger = logging.getLogger(__name__)

REFERENCE_PREFIXES = {
    "subscription": "sub",
    "one_time": "otp",
    "booking": "bk",
    "collection_subscription": "col",
    "tutorial_purchase": "tut",
}


def new_reference(tx_type: str) -> str:
    return f"odim_{REFERENCE_PREFIXES.get(tx_type, 'tx')}_{secrets.token_hex(8)}"


class PaymentService:
    def __init__(self, db: Session):
        self.db = db

    async def start_checkout(
        self,
        *,
        email: str,
        amount: int,
        creator: Creator,
        tx_type: str,
        metadata: Optional[dict] = None,
        user_id: Optional[int] = None,
        callback_path: str = "/payment/callback",
        split_to_subaccount: bool = True,
    ) -> dict:
        """
        Initialize a Paystack transaction and record it as pending. ``amount`` is kobo.

        Escrowed payments (bookings) pass ``split_to_subaccount=False`` so the
        platform holds the funds until payouts are released.
        """
        if not paystack_service.is_available():
            raise HTTPException(status_code=503, detail="Payments are not configured")

        reference = new_reference(tx_type)
        meta = {"type": tx_type, "creator_id": creator.id, **(metadata or {})}
        try:
            data = await paystack_service.initialize_transaction(
                email=email,
                amount=amount,
                reference=reference,
                metadata=meta,
                callback_url=f"{FRONTEND_URL}{callback_path}",
                subaccount=creator.paystack_subaccount_code if split_to_subaccount else None,
            )
        except PaystackError as e:
            logger.error(f"❌ Payment initialization failed ({tx_type}) for {email}: {e.message}")
            status = 400 if 400 <= e.status_code < 500 else 502
            raise HTTPException(status_code=status, detail=f"Payment initialization failed: {e.message}") from e

        reference = data.get("reference", reference)
        self.db.add(
            Transaction(
                reference=reference,
                user_id=user_id,
                creator_id=creator.id,
                email=email,
                amount=amount,
                status="pending",
                type=tx_type,
                payment_metadata=meta,
            )
        )
        self.db.commit()
        logger.info(f"💳 Checkout {reference} started ({tx_type}, {amount} kobo)")
        return {
            "authorization_url": data.get("authorization_url"),
            "access_code": data.get("access_code"),
            "reference": reference,
        }

    async def initialize(self, data: InitializePaymentRequest, user: Optional[User] = None) -> dict:
        creator = self.db.query(Creator).filter(Creator.id == data.creator_id).first()
        if not creator:
            raise HTTPException(status_code=404, detail="Creator not found")

        amount = to_kobo(data.amount)
        metadata = {"phone": data.phone}
        if data.plan_id is not None:
            plan = (
                self.db.query(CreatorPlan)
                .filter(
                    CreatorPlan.id == data.plan_id,
                    CreatorPlan.creator_id == creator.id,
                    CreatorPlan.is_active.is_(True),
                )
                .first()
            )
            if not plan:
                raise HTTPException(status_code=404, detail="Plan not found")
            # The plan price is authoritative for subscriptions
            amount = plan.price
            metadata["plan_id"] = plan.id

        return await self.start_checkout(
            email=data.email,
            amount=amount,
            creator=creator,
            tx_type=data.type,
            metadata=metadata,
            user_id=user.id if user else None,
        )

    async def verify(self, reference: str) -> dict:
        transaction = self.db.query(Transaction).filter(Transaction.reference == reference).first()
        if not transaction:
            raise HTTPException(status_code=404, detail="Transaction not found")

        try:
            data = await paystack_service.verify_transaction(reference)
        except PaystackError as e:
            raise HTTPException(status_code=502, detail="Could not verify payment") from e

        gateway_status = data.get("status")
        if gateway_status == "success" and transaction.fulfilled_at is None:
            # Deferred: the webhook processor imports the booking service, which imports this module
            from ..webhooks.processor import WebhookProcessingError, fulfil_transaction

            try:
                await fulfil_transaction(self.db, transaction, data)
            except WebhookProcessingError as e:
                self.db.rollback()
                logger.warning(f"⚠️ Could not fulfil {reference} on verify, leaving it to the webhook: {e}")
            self.db.refresh(transaction)
        elif transaction.status == "pending" and gateway_status in ("failed", "abandoned", "reversed"):
            transaction.status = "failed"
            transaction.gateway_response = {
                "status": gateway_status,
                "gateway_response": data.get("gateway_response"),
                "channel": data.get("channel"),
            }
            self.db.commit()

        return {
            "success": transaction.status == "success",
            "status": transaction.status,
            "reference": reference,
            "amount": transaction.amount,
            "data": {
                "gateway_status": gateway_status,
                "paid_at": data.get("paid_at"),
                "channel": data.get("channel"),
            },
        }
