"""Payout service - moving creator balances to their bank accounts"""

import logging
import time
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from ... import email_service
from ...config import MIN_PAYOUT_KOBO
from ...currency import format_kobo, to_kobo
from ...models import Creator, Payout
from ..payments.paystack_service import PaystackError, paystack_service
from .schemas import BankAccountRequest

logger = logging.getLogger(__name__)


def _transfer_reference(creator_id: int) -> str:
    return f"odim_po_{creator_id}_{int(time.time() * 1000)}"


class PayoutService:
    def __init__(self, db: Session):
        self.db = db

    def _lock_creator(self, creator_id: int) -> Creator:
        return self.db.query(Creator).filter(Creator.id == creator_id).with_for_update().one()

    async def transfer_balance(self, creator: Creator, amount: int, reason: str) -> Payout:
        """
        Reserve ``amount`` from the balance, then ask Paystack to send it.

        The balance is debited and committed before the transfer call so two
        concurrent requests cannot both spend it; a failed transfer re-credits it.
        """
        locked = self._lock_creator(creator.id)
        if locked.current_balance < amount:
            self.db.rollback()
            raise HTTPException(status_code=400, detail="Insufficient balance")
        locked.current_balance -= amount
        self.db.commit()

        try:
            transfer = await paystack_service.initiate_transfer(
                amount=amount,
                recipient=creator.paystack_recipient_code,
                reason=reason,
                reference=_transfer_reference(creator.id),
            )
        except Exception:
            self.db.rollback()
            locked = self._lock_creator(creator.id)
            locked.current_balance += amount
            self.db.commit()
            raise

        payout = Payout(
            creator_id=creator.id,
            amount=amount,
            status="processing",
            paystack_transfer_code=transfer.get("transfer_code"),
            reason=reason,
        )
        self.db.add(payout)
        self.db.commit()
        self.db.refresh(payout)
        return payout

    async def request_payout(self, creator: Creator, amount_naira: float) -> Payout:
        amount = to_kobo(amount_naira)
        if creator.current_balance < amount:
            raise HTTPException(status_code=400, detail="Insufficient balance")
        if not creator.paystack_recipient_code:
            raise HTTPException(status_code=400, detail="Bank account not set up. Please complete onboarding.")

        try:
            payout = await self.transfer_balance(creator, amount, "Odim creator payout")
        except PaystackError as e:
            logger.error(f"❌ Payout transfer failed for creator {creator.id}: {e.message}")
            raise HTTPException(status_code=502, detail=f"Transfer failed: {e.message}") from e

        logger.info(f"💸 Payout {payout.id} of {format_kobo(amount)} started for creator {creator.id}")
        await email_service.send_payout_sent(creator, amount)
        return payout

    async def setup_bank_account(self, creator: Creator, data: BankAccountRequest) -> Creator:
        try:
            recipient = await paystack_service.create_transfer_recipient(
                name=data.account_name, account_number=data.account_number, bank_code=data.bank_code
            )
        except PaystackError as e:
            raise HTTPException(status_code=400, detail=f"Could not verify bank account: {e.message}") from e

        creator.bank_code = data.bank_code
        creator.account_number = data.account_number
        creator.account_name = data.account_name
        creator.paystack_recipient_code = recipient.get("recipient_code")
        self.db.commit()
        self.db.refresh(creator)
        return creator

    def history(self, creator: Creator, status: Optional[str] = None) -> list[Payout]:
        query = self.db.query(Payout).filter(Payout.creator_id == creator.id)
        if status:
            query = query.filter(Payout.status == status)
        return query.order_by(Payout.created_at.desc(), Payout.id.desc()).all()

    def summary(self, creator: Creator) -> dict:
        def total(status: str) -> int:
            return (
                self.db.query(func.sum(Payout.amount))
                .filter(Payout.creator_id == creator.id, Payout.status == status)
                .scalar()
                or 0
            )

        return {
            "current_balance": creator.current_balance,
            "total_earnings": creator.total_earnings,
            "total_paid_out": total("success"),
            "pending": total("processing"),
        }


async def process_daily_payouts(db: Session) -> list[dict]:
    """Sweep every eligible creator balance to their bank; one failure never stops the batch."""
    creators = (
        db.query(Creator)
        .filter(Creator.current_balance >= MIN_PAYOUT_KOBO, Creator.paystack_recipient_code.isnot(None))
        .order_by(Creator.id.asc())
        .all()
    )
    logger.info(f"💰 Daily payouts: {len(creators)} eligible creators")

    service = PayoutService(db)
    results = []
    for creator in creators:
        amount = creator.current_balance
        try:
            payout = await service.transfer_balance(creator, amount, "Odim daily payout")
            results.append({"creator_id": creator.id, "success": True, "amount": amount, "payout_id": payout.id})
            await email_service.send_payout_sent(creator, amount)
        except (PaystackError, HTTPException) as e:
            db.rollback()
            message = getattr(e, "message", None) or getattr(e, "detail", str(e))
            logger.error(f"❌ Daily payout failed for creator {creator.id}: {message}")
            results.append({"creator_id": creator.id, "success": False, "error": message})
    return results
