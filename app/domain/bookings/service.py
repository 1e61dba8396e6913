"""Booking service - escrow-backed service bookings from request to completion"""

import logging
import secrets
import time
from datetime import date, datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ... import email_service
from ...models import Booking, Creator, Transaction
from ..availability.repository import AvailabilityRepository
from ..payments.paystack_service import PaystackError, paystack_service
from ..payments.service import PaymentService
from ..price_list.repository import PriceListRepository
from . import status as st
from .escrow import calculate_escrow_amounts
from .repository import BookingRepository
from .schemas import BookingCreate, RefundRequest

logger = logging.getLogger(__name__)

PROGRESS_STEPS = ("Booking Confirmed", "Service Day", "Job Completed")
STEP_BY_STATUS = {
    st.PENDING: 0,
    st.PAID: 1,
    st.FIRST_PAYOUT_DONE: 1,
    st.SERVICE_DAY: 2,
    st.COMPLETED: 3,
    st.DISPUTED: -1,
    st.REFUNDED: -1,
    st.CANCELLED: -1,
}


def _ms() -> int:
    return int(time.time() * 1000)


def progress_for(status: str) -> dict:
    current = STEP_BY_STATUS.get(status, 0)
    return {
        "current_step": current,
        "steps": [
            {"step": i, "label": label, "completed": current >= i}
            for i, label in enumerate(PROGRESS_STEPS, start=1)
        ],
    }


class BookingService:
    """Service layer for booking business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BookingRepository()

    def _transition(self, booking: Booking, target: str, detail: Optional[str] = None) -> None:
        try:
            st.ensure_transition(booking.status, target)
        except st.InvalidTransitionError as e:
            raise HTTPException(status_code=409, detail=detail or str(e)) from e
        booking.status = target

    def _get_for_creator(self, creator: Creator, booking_id: int) -> Booking:
        booking = self.repo.get_by_id(self.db, booking_id, creator.id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        return booking

    def _get_by_token(self, tracking_token: str) -> Booking:
        booking = self.repo.get_by_token(self.db, tracking_token)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        return booking

    # ========================================================================
    # CREATE & PAY
    # ========================================================================

    def create_booking(self, data: BookingCreate) -> Booking:
        item = PriceListRepository.get_item(self.db, data.price_list_item_id, data.creator_id)
        if not item or not item.is_active:
            raise HTTPException(status_code=400, detail="Service not found or unavailable")

        if data.booking_date < date.today():
            raise HTTPException(status_code=400, detail="Selected date is not available")

        availability = AvailabilityRepository.get_date(self.db, data.creator_id, data.booking_date)
        if not availability or not availability.is_available:
            raise HTTPException(status_code=400, detail="Selected date is not available")

        if availability.max_bookings is not None:
            booked = AvailabilityRepository.count_active_bookings(self.db, data.creator_id, data.booking_date)
            if booked >= availability.max_bookings:
                raise HTTPException(status_code=400, detail="This date is fully booked")

        split = calculate_escrow_amounts(item.price)
        booking = Booking(
            creator_id=data.creator_id,
            price_list_item_id=item.id,
            customer_email=data.customer_email.lower(),
            customer_name=data.customer_name.strip(),
            customer_phone=data.customer_phone,
            customer_address=data.customer_address.strip(),
            booking_date=data.booking_date,
            notes=data.notes,
            total_amount=split.total,
            platform_fee=split.platform_fee,
            first_payout_amount=split.first_payout,
            second_payout_amount=split.second_payout,
            status=st.PENDING,
            tracking_token=secrets.token_hex(16),
        )
        self.db.add(booking)
        self.db.commit()
        self.db.refresh(booking)
        logger.info(f"📥 Booking {booking.id} created for creator {data.creator_id} on {data.booking_date}")
        return booking

    async def initialize_payment(self, tracking_token: str) -> dict:
        booking = self._get_by_token(tracking_token)
        if booking.status != st.PENDING:
            raise HTTPException(status_code=409, detail="Booking already processed")

        checkout = await PaymentService(self.db).start_checkout(
            email=booking.customer_email,
            amount=booking.total_amount,
            creator=booking.creator,
            tx_type="booking",
            metadata={"booking_id": booking.id},
            callback_path=f"/track/{booking.tracking_token}",
            split_to_subaccount=False,
        )
        booking.payment_reference = checkout["reference"]
        self.db.commit()
        return checkout

    # ========================================================================
    # ESCROW RELEASE
    # ========================================================================

    def _confirm(self, booking: Booking, reference: str) -> None:
        self._transition(booking, st.PAID, detail="Booking already processed")
        booking.payment_reference = reference

    def _release_first_payout(self, booking: Booking) -> None:
        self._transition(booking, st.FIRST_PAYOUT_DONE)
        creator = self.repo.lock_creator(self.db, booking.creator_id)
        creator.current_balance += booking.first_payout_amount
        creator.total_earnings += booking.first_payout_amount
        booking.first_payout_transaction_id = f"first_payout_{booking.id}_{_ms()}"

    def confirm_payment(self, booking_id: int, reference: str) -> Booking:
        booking = self.repo.get_by_id(self.db, booking_id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        self._confirm(booking, reference)
        self.db.commit()
        self.db.refresh(booking)
        return booking

    def process_first_payout(self, booking_id: int) -> Booking:
        booking = self.repo.get_by_id(self.db, booking_id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        self._release_first_payout(booking)
        self.db.commit()
        self.db.refresh(booking)
        logger.info(f"💸 First payout of {booking.first_payout_amount} kobo credited for booking {booking.id}")
        return booking

    def settle_payment(self, booking: Booking, reference: str) -> bool:
        """
        Confirm payment and release the first payout in one transaction.

        Returns False when the booking was already settled, so repeated
        gateway callbacks do not credit the creator twice.
        """
        if booking.status != st.PENDING:
            logger.info(f"ℹ️ Booking {booking.id} already {booking.status}, skipping settlement")
            return False
        self._confirm(booking, reference)
        self._release_first_payout(booking)
        self.db.commit()
        self.db.refresh(booking)
        logger.info(f"✅ Booking {booking.id} paid, first payout released")
        return True

    async def verify_booking_payment(self, tracking_token: str, reference: str) -> Booking:
        booking = self._get_by_token(tracking_token)
        if booking.status != st.PENDING:
            return booking

        try:
            data = await paystack_service.verify_transaction(reference)
        except PaystackError as e:
            raise HTTPException(status_code=502, detail="Could not verify payment") from e

        if data.get("status") != "success":
            raise HTTPException(status_code=400, detail="Payment not successful")
        if int(data.get("amount", 0)) != booking.total_amount:
            logger.error(f"❌ Amount mismatch on booking {booking.id}: {data.get('amount')} != {booking.total_amount}")
            raise HTTPException(status_code=400, detail="Payment amount does not match booking")
        meta_booking = (data.get("metadata") or {}).get("booking_id")
        if meta_booking is not None and int(meta_booking) != booking.id:
            raise HTTPException(status_code=400, detail="Payment does not belong to this booking")

        transaction = self.db.query(Transaction).filter(Transaction.reference == reference).first()
        if transaction and transaction.fulfilled_at is None:
            fees = int(data.get("fees") or 0)
            transaction.status = "success"
            transaction.fee_amount = fees
            transaction.net_amount = transaction.amount - fees
            transaction.gateway_response = {"gateway_response": data.get("gateway_response"), "channel": data.get("channel")}
            transaction.completed_at = datetime.utcnow()
            transaction.fulfilled_at = transaction.completed_at

        if self.settle_payment(booking, reference):
            await email_service.send_booking_confirmation(booking)
        return booking

    def mark_service_day(self, creator: Creator, booking_id: int) -> Booking:
        booking = self._get_for_creator(creator, booking_id)
        self._transition(booking, st.SERVICE_DAY)
        self.db.commit()
        self.db.refresh(booking)
        return booking

    async def complete_service(self, creator: Creator, booking_id: int) -> Booking:
        booking = self._get_for_creator(creator, booking_id)
        self._transition(booking, st.COMPLETED)
        locked = self.repo.lock_creator(self.db, booking.creator_id)
        locked.current_balance += booking.second_payout_amount
        locked.total_earnings += booking.second_payout_amount
        booking.second_payout_transaction_id = f"second_payout_{booking.id}_{_ms()}"
        self.db.commit()
        self.db.refresh(booking)
        logger.info(f"✅ Booking {booking.id} completed, second payout of {booking.second_payout_amount} kobo released")
        await email_service.send_service_completed(booking)
        return booking

    # ========================================================================
    # DISPUTES & CANCELLATION
    # ========================================================================

    async def request_refund(self, data: RefundRequest) -> Booking:
        booking = self._get_by_token(data.tracking_token)
        if booking.customer_email != data.email:
            raise HTTPException(status_code=404, detail="Booking not found")
        if booking.status == st.PENDING:
            raise HTTPException(status_code=409, detail="Booking has not been paid; cancel it instead")
        if booking.status in st.TERMINAL_STATUSES:
            raise HTTPException(status_code=409, detail="Cannot request refund for this booking")
        if booking.status == st.DISPUTED:
            raise HTTPException(status_code=409, detail="A refund request is already open")

        self._transition(booking, st.DISPUTED)
        booking.dispute_reason = data.reason
        booking.dispute_status = "pending"
        self.db.commit()
        self.db.refresh(booking)
        logger.info(f"⚠️ Refund requested on booking {booking.id}")
        await email_service.send_refund_requested(booking)
        return booking

    def approve_refund(self, creator: Creator, booking_id: int) -> Booking:
        booking = self._get_for_creator(creator, booking_id)
        self._transition(booking, st.REFUNDED)

        if booking.first_payout_transaction_id:
            locked = self.repo.lock_creator(self.db, booking.creator_id)
            if locked.current_balance < booking.first_payout_amount:
                self.db.rollback()
                raise HTTPException(
                    status_code=409, detail="Insufficient balance to cover the refund"
                )
            locked.current_balance -= booking.first_payout_amount
            locked.total_earnings = max(locked.total_earnings - booking.first_payout_amount, 0)

        booking.dispute_status = "approved"
        booking.refund_transaction_id = f"refund_{booking.id}_{_ms()}"
        self.db.commit()
        self.db.refresh(booking)
        logger.info(f"💸 Refund approved on booking {booking.id}")
        return booking

    def reject_refund(self, creator: Creator, booking_id: int) -> Booking:
        booking = self._get_for_creator(creator, booking_id)
        target = st.FIRST_PAYOUT_DONE if booking.first_payout_transaction_id else st.PAID
        self._transition(booking, target)
        booking.dispute_status = "rejected"
        self.db.commit()
        self.db.refresh(booking)
        return booking

    def cancel_booking(self, booking_id: int, tracking_token: str) -> Booking:
        booking = self._get_by_token(tracking_token)
        if booking.id != booking_id:
            raise HTTPException(status_code=404, detail="Booking not found")
        self._transition(booking, st.CANCELLED, detail="Only unpaid bookings can be cancelled")
        self.db.commit()
        self.db.refresh(booking)
        return booking

    # ========================================================================
    # LISTING & TRACKING
    # ========================================================================

    def list_creator_bookings(self, creator: Creator, status: Optional[str] = None) -> list[Booking]:
        if status and status not in st.ALL_STATUSES:
            raise HTTPException(status_code=400, detail="Unknown booking status")
        return self.repo.list_for_creator(self.db, creator.id, status)

    def upcoming_bookings(self, creator: Creator) -> list[Booking]:
        return self.repo.upcoming_for_creator(self.db, creator.id, date.today())

    def get_booking(self, creator: Creator, booking_id: int) -> Booking:
        return self._get_for_creator(creator, booking_id)

    def tracking_preview(self, tracking_token: str) -> dict:
        """What anyone holding the link may see; no customer details"""
        booking = self._get_by_token(tracking_token)
        return {
            "status": booking.status,
            "status_label": st.status_label(booking.status),
            "booking_date": booking.booking_date,
            "creator": {"display_name": booking.creator.display_name, "username": booking.creator.username},
            "service_name": booking.price_list_item.name if booking.price_list_item else None,
            "requires_email": True,
        }

    def verify_tracking(self, tracking_token: str, email: str) -> Booking:
        booking = self._get_by_token(tracking_token)
        if booking.customer_email != email.lower():
            raise HTTPException(status_code=403, detail="Email does not match this booking")
        return booking

    def tracking_details(self, tracking_token: str, email: str) -> dict:
        booking = self.verify_tracking(tracking_token, email)
        return {
            "booking": booking,
            "status_label": st.status_label(booking.status),
            "progress": progress_for(booking.status),
            "service": {
                "name": booking.price_list_item.name if booking.price_list_item else None,
                "duration_minutes": booking.price_list_item.duration_minutes if booking.price_list_item else None,
            },
            "creator": {"display_name": booking.creator.display_name, "username": booking.creator.username},
            "can_request_refund": booking.status in (st.PAID, st.FIRST_PAYOUT_DONE, st.SERVICE_DAY),
            "can_cancel": booking.status == st.PENDING,
        }
