"""
Automated date-driven status transitions
Handles first_payout_done → service_day for bookings whose date has arrived
Handles active → expired for fan and collection subscriptions past their period
"""

from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session

from ..domain.bookings import status as st
from ..models import Booking, CollectionSubscription, FanSubscription
import logging

logger = logging.getLogger(__name__)


def advance_service_days(db: Session, today: Optional[date] = None) -> dict:
    """
    Move confirmed bookings into their service day.

    Should be run as a scheduled job shortly after midnight.

    Returns:
        dict: Summary of status changes made
    """
    today = today or datetime.utcnow().date()
    summary = {"to_service_day": 0}

    try:
        bookings = db.query(Booking).filter(
            Booking.status == st.FIRST_PAYOUT_DONE,
            Booking.booking_date == today,
        ).all()

        for booking in bookings:
            st.ensure_transition(booking.status, st.SERVICE_DAY)
            booking.status = st.SERVICE_DAY
            summary["to_service_day"] += 1
            logger.info(f"✅ Booking {booking.id} transitioned: first_payout_done → service_day")

        if summary["to_service_day"]:
            db.commit()
            logger.info(f"📊 Booking automation summary: {summary}")
        else:
            logger.debug("ℹ️ No booking status updates needed")
        return summary

    except Exception as e:
        logger.error(f"❌ Error advancing booking statuses: {str(e)}")
        db.rollback()
        raise


def expire_subscriptions(db: Session, now: Optional[datetime] = None) -> dict:
    """
    Expire fan subscriptions whose period ended and recurring collection
    access past its expiry. Lifetime collection access never expires.
    """
    now = now or datetime.utcnow()
    summary = {"fan_subscriptions": 0, "collection_subscriptions": 0}

    try:
        summary["fan_subscriptions"] = (
            db.query(FanSubscription)
            .filter(FanSubscription.status == "active", FanSubscription.current_period_end < now)
            .update({FanSubscription.status: "expired"}, synchronize_session=False)
        )
        summary["collection_subscriptions"] = (
            db.query(CollectionSubscription)
            .filter(
                CollectionSubscription.status == "active",
                CollectionSubscription.expires_at.isnot(None),
                CollectionSubscription.expires_at < now,
            )
            .update({CollectionSubscription.status: "expired"}, synchronize_session=False)
        )
        db.commit()
        if any(summary.values()):
            logger.info(f"📊 Subscription expiry summary: {summary}")
        return summary

    except Exception as e:
        logger.error(f"❌ Error expiring subscriptions: {str(e)}")
        db.rollback()
        raise
