"""Availability repository - Database operations for creator availability"""

from datetime import date
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Booking, CreatorAvailability

# Bookings in these states no longer hold a slot
RELEASED_BOOKING_STATUSES = ("cancelled", "refunded")


class AvailabilityRepository:
    @staticmethod
    def get_date(db: Session, creator_id: int, day: date) -> Optional[CreatorAvailability]:
        return (
            db.query(CreatorAvailability)
            .filter(CreatorAvailability.creator_id == creator_id, CreatorAvailability.date == day)
            .first()
        )

    @staticmethod
    def list_dates(
        db: Session,
        creator_id: int,
        start: Optional[date] = None,
        end: Optional[date] = None,
        available_only: bool = False,
    ) -> list[CreatorAvailability]:
        query = db.query(CreatorAvailability).filter(CreatorAvailability.creator_id == creator_id)
        if available_only:
            query = query.filter(CreatorAvailability.is_available.is_(True))
        if start:
            query = query.filter(CreatorAvailability.date >= start)
        if end:
            query = query.filter(CreatorAvailability.date <= end)
        return query.order_by(CreatorAvailability.date.asc()).all()

    @staticmethod
    def upsert(db: Session, creator_id: int, day: date, max_bookings: Optional[int] = None) -> CreatorAvailability:
        """Mark a date available; does not commit"""
        row = AvailabilityRepository.get_date(db, creator_id, day)
        if row:
            row.is_available = True
            if max_bookings is not None:
                row.max_bookings = max_bookings
        else:
            row = CreatorAvailability(
                creator_id=creator_id, date=day, is_available=True, max_bookings=max_bookings
            )
            db.add(row)
        return row

    @staticmethod
    def count_active_bookings(db: Session, creator_id: int, day: date) -> int:
        return (
            db.query(func.count(Booking.id))
            .filter(
                Booking.creator_id == creator_id,
                Booking.booking_date == day,
                Booking.status.notin_(RELEASED_BOOKING_STATUSES),
            )
            .scalar()
        )

    @staticmethod
    def booking_counts(db: Session, creator_id: int, days: list[date]) -> dict[date, int]:
        if not days:
            return {}
        rows = (
            db.query(Booking.booking_date, func.count(Booking.id))
            .filter(
                Booking.creator_id == creator_id,
                Booking.booking_date.in_(days),
                Booking.status.notin_(RELEASED_BOOKING_STATUSES),
            )
            .group_by(Booking.booking_date)
            .all()
        )
        return dict(rows)
