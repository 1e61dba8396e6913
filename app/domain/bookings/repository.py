"""Booking repository - Database operations for bookings"""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Booking, Creator
from .status import UPCOMING_STATUSES


class BookingRepository:
    @staticmethod
    def get_by_id(db: Session, booking_id: int, creator_id: Optional[int] = None) -> Optional[Booking]:
        query = db.query(Booking).options(joinedload(Booking.price_list_item)).filter(Booking.id == booking_id)
        if creator_id is not None:
            query = query.filter(Booking.creator_id == creator_id)
        return query.first()

    @staticmethod
    def get_by_token(db: Session, tracking_token: str) -> Optional[Booking]:
        return (
            db.query(Booking)
            .options(joinedload(Booking.price_list_item), joinedload(Booking.creator))
            .filter(Booking.tracking_token == tracking_token)
            .first()
        )

    @staticmethod
    def get_by_reference(db: Session, reference: str) -> Optional[Booking]:
        return db.query(Booking).filter(Booking.payment_reference == reference).first()

    @staticmethod
    def list_for_creator(db: Session, creator_id: int, status: Optional[str] = None) -> list[Booking]:
        query = db.query(Booking).filter(Booking.creator_id == creator_id)
        if status:
            query = query.filter(Booking.status == status)
        return query.order_by(Booking.booking_date.desc(), Booking.id.desc()).all()

    @staticmethod
    def upcoming_for_creator(db: Session, creator_id: int, today: date) -> list[Booking]:
        return (
            db.query(Booking)
            .filter(
                Booking.creator_id == creator_id,
                Booking.booking_date >= today,
                Booking.status.in_(UPCOMING_STATUSES),
            )
            .order_by(Booking.booking_date.asc(), Booking.id.asc())
            .all()
        )

    @staticmethod
    def lock_creator(db: Session, creator_id: int) -> Creator:
        """Creator row for a balance update; row-locked on databases that support it"""
        return db.query(Creator).filter(Creator.id == creator_id).with_for_update().one()
