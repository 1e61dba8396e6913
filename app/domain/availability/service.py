"""Availability service - dates a creator accepts bookings on"""

import logging
from datetime import date
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Creator, CreatorAvailability
from .repository import AvailabilityRepository

logger = logging.getLogger(__name__)


class AvailabilityService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = AvailabilityRepository()

    def list_dates(
        self, creator: Creator, start: Optional[date] = None, end: Optional[date] = None
    ) -> list[CreatorAvailability]:
        return self.repo.list_dates(self.db, creator.id, start, end)

    def add_date(self, creator: Creator, day: date, max_bookings: Optional[int] = None) -> CreatorAvailability:
        if day < date.today():
            raise HTTPException(status_code=400, detail="Cannot set availability in the past")
        row = self.repo.upsert(self.db, creator.id, day, max_bookings)
        self.db.commit()
        self.db.refresh(row)
        return row

    def set_dates(self, creator: Creator, days: list[date]) -> list[CreatorAvailability]:
        """Mark every given date available in one transaction"""
        past = [d for d in days if d < date.today()]
        if past:
            raise HTTPException(status_code=400, detail="Cannot set availability in the past")
        rows = [self.repo.upsert(self.db, creator.id, d) for d in days]
        self.db.commit()
        for row in rows:
            self.db.refresh(row)
        logger.info(f"📅 Creator {creator.id} set {len(rows)} available dates")
        return rows

    def remove_date(self, creator: Creator, day: date) -> dict:
        row = self.repo.get_date(self.db, creator.id, day)
        if not row:
            raise HTTPException(status_code=404, detail="Date not found")
        self.db.delete(row)
        self.db.commit()
        return {"message": "Date removed"}

    def update_max_bookings(self, creator: Creator, day: date, max_bookings: Optional[int]) -> CreatorAvailability:
        row = self.repo.get_date(self.db, creator.id, day)
        if not row:
            raise HTTPException(status_code=404, detail="Date not found")
        row.max_bookings = max_bookings
        self.db.commit()
        self.db.refresh(row)
        return row

    def public_availability(
        self, creator_id: int, start: Optional[date] = None, end: Optional[date] = None
    ) -> list[dict]:
        rows = self.repo.list_dates(self.db, creator_id, start or date.today(), end, available_only=True)
        counts = self.repo.booking_counts(self.db, creator_id, [r.date for r in rows])
        result = []
        for row in rows:
            booked = counts.get(row.date, 0)
            result.append(
                {
                    "id": row.id,
                    "date": row.date,
                    "is_available": row.is_available,
                    "max_bookings": row.max_bookings,
                    "booking_count": booked,
                    "is_fully_booked": row.max_bookings is not None and booked >= row.max_bookings,
                }
            )
        return result
