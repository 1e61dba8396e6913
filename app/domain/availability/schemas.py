"""Availability schemas"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class AvailabilityCreate(BaseModel):
    date: date
    max_bookings: Optional[int] = Field(None, ge=1)


class AvailabilityBulkSet(BaseModel):
    dates: list[date] = Field(..., min_length=1, max_length=366)

    @field_validator("dates")
    @classmethod
    def dedupe(cls, v: list[date]) -> list[date]:
        return sorted(set(v))


class MaxBookingsUpdate(BaseModel):
    max_bookings: Optional[int] = Field(None, ge=1)  # None = unlimited


class AvailabilityResponse(BaseModel):
    id: int
    date: date
    is_available: bool
    max_bookings: Optional[int] = None

    class Config:
        from_attributes = True


class PublicAvailabilityResponse(AvailabilityResponse):
    booking_count: int
    is_fully_booked: bool
