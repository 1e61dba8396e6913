"""Availability router"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_creator
from ...database import get_db
from ...models import Creator
from .schemas import (
    AvailabilityBulkSet,
    AvailabilityCreate,
    AvailabilityResponse,
    MaxBookingsUpdate,
    PublicAvailabilityResponse,
)
from .service import AvailabilityService

router = APIRouter(prefix="/availability", tags=["Availability"])


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    return AvailabilityService(db)


@router.get("", response_model=list[AvailabilityResponse])
async def list_availability(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    creator: Creator = Depends(get_current_creator),
    service: AvailabilityService = Depends(get_availability_service),
):
    return service.list_dates(creator, start_date, end_date)


@router.post("", response_model=AvailabilityResponse, status_code=201)
async def add_availability(
    data: AvailabilityCreate,
    creator: Creator = Depends(get_current_creator),
    service: AvailabilityService = Depends(get_availability_service),
):
    return service.add_date(creator, data.date, data.max_bookings)


@router.put("", response_model=list[AvailabilityResponse])
async def set_availability(
    data: AvailabilityBulkSet,
    creator: Creator = Depends(get_current_creator),
    service: AvailabilityService = Depends(get_availability_service),
):
    return service.set_dates(creator, data.dates)


@router.patch("/{day}", response_model=AvailabilityResponse)
async def update_max_bookings(
    day: date,
    data: MaxBookingsUpdate,
    creator: Creator = Depends(get_current_creator),
    service: AvailabilityService = Depends(get_availability_service),
):
    return service.update_max_bookings(creator, day, data.max_bookings)


@router.delete("/{day}")
async def remove_availability(
    day: date,
    creator: Creator = Depends(get_current_creator),
    service: AvailabilityService = Depends(get_availability_service),
):
    return service.remove_date(creator, day)


@router.get("/public/{creator_id}", response_model=list[PublicAvailabilityResponse])
async def public_availability(
    creator_id: int,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Bookable dates with how many slots are already taken"""
    return service.public_availability(creator_id, start_date, end_date)
