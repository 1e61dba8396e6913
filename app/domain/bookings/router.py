"""Booking router - public booking/tracking endpoints and creator booking management"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_creator
from ...database import get_db
from ...models import Creator
from ...rate_limiter import strict_rate_limit
from .schemas import (
    BookingCreate,
    BookingCreatedResponse,
    BookingResponse,
    CancelRequest,
    PaymentInitResponse,
    RefundRequest,
    TrackingVerify,
    VerifyBookingPayment,
)
from .service import BookingService
from .status import STATUS_LABELS

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    return BookingService(db)


# ============================================================================
# PUBLIC (CUSTOMER) ENDPOINTS
# ============================================================================


@router.post("", response_model=BookingCreatedResponse, status_code=201)
async def create_booking(data: BookingCreate, service: BookingService = Depends(get_booking_service)):
    """Customer books a service; the returned tracking token is their only credential"""
    return service.create_booking(data)


@router.get("/status-labels")
async def get_status_labels():
    return STATUS_LABELS


@router.post(
    "/track/{tracking_token}/pay",
    response_model=PaymentInitResponse,
    dependencies=[Depends(strict_rate_limit)],
)
async def initialize_booking_payment(tracking_token: str, service: BookingService = Depends(get_booking_service)):
    return await service.initialize_payment(tracking_token)


@router.post("/track/{tracking_token}/verify-payment", response_model=BookingResponse)
async def verify_booking_payment(
    tracking_token: str,
    data: VerifyBookingPayment,
    service: BookingService = Depends(get_booking_service),
):
    return await service.verify_booking_payment(tracking_token, data.reference)


@router.get("/track/{tracking_token}")
async def tracking_preview(tracking_token: str, service: BookingService = Depends(get_booking_service)):
    return service.tracking_preview(tracking_token)


@router.post("/track/{tracking_token}")
async def tracking_details(
    tracking_token: str,
    data: TrackingVerify,
    service: BookingService = Depends(get_booking_service),
):
    details = service.tracking_details(tracking_token, data.email)
    details["booking"] = BookingResponse.model_validate(details["booking"])
    return details


@router.post("/refund-request", response_model=BookingResponse)
async def request_refund(data: RefundRequest, service: BookingService = Depends(get_booking_service)):
    return await service.request_refund(data)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: int,
    data: CancelRequest,
    service: BookingService = Depends(get_booking_service),
):
    return service.cancel_booking(booking_id, data.tracking_token)


# ============================================================================
# CREATOR ENDPOINTS
# ============================================================================


@router.get("", response_model=list[BookingResponse])
async def list_bookings(
    status: Optional[str] = Query(None),
    creator: Creator = Depends(get_current_creator),
    service: BookingService = Depends(get_booking_service),
):
    return service.list_creator_bookings(creator, status)


@router.get("/upcoming", response_model=list[BookingResponse])
async def upcoming_bookings(
    creator: Creator = Depends(get_current_creator),
    service: BookingService = Depends(get_booking_service),
):
    return service.upcoming_bookings(creator)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: int,
    creator: Creator = Depends(get_current_creator),
    service: BookingService = Depends(get_booking_service),
):
    return service.get_booking(creator, booking_id)


@router.post("/{booking_id}/service-day", response_model=BookingResponse)
async def mark_service_day(
    booking_id: int,
    creator: Creator = Depends(get_current_creator),
    service: BookingService = Depends(get_booking_service),
):
    return service.mark_service_day(creator, booking_id)


@router.post("/{booking_id}/complete", response_model=BookingResponse)
async def complete_booking(
    booking_id: int,
    creator: Creator = Depends(get_current_creator),
    service: BookingService = Depends(get_booking_service),
):
    """Release the second payout to the creator"""
    return await service.complete_service(creator, booking_id)


@router.post("/{booking_id}/refund/approve", response_model=BookingResponse)
async def approve_refund(
    booking_id: int,
    creator: Creator = Depends(get_current_creator),
    service: BookingService = Depends(get_booking_service),
):
    return service.approve_refund(creator, booking_id)


@router.post("/{booking_id}/refund/reject", response_model=BookingResponse)
async def reject_refund(
    booking_id: int,
    creator: Creator = Depends(get_current_creator),
    service: BookingService = Depends(get_booking_service),
):
    return service.reject_refund(creator, booking_id)
