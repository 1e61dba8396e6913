"""Booking domain schemas"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_email, validate_ng_phone


class BookingCreate(BaseModel):
    """Submitted by a customer from the creator's public page; no account needed"""

    creator_id: int
    price_list_item_id: int
    customer_email: str
    customer_name: str = Field(..., min_length=2, max_length=255)
    customer_phone: str = Field(..., min_length=10)
    customer_address: str = Field(..., min_length=10)
    booking_date: date
    notes: Optional[str] = Field(None, max_length=2000)

    @field_validator("customer_email")
    @classmethod
    def check_email(cls, v: str) -> str:
        return validate_email(v)

    @field_validator("customer_phone")
    @classmethod
    def check_phone(cls, v: str) -> str:
        return validate_ng_phone(v)


class VerifyBookingPayment(BaseModel):
    reference: str = Field(..., min_length=1)


class RefundRequest(BaseModel):
    tracking_token: str
    email: str
    reason: str = Field(..., min_length=10, max_length=2000)

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        return validate_email(v)


class CancelRequest(BaseModel):
    tracking_token: str


class TrackingVerify(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        return validate_email(v)


class BookingResponse(BaseModel):
    id: int
    creator_id: int
    price_list_item_id: int
    customer_email: str
    customer_name: str
    customer_phone: str
    customer_address: str
    booking_date: date
    notes: Optional[str] = None
    total_amount: int
    platform_fee: int
    first_payout_amount: int
    second_payout_amount: int
    status: str
    payment_reference: Optional[str] = None
    dispute_reason: Optional[str] = None
    dispute_status: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BookingCreatedResponse(BookingResponse):
    tracking_token: str


class PaymentInitResponse(BaseModel):
    authorization_url: str
    access_code: Optional[str] = None
    reference: str
