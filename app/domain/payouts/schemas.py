"""Payout schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_account_number


class PayoutRequest(BaseModel):
    amount: float = Field(..., ge=1000)  # naira


class BankAccountRequest(BaseModel):
    bank_code: str = Field(..., min_length=3)
    account_number: str
    account_name: str = Field(..., min_length=2)

    @field_validator("account_number")
    @classmethod
    def check_account_number(cls, v: str) -> str:
        return validate_account_number(v)


class PayoutResponse(BaseModel):
    id: int
    amount: int
    status: str
    paystack_transfer_code: Optional[str] = None
    reason: Optional[str] = None
    failure_reason: Optional[str] = None
    processed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PayoutSummary(BaseModel):
    current_balance: int
    total_earnings: int
    total_paid_out: int
    pending: int
    currency: str = "NGN"
