"""Payment schemas"""

from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_email, validate_ng_phone


class InitializePaymentRequest(BaseModel):
    email: str
    phone: str = Field(..., min_length=10)
    amount: float = Field(..., ge=1000)  # naira
    creator_id: int
    plan_id: Optional[int] = None
    type: Literal["subscription", "one_time"] = "subscription"

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v: str) -> str:
        return validate_ng_phone(v)


class InitializePaymentResponse(BaseModel):
    authorization_url: str
    access_code: Optional[str] = None
    reference: str


class VerifyPaymentResponse(BaseModel):
    success: bool
    status: str
    reference: str
    amount: int
    data: dict = {}
