"""Payment router"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_optional_user
from ...database import get_db
from ...models import User
from ...rate_limiter import strict_rate_limit
from .paystack_service import paystack_service
from .schemas import InitializePaymentRequest, InitializePaymentResponse, VerifyPaymentResponse
from .service import PaymentService

router = APIRouter(prefix="/payments", tags=["Payments"])


def get_payment_service(db: Session = Depends(get_db)) -> PaymentService:
    return PaymentService(db)


@router.post(
    "/initialize",
    response_model=InitializePaymentResponse,
    dependencies=[Depends(strict_rate_limit)],
)
async def initialize_payment(
    data: InitializePaymentRequest,
    user: Optional[User] = Depends(get_optional_user),
    service: PaymentService = Depends(get_payment_service),
):
    """Start a subscription or one-time payment to a creator"""
    return await service.initialize(data, user)


@router.get("/verify/{reference}", response_model=VerifyPaymentResponse)
async def verify_payment(reference: str, service: PaymentService = Depends(get_payment_service)):
    return await service.verify(reference)


@router.get("/public-key")
async def get_public_key():
    return {"public_key": paystack_service.public_key}
