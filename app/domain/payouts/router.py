"""Payout router"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_creator
from ...database import get_db
from ...models import Creator
from ...rate_limiter import strict_rate_limit
from ..creators.schemas import CreatorResponse
from .schemas import BankAccountRequest, PayoutRequest, PayoutResponse, PayoutSummary
from .service import PayoutService

router = APIRouter(prefix="/payouts", tags=["Payouts"])


def get_payout_service(db: Session = Depends(get_db)) -> PayoutService:
    return PayoutService(db)


@router.post(
    "/request",
    response_model=PayoutResponse,
    status_code=201,
    dependencies=[Depends(strict_rate_limit)],
)
async def request_payout(
    data: PayoutRequest,
    creator: Creator = Depends(get_current_creator),
    service: PayoutService = Depends(get_payout_service),
):
    return await service.request_payout(creator, data.amount)


@router.get("/history", response_model=list[PayoutResponse])
async def payout_history(
    status: Optional[str] = Query(None),
    creator: Creator = Depends(get_current_creator),
    service: PayoutService = Depends(get_payout_service),
):
    return service.history(creator, status)


@router.get("/summary", response_model=PayoutSummary)
async def payout_summary(
    creator: Creator = Depends(get_current_creator),
    service: PayoutService = Depends(get_payout_service),
):
    return service.summary(creator)


@router.put("/bank-account", response_model=CreatorResponse)
async def setup_bank_account(
    data: BankAccountRequest,
    creator: Creator = Depends(get_current_creator),
    service: PayoutService = Depends(get_payout_service),
):
    """Register or replace the bank account payouts are sent to"""
    return await service.setup_bank_account(creator, data)
