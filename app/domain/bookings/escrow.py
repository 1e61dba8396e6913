"""Escrow split for booking payments.

The customer pays the full price up front. The platform keeps its fee, the
creator receives the first payout once payment clears and the remainder when
the service is marked complete.
"""

from decimal import Decimal
from typing import NamedTuple, Optional

from ...config import FIRST_PAYOUT_PERCENT, PLATFORM_FEE_PERCENT
from ...currency import round_half_up


class EscrowAmounts(NamedTuple):
    total: int
    platform_fee: int
    first_payout: int
    second_payout: int


def calculate_escrow_amounts(
    total: int,
    platform_fee_percent: Optional[float] = None,
    first_payout_percent: Optional[float] = None,
) -> EscrowAmounts:
    """Split ``total`` kobo. The second payout takes the remainder so the parts always sum to ``total``."""
    if total < 0:
        raise ValueError("Booking total cannot be negative")

    fee_rate = Decimal(str(PLATFORM_FEE_PERCENT if platform_fee_percent is None else platform_fee_percent))
    first_rate = Decimal(str(FIRST_PAYOUT_PERCENT if first_payout_percent is None else first_payout_percent))

    platform_fee = round_half_up(total * fee_rate)
    net = total - platform_fee
    first_payout = round_half_up(net * first_rate)
    return EscrowAmounts(
        total=total,
        platform_fee=platform_fee,
        first_payout=first_payout,
        second_payout=net - first_payout,
    )
