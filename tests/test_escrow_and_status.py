"""Escrow split arithmetic and the booking state machine."""

import pytest

from app.domain.bookings import status as st
from app.domain.bookings.escrow import calculate_escrow_amounts


class TestEscrow:
    def test_standard_split(self):
        split = calculate_escrow_amounts(2000000)
        assert split.platform_fee == 100000
        assert split.first_payout == 1140000
        assert split.second_payout == 760000

    @pytest.mark.parametrize("total", [0, 1, 10, 999, 1001, 123457, 100000000])
    def test_parts_sum_to_total(self, total):
        split = calculate_escrow_amounts(total)
        assert split.platform_fee + split.first_payout + split.second_payout == total
        assert min(split) >= 0

    def test_half_kobo_rounds_up(self):
        split = calculate_escrow_amounts(10)
        assert split.platform_fee == 1  # 0.5 rounds up
        assert split.first_payout == 5
        assert split.second_payout == 4

    def test_custom_rates(self):
        split = calculate_escrow_amounts(10000, platform_fee_percent=0.1, first_payout_percent=0.5)
        assert split == (10000, 1000, 4500, 4500)

    def test_negative_total_rejected(self):
        with pytest.raises(ValueError):
            calculate_escrow_amounts(-1)


class TestStatusMachine:
    @pytest.mark.parametrize(
        "current, target",
        [
            (st.PENDING, st.PAID),
            (st.PENDING, st.CANCELLED),
            (st.PAID, st.FIRST_PAYOUT_DONE),
            (st.FIRST_PAYOUT_DONE, st.SERVICE_DAY),
            (st.FIRST_PAYOUT_DONE, st.COMPLETED),
            (st.SERVICE_DAY, st.COMPLETED),
            (st.SERVICE_DAY, st.DISPUTED),
            (st.DISPUTED, st.REFUNDED),
        ],
    )
    def test_allowed(self, current, target):
        assert st.can_transition(current, target)

    @pytest.mark.parametrize(
        "current, target",
        [
            (st.PENDING, st.COMPLETED),
            (st.PAID, st.CANCELLED),
            (st.COMPLETED, st.DISPUTED),
            (st.REFUNDED, st.PAID),
            (st.CANCELLED, st.PAID),
            (st.PENDING, st.DISPUTED),
        ],
    )
    def test_rejected(self, current, target):
        assert not st.can_transition(current, target)
        with pytest.raises(st.InvalidTransitionError):
            st.ensure_transition(current, target)

    def test_terminal_statuses(self):
        assert st.TERMINAL_STATUSES == {st.COMPLETED, st.REFUNDED, st.CANCELLED}

    def test_every_status_has_a_label(self):
        for status in st.ALL_STATUSES:
            assert st.status_label(status)["label"]

    def test_unknown_status_label(self):
        assert st.status_label("mystery") == {"label": "mystery", "color": "gray"}
