"""Unit tests for naira/kobo conversion and formatting."""

from decimal import Decimal

import pytest

from app.currency import Money, format_kobo, format_naira, from_kobo, round_half_up, to_kobo
from app.shared.validators import slugify, validate_account_number, validate_bvn, validate_email, validate_ng_phone


class TestConversion:
    def test_to_kobo_whole_naira(self):
        assert to_kobo(1000) == 100000

    def test_to_kobo_avoids_float_drift(self):
        # 19.99 * 100 is 1998.9999999999998 as a float
        assert to_kobo(19.99) == 1999

    def test_to_kobo_rounds_half_up(self):
        assert to_kobo(Decimal("0.005")) == 1

    def test_from_kobo(self):
        assert from_kobo(150050) == 1500.5

    def test_round_half_up_not_bankers(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(Decimal("0.5")) == 1


class TestFormatting:
    @pytest.mark.parametrize(
        "amount, expected",
        [(1000, "₦1,000"), (1500.5, "₦1,500.50"), (0, "₦0"), (1234567, "₦1,234,567")],
    )
    def test_format_naira(self, amount, expected):
        assert format_naira(amount) == expected

    def test_format_negative(self):
        assert format_naira(-250) == "-₦250"

    def test_format_kobo(self):
        assert format_kobo(150050) == "₦1,500.50"


class TestMoney:
    def test_add_and_sub(self):
        total = Money(1000) + Money(500)
        assert total == Money(1500)
        assert (total - Money(1500)).kobo == 0

    def test_sub_never_negative(self):
        with pytest.raises(ValueError):
            Money(100) - Money(101)

    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            Money(-1)

    def test_currency_mismatch(self):
        with pytest.raises(ValueError, match="Currency mismatch"):
            Money(100) + Money(100, "USD")

    def test_mul_rounds(self):
        assert (Money(1001) * 0.05).kobo == 50

    def test_to_dict(self):
        assert Money.from_naira(1500).to_dict() == {"amount": 150000, "currency": "NGN", "formatted": "₦1,500"}


class TestValidators:
    def test_email_normalised(self):
        assert validate_email("  Ada@Example.COM ") == "ada@example.com"

    def test_email_rejected(self):
        with pytest.raises(ValueError):
            validate_email("not-an-email")

    def test_phone_needs_ten_digits(self):
        assert validate_ng_phone("+234 803 123 4567") == "+234 803 123 4567"
        with pytest.raises(ValueError):
            validate_ng_phone("08031")

    def test_account_number(self):
        assert validate_account_number("0123 456 789") == "0123456789"
        with pytest.raises(ValueError):
            validate_account_number("12345")

    def test_bvn(self):
        assert validate_bvn("") is None
        assert validate_bvn("12345678901") == "12345678901"
        with pytest.raises(ValueError):
            validate_bvn("1234")

    def test_slugify(self):
        assert slugify("Ada's Glam  Studio!") == "ada-s-glam-studio"
