"""
Naira helpers. Amounts are stored and moved as integer kobo (1 NGN = 100 kobo);
naira only appears at the API edge (request bodies, display strings).
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

CURRENCY = "NGN"
CURRENCY_SYMBOL = "₦"
KOBO_PER_NAIRA = 100

Number = Union[int, float, Decimal]


def round_half_up(value: Number) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def to_kobo(naira: Number) -> int:
    return round_half_up(Decimal(str(naira)) * KOBO_PER_NAIRA)


def from_kobo(kobo: int) -> float:
    return kobo / KOBO_PER_NAIRA


def format_naira(amount: Number) -> str:
    """
    Format a naira amount for display.

    Whole amounts have no decimals (``₦1,000``); fractional amounts always show
    two (``₦1,500.50``).
    """
    value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    value = abs(value)
    if value == value.to_integral_value():
        return f"{sign}{CURRENCY_SYMBOL}{int(value):,}"
    return f"{sign}{CURRENCY_SYMBOL}{value:,.2f}"


def format_kobo(kobo: int) -> str:
    return format_naira(Decimal(kobo) / KOBO_PER_NAIRA)


class Money:
    """Non-negative amount of kobo in a single currency."""

    __slots__ = ("kobo", "currency")

    def __init__(self, kobo: int, currency: str = CURRENCY):
        if kobo < 0:
            raise ValueError("Money cannot be negative")
        self.kobo = int(kobo)
        self.currency = currency

    @classmethod
    def from_naira(cls, naira: Number, currency: str = CURRENCY) -> "Money":
        return cls(to_kobo(naira), currency)

    def _check(self, other: "Money"):
        if self.currency != other.currency:
            raise ValueError(f"Currency mismatch: {self.currency} vs {other.currency}")

    def __add__(self, other: "Money") -> "Money":
        self._check(other)
        return Money(self.kobo + other.kobo, self.currency)

    def __sub__(self, other: "Money") -> "Money":
        self._check(other)
        if other.kobo > self.kobo:
            raise ValueError("Result would be negative")
        return Money(self.kobo - other.kobo, self.currency)

    def __mul__(self, factor: Number) -> "Money":
        return Money(round_half_up(Decimal(self.kobo) * Decimal(str(factor))), self.currency)

    def __eq__(self, other) -> bool:
        return isinstance(other, Money) and (self.kobo, self.currency) == (other.kobo, other.currency)

    def __hash__(self):
        return hash((self.kobo, self.currency))

    def __repr__(self):
        return f"Money({self.kobo}, {self.currency!r})"

    @property
    def naira(self) -> float:
        return from_kobo(self.kobo)

    def format(self) -> str:
        return format_kobo(self.kobo)

    def to_dict(self) -> dict:
        return {"amount": self.kobo, "currency": self.currency, "formatted": self.format()}
