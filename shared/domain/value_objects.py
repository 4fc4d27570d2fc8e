"""
Common Value Objects

Value objects used across multiple domains:
- Money: Decimal amount quantized to cents
- DateRange: Stay period (check-in to check-out)
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


def to_decimal(value) -> Decimal:
    """Convert ints, strings and Decimals to Decimal without float drift."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def quantize(value) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class Money:
    """
    Money value object

    Represents a non-negative monetary amount with currency.
    Amounts are always stored quantized to cents.
    """
    amount: Decimal
    currency: str = "USD"

    def __post_init__(self):
        object.__setattr__(self, "amount", quantize(self.amount))
        if self.amount < 0:
            raise ValueError("Amount cannot be negative")
        if not self.currency:
            raise ValueError("Currency is required")

    @classmethod
    def zero(cls, currency: str = "USD") -> "Money":
        return cls(Decimal("0"), currency)

    def _check_currency(self, other: "Money") -> None:
        if not isinstance(other, Money):
            raise TypeError("Can only combine Money with Money")
        if self.currency != other.currency:
            raise ValueError(f"Cannot combine different currencies: {self.currency} and {other.currency}")

    def __add__(self, other: "Money") -> "Money":
        self._check_currency(other)
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other: "Money") -> "Money":
        self._check_currency(other)
        return Money(self.amount - other.amount, self.currency)

    def __mul__(self, factor) -> "Money":
        if not isinstance(factor, (int, Decimal)):
            raise TypeError("Can only multiply Money by int or Decimal")
        return Money(self.amount * factor, self.currency)

    def percent(self, rate) -> "Money":
        """Return `rate` percent of this amount, rounded half-up to cents."""
        return Money(self.amount * to_decimal(rate) / HUNDRED, self.currency)

    def cents(self) -> int:
        """Amount in minor units, as payment gateways expect."""
        return int(self.amount * HUNDRED)

    def __str__(self):
        return f"{self.amount:,.2f} {self.currency}"


@dataclass(frozen=True)
class DateRange:
    """
    Stay period from start (inclusive) to end (exclusive).

    Nights are counted as started days, so a stay shorter than a full day
    still costs one night.
    """
    start: datetime
    end: datetime

    def __post_init__(self):
        if self.end <= self.start:
            raise ValueError("End must be after start")

    @property
    def nights(self) -> int:
        seconds = (self.end - self.start).total_seconds()
        return max(1, math.ceil(seconds / 86400))
