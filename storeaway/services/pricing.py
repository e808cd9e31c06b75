"""Rental price calculation.

Prices are quoted per month and prorated over an average month length, not
calendar months. All arithmetic is Decimal; the amount handed to the payment
processor is derived from the same ``Quote`` that is shown to the user.
"""

import math
from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal

AVERAGE_DAYS_PER_MONTH = Decimal("30.44")
CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


def _whole_days(start_date: date, end_date: date) -> int:
    delta = end_date - start_date
    if isinstance(start_date, datetime) or isinstance(end_date, datetime):
        return math.ceil(abs(delta.total_seconds()) / 86400)
    return abs(delta.days)


def compute_total(monthly_rate: Decimal, start_date: date, end_date: date) -> Decimal:
    """Total rent for ``[start_date, end_date)`` at ``monthly_rate``.

    Returns ``0.00`` when ``end_date`` is not after ``start_date``; callers
    treat that as an invalid range.
    """
    if end_date <= start_date:
        return ZERO

    days = _whole_days(start_date, end_date)
    months = Decimal(days) / AVERAGE_DAYS_PER_MONTH
    return (months * Decimal(monthly_rate)).quantize(CENTS, rounding=ROUND_HALF_UP)


def to_minor_units(amount: Decimal) -> int:
    """Convert a decimal amount to integer cents."""
    return int(Decimal(amount).quantize(CENTS, rounding=ROUND_HALF_UP) * 100)


def from_minor_units(amount_minor: int) -> Decimal:
    return (Decimal(amount_minor) / 100).quantize(CENTS)


@dataclass(frozen=True)
class Quote:
    """Priced date range for one listing."""

    monthly_rate: Decimal
    start_date: date
    end_date: date
    total: Decimal
    currency: str

    @property
    def days(self) -> int:
        if self.end_date <= self.start_date:
            return 0
        return _whole_days(self.start_date, self.end_date)

    @property
    def amount_minor(self) -> int:
        """Amount to charge, in minor currency units."""
        return to_minor_units(self.total)

    @property
    def is_valid(self) -> bool:
        return self.total > 0


def build_quote(monthly_rate: Decimal, start_date: date, end_date: date, currency: str) -> Quote:
    return Quote(
        monthly_rate=Decimal(monthly_rate),
        start_date=start_date,
        end_date=end_date,
        total=compute_total(monthly_rate, start_date, end_date),
        currency=currency,
    )
