"""
Money helpers.

All money is ``decimal.Decimal``. Intermediate figures keep full precision;
values are quantized to cents only when they land in a result record.
"""

from decimal import Decimal, ROUND_HALF_UP

MONEY_QUANTUM = Decimal("0.01")
YEARS_QUANTUM = Decimal("0.0001")
HUNDRED = Decimal("100")
ZERO = Decimal("0")


def quantize_money(value: Decimal) -> Decimal:
    return value.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def quantize_years(value: Decimal) -> Decimal:
    return value.quantize(YEARS_QUANTUM, rounding=ROUND_HALF_UP)


def percent_of(amount: Decimal, percentage: Decimal) -> Decimal:
    """Return ``percentage`` percent of ``amount`` (e.g. 8 -> 8%)."""
    return amount * percentage / HUNDRED
