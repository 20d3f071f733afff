"""
Holding-period arithmetic.

Year length is always passed in. Production uses a 365-day year; tests and
demo environments can pass ``ACCELERATED_TEST_YEAR`` so one hour of wall
time counts as one investment year.
"""

from datetime import datetime, timedelta
from decimal import Decimal

from propvest.calculations.errors import NegativeHoldingPeriodError

STANDARD_YEAR = timedelta(days=365)
ACCELERATED_TEST_YEAR = timedelta(hours=1)

_MICROSECOND = timedelta(microseconds=1)


def _microseconds(delta: timedelta) -> int:
    return delta // _MICROSECOND


def years_between(start: datetime, end: datetime, year_length: timedelta) -> Decimal:
    """
    Exact number of investment years from ``start`` to ``end``.

    Raises:
        NegativeHoldingPeriodError: if ``end`` is before ``start``
    """
    if year_length <= timedelta(0):
        raise ValueError("year_length must be positive")
    if end < start:
        raise NegativeHoldingPeriodError(start, end)
    return Decimal(_microseconds(end - start)) / Decimal(_microseconds(year_length))


def current_investment_year(
    start: datetime, at: datetime, year_length: timedelta
) -> int:
    """1-based year of the investment at instant ``at`` (day one is year 1)."""
    if year_length <= timedelta(0):
        raise ValueError("year_length must be positive")
    if at < start:
        raise NegativeHoldingPeriodError(start, at)
    return (at - start) // year_length + 1


def add_years(start: datetime, years: Decimal, year_length: timedelta) -> datetime:
    """Shift ``start`` by a (possibly fractional) number of investment years."""
    micros = Decimal(_microseconds(year_length)) * Decimal(years)
    return start + timedelta(microseconds=int(micros))
