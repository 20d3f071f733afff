"""
Early Withdrawal Penalties

Decides whether a withdrawal falls inside the lock-in period and, if so,
which percentage applies: a single flat rate, or the tier of a graduated
schedule matching the current 1-based investment year.
"""

import enum
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional, Sequence

from propvest.calculations.errors import UnmatchedPenaltyTierError
from propvest.calculations.money import ZERO, percent_of
from propvest.calculations.records import GraduatedPenalty
from propvest.calculations.timing import STANDARD_YEAR, current_investment_year


class UnmatchedTierPolicy(str, enum.Enum):
    """What to do when a graduated schedule has no tier for the current year."""
    zero = "zero"  # No penalty defined for that year
    strict = "strict"  # Raise UnmatchedPenaltyTierError


@dataclass(frozen=True)
class PenaltyQuote:
    """Penalty decision for a withdrawal instant."""

    applies: bool
    percentage: Decimal
    year_applied: Optional[int] = None

    def amount_for(self, principal: Decimal) -> Decimal:
        """Penalty amount charged against principal."""
        if not self.applies:
            return ZERO
        return percent_of(principal, self.percentage)


NO_PENALTY = PenaltyQuote(applies=False, percentage=ZERO)


def find_penalty_tier(
    graduated_penalties: Sequence[GraduatedPenalty], year: int
) -> Optional[GraduatedPenalty]:
    for tier in graduated_penalties:
        if tier.year == year:
            return tier
    return None


def quote_penalty(
    created_at: datetime,
    withdrawal_date: datetime,
    lock_in_end_date: datetime,
    flat_penalty_rate: Decimal,
    graduated_penalties: Sequence[GraduatedPenalty] = (),
    year_length: timedelta = STANDARD_YEAR,
    unmatched_tier_policy: UnmatchedTierPolicy = UnmatchedTierPolicy.zero,
) -> PenaltyQuote:
    """
    Determine the early-withdrawal penalty.

    A non-empty graduated schedule fully replaces the flat rate; the flat
    rate is never used as a fallback for a missing tier.

    Raises:
        NegativeHoldingPeriodError: if ``withdrawal_date`` precedes ``created_at``
        UnmatchedPenaltyTierError: missing tier under the strict policy
    """
    if withdrawal_date >= lock_in_end_date:
        return NO_PENALTY

    year = current_investment_year(created_at, withdrawal_date, year_length)

    if not graduated_penalties:
        return PenaltyQuote(applies=True, percentage=flat_penalty_rate, year_applied=year)

    tier = find_penalty_tier(graduated_penalties, year)
    if tier is None:
        if unmatched_tier_policy == UnmatchedTierPolicy.strict:
            raise UnmatchedPenaltyTierError(year, graduated_penalties)
        return PenaltyQuote(applies=True, percentage=ZERO, year_applied=year)

    return PenaltyQuote(
        applies=True, percentage=tier.penalty_percentage, year_applied=year
    )
