"""
Engine Errors

Every failure the calculation engine can raise. All of them are local
validation failures: deterministic, never retryable, and never replaced by a
zero figure. The API layer maps them to HTTP responses.
"""


class InvestmentEngineError(ValueError):
    """Base class for calculation engine failures."""


class MissingRateConfigurationError(InvestmentEngineError):
    """No value for a rate field at any resolution tier."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(
            f"No {field} configured on the property, the global settings "
            f"or the compiled defaults"
        )


class NegativeHoldingPeriodError(InvestmentEngineError):
    """Valuation instant precedes the investment date."""

    def __init__(self, created_at, now):
        self.created_at = created_at
        self.now = now
        super().__init__(
            f"Valuation time {now.isoformat()} is before the investment "
            f"date {created_at.isoformat()}"
        )


class InvalidPrincipalError(InvestmentEngineError):
    """Principal is zero or negative."""

    def __init__(self, principal):
        self.principal = principal
        super().__init__(f"Principal must be positive, got {principal}")


class UnmatchedPenaltyTierError(InvestmentEngineError):
    """Graduated schedule has no tier for the current investment year."""

    def __init__(self, year: int, tiers):
        self.year = year
        self.tiers = tuple(tiers)
        super().__init__(
            f"No graduated penalty tier defined for investment year {year}"
        )


class InvestmentLimitError(InvestmentEngineError):
    """Amount outside the platform's min/max investment bounds."""

    def __init__(self, amount, minimum, maximum):
        self.amount = amount
        self.minimum = minimum
        self.maximum = maximum
        super().__init__(
            f"Investment amount {amount} is outside the allowed range "
            f"{minimum} - {maximum}"
        )


class InvalidStatusTransitionError(InvestmentEngineError):
    """Investment status change not allowed by the lifecycle."""

    def __init__(self, current, requested):
        self.current = current
        self.requested = requested
        super().__init__(
            f"Cannot move investment from {current.value} to {requested.value}"
        )
