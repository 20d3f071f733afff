"""
Management Fees

Two deduction policies:

- upfront: the fee comes off the gross amount when the investment is opened,
  so the stored principal is already net. Nothing is charged at withdrawal.
- recurring: principal is untouched; the fee is a percentage of the gross
  returns, taken from each component when returns are valued.
"""

from dataclasses import dataclass
from decimal import Decimal

from propvest.calculations.errors import InvalidPrincipalError
from propvest.calculations.money import ZERO, percent_of, quantize_money
from propvest.calculations.records import FeeDeductionType, ManagementFee


@dataclass(frozen=True)
class FeeResult:
    """Returns after management fee."""

    net_rental_yield: Decimal
    net_appreciation: Decimal
    fee_deducted: Decimal


def apply_fee(
    gross_rental_yield: Decimal,
    gross_appreciation: Decimal,
    fee_percentage: Decimal,
    deduction_type: FeeDeductionType,
) -> FeeResult:
    """Deduct the management fee from gross returns (recurring policy only)."""
    if deduction_type == FeeDeductionType.upfront or not fee_percentage:
        return FeeResult(
            net_rental_yield=gross_rental_yield,
            net_appreciation=gross_appreciation,
            fee_deducted=ZERO,
        )

    rental_fee = percent_of(gross_rental_yield, fee_percentage)
    appreciation_fee = percent_of(gross_appreciation, fee_percentage)

    return FeeResult(
        net_rental_yield=gross_rental_yield - rental_fee,
        net_appreciation=gross_appreciation - appreciation_fee,
        fee_deducted=rental_fee + appreciation_fee,
    )


def split_upfront_fee(
    amount: Decimal,
    fee_percentage: Decimal,
    deduction_type: FeeDeductionType,
) -> ManagementFee:
    """
    Work out the fee snapshot for a new investment.

    For upfront deduction the fee is rounded to cents and removed from the
    amount; the remainder becomes the principal.
    """
    if deduction_type == FeeDeductionType.upfront:
        fee_amount = quantize_money(percent_of(amount, fee_percentage))
    else:
        fee_amount = ZERO

    net_investment = amount - fee_amount
    if net_investment <= 0:
        raise InvalidPrincipalError(net_investment)

    return ManagementFee(
        fee_percentage=fee_percentage,
        fee_amount=fee_amount,
        net_investment=net_investment,
        deduction_type=deduction_type,
    )
