"""
Tax Engine - Progressive monthly income-tax withholding.

Annualizes a monthly gross, applies a progressive bracket table, and
spreads the annual liability back over twelve months.  Pure functions
with no I/O; the bracket table comes from ``PayrollEngineConfig``.

Usage:
    from decimal import Decimal
    from payroll_engines.tax import ProgressiveTaxCalculator

    calculator = ProgressiveTaxCalculator()
    calculator.monthly_tax(Decimal("60000"), tax_year=2025)  # Decimal("2250")
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from payroll_config.schema import DEFAULT_TAX_BRACKETS, PayrollEngineConfig, TaxBracket
from payroll_kernel.domain.money import ZERO, round_whole
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.tax")

MONTHS_PER_YEAR = Decimal("12")


def annual_tax(annual_income: Decimal, brackets: Sequence[TaxBracket]) -> Decimal:
    """
    Progressive tax on ``annual_income`` at full precision.

    Each bracket taxes only the slice of income between the previous
    bracket's upper limit and its own.  Income at or below zero is untaxed.
    """
    if annual_income <= 0:
        return ZERO

    tax = ZERO
    lower = ZERO
    for bracket in brackets:
        upper = bracket.upper_limit
        if upper is None or annual_income <= upper:
            tax += (annual_income - lower) * bracket.rate
            return tax
        tax += (upper - lower) * bracket.rate
        lower = upper

    # Table without an open-ended top band: income above it is untaxed.
    return tax


class ProgressiveTaxCalculator:
    """
    Monthly withholding from a progressive annual table.

    Pure - no I/O, no database access.  The table may vary by tax year
    through ``PayrollEngineConfig.tax_brackets_by_year``.
    """

    def __init__(self, config: PayrollEngineConfig | None = None):
        self._config = config

    def brackets_for(self, tax_year: int) -> tuple[TaxBracket, ...]:
        if self._config is None:
            return DEFAULT_TAX_BRACKETS
        return self._config.brackets_for(tax_year)

    def monthly_tax(self, gross_monthly: Decimal, tax_year: int) -> Decimal:
        """
        Monthly withholding for ``gross_monthly``, in whole currency units.

        ``gross_monthly * 12`` is taxed progressively, divided by 12, and
        rounded half-up.  Non-decreasing in ``gross_monthly``.
        """
        annual_income = gross_monthly * MONTHS_PER_YEAR
        yearly = annual_tax(annual_income, self.brackets_for(tax_year))
        monthly = round_whole(yearly / MONTHS_PER_YEAR)
        logger.debug(
            "monthly_tax_calculated",
            extra={
                "gross_monthly": str(gross_monthly),
                "annual_income": str(annual_income),
                "annual_tax": str(yearly),
                "monthly_tax": str(monthly),
                "tax_year": tax_year,
            },
        )
        return monthly


def monthly_tax(
    gross_monthly: Decimal,
    tax_year: int,
    config: PayrollEngineConfig | None = None,
) -> Decimal:
    """Convenience wrapper around ``ProgressiveTaxCalculator.monthly_tax``."""
    return ProgressiveTaxCalculator(config).monthly_tax(gross_monthly, tax_year)
