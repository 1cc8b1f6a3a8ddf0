"""Tests for progressive monthly tax withholding."""

from decimal import Decimal

from hypothesis import HealthCheck, given, settings, strategies as st

from payroll_config.schema import DEFAULT_TAX_BRACKETS, PayrollEngineConfig, TaxBracket
from payroll_engines.tax import ProgressiveTaxCalculator, annual_tax, monthly_tax

monthly_gross = st.decimals(
    min_value=Decimal("0"),
    max_value=Decimal("500000"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)


class TestAnnualTax:
    """Bracket arithmetic at full precision."""

    def test_zero_band(self):
        assert annual_tax(Decimal("300000"), DEFAULT_TAX_BRACKETS) == 0

    def test_second_band_slice_only(self):
        assert annual_tax(Decimal("312000"), DEFAULT_TAX_BRACKETS) == Decimal("600")

    def test_spans_several_bands(self):
        # 300000 x 5% + 120000 x 10%
        assert annual_tax(Decimal("720000"), DEFAULT_TAX_BRACKETS) == Decimal("27000")

    def test_top_band(self):
        # 15000 + 30000 + 45000 + 60000 + 500000 x 30%
        assert annual_tax(Decimal("2000000"), DEFAULT_TAX_BRACKETS) == Decimal("300000")

    def test_non_positive_income_untaxed(self):
        assert annual_tax(Decimal("-5000"), DEFAULT_TAX_BRACKETS) == 0

    def test_table_without_open_band(self):
        brackets = (TaxBracket(Decimal("100"), Decimal("0.5")),)
        assert annual_tax(Decimal("1000"), brackets) == Decimal("50")


class TestMonthlyTax:
    """Annualize, tax, spread over twelve months, round half-up."""

    def test_at_threshold_is_zero(self):
        assert monthly_tax(Decimal("25000"), 2025) == 0

    def test_just_over_threshold(self):
        assert monthly_tax(Decimal("26000"), 2025) == Decimal("50")

    def test_sixty_thousand(self):
        assert ProgressiveTaxCalculator().monthly_tax(Decimal("60000"), 2025) == Decimal("2250")

    def test_result_is_whole_units(self):
        tax = monthly_tax(Decimal("26123.45"), 2025)
        assert tax == tax.to_integral_value()

    def test_year_specific_table(self):
        config = PayrollEngineConfig(
            tax_brackets_by_year={2026: (TaxBracket(None, Decimal("0.10")),)},
        )
        calculator = ProgressiveTaxCalculator(config)
        assert calculator.monthly_tax(Decimal("10000"), 2026) == Decimal("1000")
        assert calculator.monthly_tax(Decimal("10000"), 2025) == 0

    @settings(suppress_health_check=[HealthCheck.function_scoped_fixture])
    @given(a=monthly_gross, b=monthly_gross)
    def test_non_decreasing_in_gross(self, a, b):
        low, high = sorted((a, b))
        assert monthly_tax(low, 2025) <= monthly_tax(high, 2025)

    @settings(suppress_health_check=[HealthCheck.function_scoped_fixture])
    @given(gross=monthly_gross)
    def test_never_negative_and_below_gross(self, gross):
        tax = monthly_tax(gross, 2025)
        assert tax >= 0
        assert tax <= gross
