"""
Tests for PayrollCalculator (single-employee payroll).

Worked figures use the default configuration: 26 standard working days,
PF 12%, ESI 0.75% up to 21,000 gross, tax free up to 300,000 a year.
"""

import random
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from hypothesis import HealthCheck, given, settings, strategies as st

from payroll_config.schema import AttendancePolicy, PayrollEngineConfig
from payroll_kernel.exceptions import (
    AttendanceRequiredError,
    CompanyNotFoundError,
    EmployeeInactiveError,
    EmployeeNotFoundError,
    InvalidPayrollPeriodError,
)
from payroll_modules.payroll.models import (
    ESI_LINE_NAME,
    PF_LINE_NAME,
    TAX_LINE_NAME,
    AttendanceSource,
    CalculationType,
    ComponentType,
    PercentageOf,
)
from payroll_modules.payroll.service import PayrollCalculator, month_bounds, validate_period
from tests.conftest import (
    InMemoryPayrollData,
    attendance_days,
    make_company,
    make_component,
    make_employee,
)

MARCH_1 = date(2025, 3, 1)


def _setup(data, *, basic=Decimal("26000"), present=26, company=None):
    company = company or data.add_company(make_company())
    employee = data.add_employee(make_employee(company, basic=basic))
    data.add_attendance(attendance_days(employee, MARCH_1, present))
    return company, employee


class TestWorkedExamples:
    """End-to-end figures for full and partial attendance."""

    def test_basic_26000_full_attendance(self, payroll_data):
        _, employee = _setup(payroll_data)
        result = PayrollCalculator(payroll_data).calculate_payroll(employee.id, 3, 2025)

        assert result.basic_salary == Decimal("26000.00")
        assert result.gross_earnings == Decimal("26000.00")
        assert result.pf_contribution == Decimal("3120")
        assert result.esi_contribution == 0
        # 312,000 a year: 12,000 in the 5% band -> 600 / 12
        assert result.tax_deducted == Decimal("50")
        assert result.total_deductions == Decimal("3120.00")
        assert result.net_salary == Decimal("22830.00")
        assert result.month == "March"
        assert result.year == 2025

    def test_basic_25000_is_tax_free(self, payroll_data):
        _, employee = _setup(payroll_data, basic=Decimal("25000"))
        result = PayrollCalculator(payroll_data).calculate_payroll(employee.id, 3, 2025)

        assert result.tax_deducted == 0
        assert result.pf_contribution == Decimal("3000")
        assert result.net_salary == Decimal("22000.00")

    def test_half_attendance_prorates_and_triggers_esi(self, payroll_data):
        _, employee = _setup(payroll_data, present=13)
        result = PayrollCalculator(payroll_data).calculate_payroll(employee.id, 3, 2025)

        assert result.basic_salary == Decimal("13000.00")
        assert result.pf_contribution == Decimal("1560")
        # 13000 x 0.75% = 97.5
        assert result.esi_contribution == Decimal("98")
        assert result.tax_deducted == 0
        assert result.total_deductions == Decimal("1658.00")
        assert result.net_salary == Decimal("11342.00")

    def test_missing_basic_uses_fallback(self, payroll_data):
        _, employee = _setup(payroll_data, basic=None)
        result = PayrollCalculator(payroll_data).calculate_payroll(employee.id, 3, 2025)

        assert result.basic_salary == Decimal("30000.00")
        assert result.pf_contribution == Decimal("3600")
        assert result.tax_deducted == Decimal("250")
        assert result.net_salary == Decimal("26150.00")

    def test_rules_feed_gross_and_deductions(self, payroll_data):
        company, employee = _setup(payroll_data, basic=Decimal("20000"))
        payroll_data.add_components(
            make_component(company, name="HRA", value=Decimal("5000")),
            make_component(
                company, name="Canteen", type=ComponentType.DEDUCTION, value=Decimal("500"),
            ),
        )
        result = PayrollCalculator(payroll_data).calculate_payroll(employee.id, 3, 2025)

        assert result.gross_earnings == Decimal("25000.00")
        assert result.pf_contribution == Decimal("2400")
        assert result.esi_contribution == 0
        assert result.tax_deducted == 0
        assert result.total_deductions == Decimal("2900.00")
        assert result.net_salary == Decimal("22100.00")

    def test_statutory_lines_appended_in_order(self, payroll_data):
        company, employee = _setup(payroll_data)
        payroll_data.add_components(
            make_component(
                company, name="Canteen", type=ComponentType.DEDUCTION, value=Decimal("500"),
            ),
        )
        result = PayrollCalculator(payroll_data).calculate_payroll(employee.id, 3, 2025)

        assert [line.component for line in result.deductions] == [
            "Canteen", PF_LINE_NAME, ESI_LINE_NAME, TAX_LINE_NAME,
        ]
        assert result.deductions[1].amount == result.pf_contribution
        assert result.deductions[3].amount == result.tax_deducted

    def test_attendance_counts_copied(self, payroll_data):
        _, employee = _setup(payroll_data, present=20)
        result = PayrollCalculator(payroll_data).calculate_payroll(employee.id, 3, 2025)
        assert result.present_days == 20
        assert result.total_working_days == 20
        assert result.attendance_source == AttendanceSource.RECORDS


class TestPeriods:

    def test_explicit_range_limits_attendance(self, payroll_data):
        _, employee = _setup(payroll_data)
        result = PayrollCalculator(payroll_data).calculate_payroll(
            employee.id, 3, 2025, date(2025, 3, 1), date(2025, 3, 13),
        )
        assert result.present_days == 13
        assert result.period_to == date(2025, 3, 13)

    def test_monthly_uses_calendar_month(self, payroll_data):
        _, employee = _setup(payroll_data)
        result = PayrollCalculator(payroll_data).calculate_monthly_payroll(employee.id, 3, 2025)
        assert (result.period_from, result.period_to) == (date(2025, 3, 1), date(2025, 3, 31))

    def test_month_bounds_leap_february(self):
        assert month_bounds(2, 2024) == (date(2024, 2, 1), date(2024, 2, 29))

    @pytest.mark.parametrize("month, year", [(0, 2025), (13, 2025), (3, 1999), (3, 2101)])
    def test_validate_period_rejects(self, month, year):
        with pytest.raises(InvalidPayrollPeriodError):
            validate_period(month, year)

    def test_invalid_period_checked_before_lookup(self, payroll_data):
        _, employee = _setup(payroll_data)
        with pytest.raises(InvalidPayrollPeriodError):
            PayrollCalculator(payroll_data).calculate_payroll(employee.id, 13, 2025)
        assert payroll_data.calls == []

    def test_reversed_range_rejected(self, payroll_data):
        _, employee = _setup(payroll_data)
        with pytest.raises(InvalidPayrollPeriodError) as exc_info:
            PayrollCalculator(payroll_data).calculate_payroll(
                employee.id, 3, 2025, date(2025, 3, 20), date(2025, 3, 10),
            )
        assert exc_info.value.period_from == date(2025, 3, 20)


class TestLookupFailures:

    def test_unknown_employee(self, payroll_data):
        with pytest.raises(EmployeeNotFoundError):
            PayrollCalculator(payroll_data).calculate_payroll(uuid4(), 3, 2025)

    def test_inactive_employee(self, payroll_data):
        company = payroll_data.add_company(make_company())
        employee = payroll_data.add_employee(make_employee(company, active=False))
        with pytest.raises(EmployeeInactiveError):
            PayrollCalculator(payroll_data).calculate_payroll(employee.id, 3, 2025)

    def test_missing_company(self, payroll_data):
        employee = payroll_data.add_employee(make_employee(make_company()))
        with pytest.raises(CompanyNotFoundError):
            PayrollCalculator(payroll_data).calculate_payroll(employee.id, 3, 2025)


class TestMissingAttendance:

    def test_require_policy_raises(self, payroll_data):
        company = payroll_data.add_company(make_company())
        employee = payroll_data.add_employee(make_employee(company))
        with pytest.raises(AttendanceRequiredError):
            PayrollCalculator(payroll_data).calculate_payroll(employee.id, 3, 2025)

    def test_zero_policy_gives_zero_pay(self, payroll_data, zero_policy_config):
        company = payroll_data.add_company(make_company())
        employee = payroll_data.add_employee(make_employee(company))
        result = PayrollCalculator(payroll_data, config=zero_policy_config).calculate_payroll(
            employee.id, 3, 2025,
        )
        assert result.attendance_source == AttendanceSource.ZERO
        assert result.gross_earnings == 0
        assert result.net_salary == 0

    def test_placeholder_policy_is_seedable(self, payroll_data):
        company = payroll_data.add_company(make_company())
        employee = payroll_data.add_employee(make_employee(company))
        config = PayrollEngineConfig(attendance_policy=AttendancePolicy.PLACEHOLDER)

        first = PayrollCalculator(payroll_data, config, rng=random.Random(11))
        second = PayrollCalculator(payroll_data, config, rng=random.Random(11))
        a = first.calculate_payroll(employee.id, 3, 2025)
        b = second.calculate_payroll(employee.id, 3, 2025)

        assert a.attendance_source == AttendanceSource.PLACEHOLDER
        assert a.net_salary == b.net_salary

    def test_loader_fault_uses_fallback(self, payroll_data):
        company = payroll_data.add_company(make_company())
        employee = payroll_data.add_employee(make_employee(company))
        payroll_data.attendance_error = ConnectionError("attendance db down")
        result = PayrollCalculator(payroll_data).calculate_payroll(employee.id, 3, 2025)

        assert result.attendance_source == AttendanceSource.FALLBACK
        assert result.present_days == 23
        # 26000 / 26 x 23
        assert result.basic_salary == Decimal("23000.00")


class TestDiagnostics:

    def test_failed_rule_reported_not_raised(self, payroll_data):
        company, employee = _setup(payroll_data)
        payroll_data.add_components(
            make_component(company, name="HRA", value=Decimal("1000")),
            make_component(company, name="Runaway", value=Decimal("Infinity")),
        )
        result = PayrollCalculator(payroll_data).calculate_payroll(employee.id, 3, 2025)

        assert [line.component for line in result.earnings] == ["HRA"]
        assert len(result.diagnostics) == 1
        assert "Runaway" in result.diagnostics[0]
        assert result.gross_earnings == Decimal("27000.00")

    def test_rule_store_failure_degrades_to_no_rules(self, payroll_data, captured_logs):
        company, employee = _setup(payroll_data)
        payroll_data.add_components(make_component(company, name="HRA", value=Decimal("1000")))
        payroll_data.components_error = ConnectionError("rule store down")

        result = PayrollCalculator(payroll_data).calculate_payroll(employee.id, 3, 2025)

        assert result.earnings == ()
        assert [line.component for line in result.deductions] == [
            PF_LINE_NAME, ESI_LINE_NAME, TAX_LINE_NAME,
        ]
        assert result.diagnostics
        assert all("rule store down" in d for d in result.diagnostics)
        assert result.net_salary == Decimal("22830.00")
        unavailable = [
            r for r in captured_logs() if r["message"] == "component_rules_unavailable"
        ]
        assert unavailable[0]["level"] == "ERROR"

    def test_rules_fetched_once(self, payroll_data):
        company, employee = _setup(payroll_data)
        payroll_data.add_components(
            make_component(company, name="HRA", value=Decimal("1000")),
            make_component(company, name="Canteen", type=ComponentType.DEDUCTION, value=Decimal("200")),
        )
        result = PayrollCalculator(payroll_data).calculate_payroll(employee.id, 3, 2025)

        assert payroll_data.calls.count("list_salary_components") == 1
        assert result.deductions[0].component == "Canteen"

    def test_completion_logged(self, payroll_data, captured_logs):
        _, employee = _setup(payroll_data)
        PayrollCalculator(payroll_data).calculate_payroll(employee.id, 3, 2025)

        completed = [
            r for r in captured_logs() if r["message"] == "payroll_calculation_completed"
        ]
        assert completed[0]["net_salary"] == "22830.00"
        assert "duration_ms" in completed[0]


class TestInvariants:
    """Output identities hold for arbitrary inputs."""

    @given(
        basic=st.decimals(min_value=Decimal("0"), max_value=Decimal("300000"), places=2),
        present=st.integers(min_value=0, max_value=26),
        allowance=st.decimals(min_value=Decimal("0"), max_value=Decimal("50000"), places=2),
        da_pct=st.decimals(min_value=Decimal("0"), max_value=Decimal("60"), places=3),
        deduction=st.decimals(min_value=Decimal("0"), max_value=Decimal("5000"), places=2),
    )
    @settings(
        max_examples=60,
        deadline=None,
        suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
    )
    def test_net_and_gross_identities(self, basic, present, allowance, da_pct, deduction):
        data = InMemoryPayrollData()
        company = data.add_company(make_company())
        employee = data.add_employee(make_employee(company, basic=basic))
        data.add_attendance(attendance_days(employee, MARCH_1, present))
        data.add_components(
            make_component(company, name="Allowance", value=allowance),
            make_component(
                company, name="DA", calc=CalculationType.PERCENTAGE, value=da_pct,
                percentage_of=PercentageOf.BASIC,
            ),
            make_component(
                company, name="Loan", type=ComponentType.DEDUCTION, value=deduction,
            ),
        )
        config = PayrollEngineConfig(attendance_policy=AttendancePolicy.ZERO)
        result = PayrollCalculator(data, config).calculate_payroll(employee.id, 3, 2025)

        assert result.gross_earnings == result.basic_salary + sum(
            (line.amount for line in result.earnings), Decimal("0")
        )
        assert result.net_salary == (
            result.gross_earnings - result.total_deductions - result.tax_deducted
        )
        assert result.total_deductions == (
            sum((line.amount for line in result.deductions), Decimal("0"))
            - result.tax_deducted
        )
        for value in (result.tax_deducted, result.pf_contribution, result.esi_contribution):
            assert value == value.to_integral_value()
        assert result.net_salary == result.net_salary.quantize(Decimal("0.01"))
