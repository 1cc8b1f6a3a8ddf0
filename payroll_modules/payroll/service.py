"""
Payroll Calculation Service (``payroll_modules.payroll.service``).

Responsibility
--------------
Computes one employee's payroll for one period: resolves the employee,
company and salary rules through a ``PayrollDataSource``, summarizes
attendance, prorates basic salary, evaluates rule earnings and
deductions, and applies income tax, PF and ESI.

Architecture position
---------------------
**Modules layer** -- ``PayrollCalculator`` is the single-employee entry
point.  It composes the pure engines in ``payroll_engines`` and owns no
persistence; the batch runner persists its results.

Invariants enforced
-------------------
* ``gross_earnings = basic_salary + sum(earnings)``.
* ``total_deductions = rule deductions + PF + ESI`` (tax excluded).
* ``net_salary = gross_earnings - total_deductions - tax_deducted``.
* Monetary outputs carry 2 decimals; tax, PF and ESI are whole units.
  Intermediate sums keep full precision.

Failure modes
-------------
* Unknown / inactive employee  -> ``EmployeeNotFoundError`` /
  ``EmployeeInactiveError``.
* Unknown company  -> ``CompanyNotFoundError``.
* Bad month, year or date range  -> ``InvalidPayrollPeriodError``.
* No approved attendance under the ``require`` policy
  -> ``AttendanceRequiredError``.
* Rule failures, including a failure to load the rules, are suppressed
  into ``diagnostics``.

Usage::

    calculator = PayrollCalculator(data_source, config=config)
    result = calculator.calculate_payroll(employee_id, month=3, year=2025)
"""

from __future__ import annotations

import calendar
import functools
import random
import time
from datetime import date
from uuid import UUID

from payroll_config.schema import PayrollEngineConfig
from payroll_engines.attendance import AttendanceResolver
from payroll_engines.components import evaluate_deductions, evaluate_earnings
from payroll_engines.statutory import calculate_esi, calculate_pf
from payroll_engines.tax import ProgressiveTaxCalculator
from payroll_kernel.domain.money import round_money
from payroll_kernel.exceptions import (
    CompanyNotFoundError,
    EmployeeInactiveError,
    EmployeeNotFoundError,
    InvalidPayrollPeriodError,
)
from payroll_kernel.logging_config import get_logger
from payroll_modules.payroll.models import (
    ESI_LINE_NAME,
    MONTH_NAMES,
    PF_LINE_NAME,
    TAX_LINE_NAME,
    PayrollLine,
    PayrollResult,
)
from payroll_modules.payroll.sources import PayrollDataSource

logger = get_logger("modules.payroll.service")

MIN_PAYROLL_YEAR = 2000
MAX_PAYROLL_YEAR = 2100


def validate_period(month: int, year: int) -> None:
    """Reject months outside 1-12 and years outside 2000-2100."""
    if not 1 <= month <= 12:
        raise InvalidPayrollPeriodError(
            "month must be between 1 and 12", month=month, year=year,
        )
    if not MIN_PAYROLL_YEAR <= year <= MAX_PAYROLL_YEAR:
        raise InvalidPayrollPeriodError(
            f"year must be between {MIN_PAYROLL_YEAR} and {MAX_PAYROLL_YEAR}",
            month=month, year=year,
        )


def month_bounds(month: int, year: int) -> tuple[date, date]:
    """First and last calendar day of the month."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


class PayrollCalculator:
    """
    Single-employee payroll computation.

    Stateless between calls apart from the injected collaborators, so one
    instance may be shared by the batch runner's worker threads.
    """

    def __init__(
        self,
        data_source: PayrollDataSource,
        config: PayrollEngineConfig | None = None,
        rng: random.Random | None = None,
    ):
        self._data = data_source
        self._config = config or PayrollEngineConfig.with_defaults()
        self._attendance = AttendanceResolver(
            data_source.list_approved_attendance, self._config, rng=rng,
        )
        self._tax = ProgressiveTaxCalculator(self._config)

    @property
    def config(self) -> PayrollEngineConfig:
        return self._config

    def calculate_monthly_payroll(
        self, employee_id: UUID, month: int, year: int,
    ) -> PayrollResult:
        """Payroll for the full calendar month."""
        validate_period(month, year)
        period_from, period_to = month_bounds(month, year)
        return self.calculate_payroll(employee_id, month, year, period_from, period_to)

    def calculate_payroll(
        self,
        employee_id: UUID,
        month: int,
        year: int,
        period_from: date | None = None,
        period_to: date | None = None,
    ) -> PayrollResult:
        """
        Payroll for one employee.

        ``period_from`` / ``period_to`` default to the calendar month; an
        explicit range only changes which attendance is considered.
        """
        t0 = time.monotonic()
        validate_period(month, year)
        default_from, default_to = month_bounds(month, year)
        period_from = period_from or default_from
        period_to = period_to or default_to
        if period_from > period_to:
            raise InvalidPayrollPeriodError(
                "period_from must not be after period_to",
                month=month, year=year,
                period_from=period_from, period_to=period_to,
            )

        employee = self._data.get_employee(employee_id)
        if employee is None:
            raise EmployeeNotFoundError(employee_id)
        if not employee.is_active:
            raise EmployeeInactiveError(employee_id, employee.employee_code)

        company = self._data.get_company(employee.company_id)
        if company is None:
            raise CompanyNotFoundError(employee.company_id)
        settings = company.settings

        logger.info("payroll_calculation_started", extra={
            "employee_id": str(employee_id),
            "employee_code": employee.employee_code,
            "month": month,
            "year": year,
            "period_from": period_from.isoformat(),
            "period_to": period_to.isoformat(),
        })

        # Loaded inside the evaluators' guard; one fetch for both.
        @functools.cache
        def rules():
            return tuple(self._data.list_salary_components(company.id, employee.id))

        attendance = self._attendance.resolve(employee.id, period_from, period_to)

        # Basic pay, prorated by present days
        basic = (
            employee.basic_salary
            if employee.has_basic_salary
            else self._config.fallback_basic_salary
        )
        prorated_basic = basic / self._config.standard_working_days * attendance.present_days

        earnings = evaluate_earnings(
            employee.id, rules, prorated_basic, attendance, settings, self._config,
        )
        deductions = evaluate_deductions(
            employee.id, rules, prorated_basic, earnings.lines,
        )

        gross = prorated_basic + earnings.total
        tax = self._tax.monthly_tax(gross, year)
        pf = calculate_pf(prorated_basic, settings.pf_deduction_percentage, self._config)
        esi = calculate_esi(gross, settings.esi_deduction_percentage, self._config)

        # Output boundary: each term rounded before combination
        basic_out = round_money(prorated_basic)
        gross_out = basic_out + earnings.total
        total_deductions = round_money(deductions.total + pf + esi)
        net = round_money(gross_out - total_deductions - tax)

        statutory = (
            PayrollLine(component=PF_LINE_NAME, amount=pf, is_taxable=False),
            PayrollLine(component=ESI_LINE_NAME, amount=esi, is_taxable=False),
            PayrollLine(component=TAX_LINE_NAME, amount=tax, is_taxable=False),
        )
        diagnostics = earnings.diagnostics + deductions.diagnostics

        result = PayrollResult(
            employee_id=employee.id,
            month=MONTH_NAMES[month - 1],
            year=year,
            period_from=period_from,
            period_to=period_to,
            basic_salary=basic_out,
            earnings=earnings.lines,
            deductions=deductions.lines + statutory,
            gross_earnings=gross_out,
            total_deductions=total_deductions,
            net_salary=net,
            tax_deducted=tax,
            pf_contribution=pf,
            esi_contribution=esi,
            total_working_days=attendance.total_working_days,
            present_days=attendance.present_days,
            absent_days=attendance.absent_days,
            leave_days=attendance.leave_days,
            overtime_hours=attendance.overtime_hours,
            attendance_source=attendance.source,
            diagnostics=diagnostics,
        )

        duration_ms = round((time.monotonic() - t0) * 1000, 2)
        logger.info("payroll_calculation_completed", extra={
            "employee_id": str(employee_id),
            "month": month,
            "year": year,
            "attendance_source": attendance.source.value,
            "gross_earnings": str(gross_out),
            "total_deductions": str(total_deductions),
            "tax_deducted": str(tax),
            "net_salary": str(net),
            "diagnostic_count": len(diagnostics),
            "duration_ms": duration_ms,
        })
        return result
