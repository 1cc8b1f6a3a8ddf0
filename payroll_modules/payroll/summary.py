"""
Monthly payroll summary: company totals and a status breakdown.
"""

from __future__ import annotations

from collections.abc import Iterable

from payroll_kernel.domain.money import ZERO, round_money
from payroll_kernel.logging_config import get_logger
from payroll_modules.payroll.models import PayrollRecord, PayrollStatus, PayrollSummary

logger = get_logger("modules.payroll.summary")


def summarize_payroll(
    records: Iterable[PayrollRecord],
    month: int,
    year: int,
) -> PayrollSummary:
    """
    Total the records of one month.

    Records from other periods are ignored.  Every ``PayrollStatus`` appears
    in the breakdown, with zero when no record has it.
    """
    breakdown = {status.value: 0 for status in PayrollStatus}
    count = 0
    net = gross = deductions = tax = pf = esi = ZERO

    for record in records:
        if record.month != month or record.year != year:
            continue
        count += 1
        net += record.net_salary
        gross += record.gross_earnings
        deductions += record.total_deductions
        tax += record.tax_deducted
        pf += record.pf_contribution
        esi += record.esi_contribution
        breakdown[record.status.value] += 1

    summary = PayrollSummary(
        month=month,
        year=year,
        total_employees=count,
        total_net_salary=round_money(net),
        total_gross_earnings=round_money(gross),
        total_deductions=round_money(deductions),
        total_tax=round_money(tax),
        total_pf=round_money(pf),
        total_esi=round_money(esi),
        status_breakdown=breakdown,
    )
    logger.debug(
        "payroll_summary_computed",
        extra={
            "month": month,
            "year": year,
            "total_employees": count,
            "total_net_salary": str(summary.total_net_salary),
        },
    )
    return summary
