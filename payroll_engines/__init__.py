"""
Payroll calculation engines.

Pure computation over payroll domain models: no database access.

    attendance  - AttendanceResolver, approved-record aggregation, policies
    components  - earning and deduction rule evaluation
    tax         - progressive monthly income tax
    statutory   - PF and ESI contributions
"""

from payroll_engines.attendance import AttendanceResolver, count_weekdays, summarize_records
from payroll_engines.components import (
    ComponentOutcome,
    RuleEvaluation,
    evaluate_deductions,
    evaluate_earnings,
    select_applicable,
)
from payroll_engines.statutory import calculate_esi, calculate_pf
from payroll_engines.tax import ProgressiveTaxCalculator, annual_tax, monthly_tax

__all__ = [
    "AttendanceResolver",
    "ComponentOutcome",
    "ProgressiveTaxCalculator",
    "RuleEvaluation",
    "annual_tax",
    "calculate_esi",
    "calculate_pf",
    "count_weekdays",
    "evaluate_deductions",
    "evaluate_earnings",
    "monthly_tax",
    "select_applicable",
    "summarize_records",
]
