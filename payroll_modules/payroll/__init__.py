"""
Payroll Module (``payroll_modules.payroll``).

Responsibility
--------------
Domain models, collaborator protocols, the single-employee
``PayrollCalculator`` (``service``), the monthly summary, and the
SQLAlchemy persistence adapter (``orm`` / ``repository``).

Only the models and protocols are re-exported here; import
``PayrollCalculator`` from ``payroll_modules.payroll.service`` and the
adapters from ``payroll_modules.payroll.repository``.
"""

from payroll_modules.payroll.models import (
    AttendanceRecord,
    AttendanceSource,
    AttendanceStatus,
    AttendanceSummary,
    CalculationType,
    Company,
    CompanySettings,
    ComponentType,
    Employee,
    ExistingPayroll,
    PayrollLine,
    PayrollRecord,
    PayrollResult,
    PayrollStatus,
    PayrollSummary,
    PercentageOf,
    SalaryComponent,
)
from payroll_modules.payroll.sources import PayrollDataSource, PayrollRecordStore

__all__ = [
    "AttendanceRecord",
    "AttendanceSource",
    "AttendanceStatus",
    "AttendanceSummary",
    "CalculationType",
    "Company",
    "CompanySettings",
    "ComponentType",
    "Employee",
    "ExistingPayroll",
    "PayrollDataSource",
    "PayrollLine",
    "PayrollRecord",
    "PayrollRecordStore",
    "PayrollResult",
    "PayrollStatus",
    "PayrollSummary",
    "PercentageOf",
    "SalaryComponent",
]
