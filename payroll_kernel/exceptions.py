"""
Typed Exception Hierarchy for the Payroll Kernel.

Every error raised by the payroll engine is a typed exception with a
class-level ``code`` (machine-readable, API-safe) and structured
attributes carrying the context of the failure.  Callers catch by type,
never by parsing messages:

    try:
        result = calculator.calculate_payroll(employee_id, 3, 2025)
    except EmployeeInactiveError as e:
        report(code=e.code, employee=e.employee_id)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    PayrollKernelError (base)
    |
    +-- EmployeeError
    |   +-- EmployeeNotFoundError
    |   +-- EmployeeInactiveError
    |   +-- SalaryStructureMissingError
    |
    +-- CompanyError
    |   +-- CompanyNotFoundError
    |
    +-- PeriodError
    |   +-- InvalidPayrollPeriodError
    |
    +-- AttendanceError
    |   +-- AttendanceRequiredError
    |
    +-- PayrollRecordError
    |   +-- PayrollRecordNotFoundError
    |   +-- PayrollRecordLockedError
    |
    +-- ComponentEvaluationError
    |
    +-- PayrollConfigError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category    | Code                         | When Raised
------------|------------------------------|-------------------------------------
Employee    | EMPLOYEE_NOT_FOUND           | Employee ID doesn't exist
            | EMPLOYEE_INACTIVE            | Employee is deactivated
            | SALARY_STRUCTURE_MISSING     | No basic salary and no active rules
------------|------------------------------|-------------------------------------
Company     | COMPANY_NOT_FOUND            | Company ID doesn't exist
------------|------------------------------|-------------------------------------
Period      | INVALID_PAYROLL_PERIOD       | Bad month/year or inverted range
------------|------------------------------|-------------------------------------
Attendance  | ATTENDANCE_REQUIRED          | No approved attendance, policy=require
------------|------------------------------|-------------------------------------
Record      | PAYROLL_RECORD_NOT_FOUND     | Stored payroll record ID not found
            | PAYROLL_RECORD_LOCKED        | Locked record cannot be overwritten
------------|------------------------------|-------------------------------------
Component   | COMPONENT_EVALUATION_FAILED  | A salary rule could not be evaluated
------------|------------------------------|-------------------------------------
Config      | PAYROLL_CONFIG_INVALID       | Engine configuration rejected
===============================================================================
"""

from datetime import date
from uuid import UUID


class PayrollKernelError(Exception):
    """
    Base exception for all payroll kernel errors.

    All subclasses must have a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "PAYROLL_KERNEL_ERROR"


# Employee-related exceptions


class EmployeeError(PayrollKernelError):
    """Base exception for employee-related errors."""

    code: str = "EMPLOYEE_ERROR"


class EmployeeNotFoundError(EmployeeError):
    """Employee with given ID was not found."""

    code: str = "EMPLOYEE_NOT_FOUND"

    def __init__(self, employee_id: UUID | str):
        self.employee_id = employee_id
        super().__init__(f"Employee not found: {employee_id}")


class EmployeeInactiveError(EmployeeError):
    """Employee exists but is deactivated."""

    code: str = "EMPLOYEE_INACTIVE"

    def __init__(self, employee_id: UUID | str, employee_code: str | None = None):
        self.employee_id = employee_id
        self.employee_code = employee_code
        super().__init__(
            f"Employee is inactive: {employee_code or employee_id}"
        )


class SalaryStructureMissingError(EmployeeError):
    """Employee has neither a basic salary nor any active salary rule."""

    code: str = "SALARY_STRUCTURE_MISSING"

    def __init__(self, employee_id: UUID | str):
        self.employee_id = employee_id
        super().__init__(
            "No salary structure configured. "
            "Please set basic salary or add salary components."
        )


# Company-related exceptions


class CompanyError(PayrollKernelError):
    """Base exception for company-related errors."""

    code: str = "COMPANY_ERROR"


class CompanyNotFoundError(CompanyError):
    """Company with given ID was not found."""

    code: str = "COMPANY_NOT_FOUND"

    def __init__(self, company_id: UUID | str):
        self.company_id = company_id
        super().__init__(f"Company not found: {company_id}")


# Period-related exceptions


class PeriodError(PayrollKernelError):
    """Base exception for pay-period errors."""

    code: str = "PERIOD_ERROR"


class InvalidPayrollPeriodError(PeriodError):
    """Month, year or explicit date range is not a valid pay period."""

    code: str = "INVALID_PAYROLL_PERIOD"

    def __init__(
        self,
        reason: str,
        month: int | None = None,
        year: int | None = None,
        period_from: date | None = None,
        period_to: date | None = None,
    ):
        self.reason = reason
        self.month = month
        self.year = year
        self.period_from = period_from
        self.period_to = period_to
        super().__init__(f"Invalid payroll period: {reason}")


# Attendance-related exceptions


class AttendanceError(PayrollKernelError):
    """Base exception for attendance resolution errors."""

    code: str = "ATTENDANCE_ERROR"


class AttendanceRequiredError(AttendanceError):
    """No approved attendance exists and the policy forbids inventing it."""

    code: str = "ATTENDANCE_REQUIRED"

    def __init__(self, employee_id: UUID | str, period_from: date, period_to: date):
        self.employee_id = employee_id
        self.period_from = period_from
        self.period_to = period_to
        super().__init__(
            f"Approved attendance required before payroll can run for "
            f"employee {employee_id} ({period_from} to {period_to})"
        )


# Stored payroll record exceptions


class PayrollRecordError(PayrollKernelError):
    """Base exception for stored payroll record errors."""

    code: str = "PAYROLL_RECORD_ERROR"


class PayrollRecordNotFoundError(PayrollRecordError):
    """Payroll record with given ID was not found."""

    code: str = "PAYROLL_RECORD_NOT_FOUND"

    def __init__(self, record_id: UUID | str):
        self.record_id = record_id
        super().__init__(f"Payroll record not found: {record_id}")


class PayrollRecordLockedError(PayrollRecordError):
    """A locked payroll record cannot be recalculated or overwritten."""

    code: str = "PAYROLL_RECORD_LOCKED"

    def __init__(self, record_id: UUID | str):
        self.record_id = record_id
        super().__init__(f"Payroll record is locked: {record_id}")


# Rule evaluation


class ComponentEvaluationError(PayrollKernelError):
    """A single salary component rule could not be evaluated."""

    code: str = "COMPONENT_EVALUATION_FAILED"

    def __init__(self, component_name: str, reason: str):
        self.component_name = component_name
        self.reason = reason
        super().__init__(
            f"Salary component '{component_name}' could not be evaluated: {reason}"
        )


# Configuration


class PayrollConfigError(PayrollKernelError):
    """Engine configuration failed validation."""

    code: str = "PAYROLL_CONFIG_INVALID"

    def __init__(self, field_name: str, reason: str):
        self.field_name = field_name
        self.reason = reason
        super().__init__(f"Invalid payroll configuration '{field_name}': {reason}")
