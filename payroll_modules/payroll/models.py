"""
Payroll Domain Models (``payroll_modules.payroll.models``).

Responsibility
--------------
Frozen dataclass value objects representing the nouns of payroll
calculation: employees, companies and their payroll settings, salary
rule components, attendance records and summaries, payroll lines and
results, stored payroll records and the monthly summary.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Consumed by
the engines, ``PayrollCalculator`` and ``PayrollBatchRunner``; produced
by data-source collaborators.  No dependency on the database.

Invariants enforced
-------------------
* All models are ``frozen=True`` (immutable after construction).
* All monetary fields use ``Decimal`` -- NEVER ``float``.

Failure modes
-------------
* Construction with invalid enum values raises ``ValueError``.
* Negative salary or rule values raise ``ValueError``.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from payroll_kernel.domain.money import ZERO
from payroll_kernel.logging_config import get_logger

logger = get_logger("modules.payroll.models")

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

# Names of the statutory lines appended to every result's deductions.
PF_LINE_NAME = "Provident Fund (PF)"
ESI_LINE_NAME = "ESI"
TAX_LINE_NAME = "Income Tax (TDS)"


class ComponentType(Enum):
    """Whether a salary rule adds to or subtracts from pay."""
    EARNING = "earning"
    DEDUCTION = "deduction"


class CalculationType(Enum):
    """How a salary rule's amount is derived from its value."""
    FIXED = "fixed"
    PERCENTAGE = "percentage"
    OVERTIME_FORMULA = "overtime_formula"  # overtime hours x company rate
    ATTENDANCE_RATE = "attendance_rate"  # present days x value


class PercentageOf(Enum):
    """Base of a percentage rule."""
    BASIC = "basic"
    GROSS = "gross"


class AttendanceStatus(Enum):
    """Daily attendance states."""
    PRESENT = "present"
    ABSENT = "absent"
    LEAVE = "leave"
    HALF_DAY = "half-day"


class AttendanceSource(Enum):
    """Where an attendance summary's figures came from."""
    RECORDS = "records"
    PLACEHOLDER = "placeholder"
    ZERO = "zero"
    FALLBACK = "fallback"


class PayrollStatus(Enum):
    """Stored payroll record lifecycle states."""
    DRAFT = "draft"
    CALCULATED = "calculated"
    APPROVED = "approved"
    PAID = "paid"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Employee:
    """An employee as seen by the payroll engine (read-only)."""
    id: UUID
    employee_code: str
    name: str
    company_id: UUID
    basic_salary: Decimal | None = None
    is_active: bool = True

    def __post_init__(self):
        if self.basic_salary is not None and self.basic_salary < 0:
            logger.warning(
                "employee_negative_basic_salary",
                extra={
                    "employee_id": str(self.id),
                    "employee_code": self.employee_code,
                    "basic_salary": str(self.basic_salary),
                },
            )
            raise ValueError("basic_salary cannot be negative")

    @property
    def has_basic_salary(self) -> bool:
        return bool(self.basic_salary)


@dataclass(frozen=True)
class CompanySettings:
    """Per-company payroll settings; ``None`` means "use engine default"."""
    overtime_rate_per_hour: Decimal | None = None
    pf_deduction_percentage: Decimal | None = None
    esi_deduction_percentage: Decimal | None = None
    currency_symbol: str = "₹"


@dataclass(frozen=True)
class Company:
    """A company and its payroll settings."""
    id: UUID
    name: str
    settings: CompanySettings = field(default_factory=CompanySettings)


@dataclass(frozen=True)
class SalaryComponent:
    """
    A salary rule attached to a company, optionally bound to one employee.

    ``category`` is free-form; earning rules with category ``"basic"`` are
    not evaluated because basic pay is computed separately.  ``is_taxable``
    is informational and does not narrow the tax base.
    """
    id: UUID
    company_id: UUID
    name: str
    type: ComponentType
    calculation_type: CalculationType
    value: Decimal
    category: str = ""
    percentage_of: PercentageOf | None = None
    is_taxable: bool | None = None
    employee_id: UUID | None = None
    is_active: bool = True

    def __post_init__(self):
        if self.value < 0:
            raise ValueError(f"Salary component '{self.name}' value cannot be negative")

    @property
    def taxable(self) -> bool:
        """Effective taxability: earnings default True, deductions False."""
        if self.is_taxable is not None:
            return self.is_taxable
        return self.type == ComponentType.EARNING

    @property
    def is_company_wide(self) -> bool:
        return self.employee_id is None


@dataclass(frozen=True)
class AttendanceRecord:
    """One day of attendance for one employee."""
    employee_id: UUID
    date: date
    status: AttendanceStatus
    overtime_hours: Decimal = ZERO
    is_approved: bool = False


@dataclass(frozen=True)
class AttendanceSummary:
    """Attendance counts for one employee over one pay period."""
    total_working_days: Decimal
    present_days: Decimal
    absent_days: Decimal
    leave_days: Decimal
    overtime_hours: Decimal
    source: AttendanceSource = AttendanceSource.RECORDS


@dataclass(frozen=True)
class PayrollLine:
    """A named earning or deduction amount on a payroll result."""
    component: str
    amount: Decimal
    is_taxable: bool = False

    def to_dict(self) -> dict:
        return {
            "component": self.component,
            "amount": str(self.amount),
            "is_taxable": self.is_taxable,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PayrollLine":
        return cls(
            component=data["component"],
            amount=Decimal(str(data["amount"])),
            is_taxable=bool(data.get("is_taxable", False)),
        )


@dataclass(frozen=True)
class PayrollResult:
    """
    Computed payroll for one employee and one period.

    ``deductions`` ends with the PF, ESI and income tax lines.
    ``total_deductions`` excludes tax; ``net_salary`` subtracts it.
    """
    employee_id: UUID
    month: str
    year: int
    period_from: date
    period_to: date
    basic_salary: Decimal
    earnings: tuple[PayrollLine, ...]
    deductions: tuple[PayrollLine, ...]
    gross_earnings: Decimal
    total_deductions: Decimal
    net_salary: Decimal
    tax_deducted: Decimal
    pf_contribution: Decimal
    esi_contribution: Decimal
    total_working_days: Decimal
    present_days: Decimal
    absent_days: Decimal
    leave_days: Decimal
    overtime_hours: Decimal
    attendance_source: AttendanceSource = AttendanceSource.RECORDS
    diagnostics: tuple[str, ...] = ()


@dataclass(frozen=True)
class ExistingPayroll:
    """Minimal view of a stored payroll record, used for skip decisions."""
    id: UUID
    status: PayrollStatus
    is_locked: bool = False


@dataclass(frozen=True)
class PayrollRecord:
    """A persisted payroll record for one employee, month and year."""
    id: UUID
    company_id: UUID
    employee_id: UUID
    month: int
    year: int
    basic_salary: Decimal
    gross_earnings: Decimal
    total_deductions: Decimal
    net_salary: Decimal
    tax_deducted: Decimal
    pf_contribution: Decimal
    esi_contribution: Decimal
    present_days: Decimal
    status: PayrollStatus = PayrollStatus.DRAFT
    is_locked: bool = False
    earnings: tuple[PayrollLine, ...] = ()
    deductions: tuple[PayrollLine, ...] = ()


@dataclass(frozen=True)
class PayrollSummary:
    """Company-wide totals for one month."""
    month: int
    year: int
    total_employees: int
    total_net_salary: Decimal
    total_gross_earnings: Decimal
    total_deductions: Decimal
    total_tax: Decimal
    total_pf: Decimal
    total_esi: Decimal
    status_breakdown: dict[str, int] = field(default_factory=dict)
