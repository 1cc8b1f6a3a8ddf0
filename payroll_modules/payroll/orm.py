"""
Payroll ORM Persistence Models (``payroll_modules.payroll.orm``).

Responsibility:
    SQLAlchemy ORM models that persist the frozen dataclass DTOs defined in
    ``payroll_modules.payroll.models``.  Each input model mirrors a DTO and
    provides ``to_dto()`` / ``from_dto()`` round-trip conversion;
    ``PayrollRecordModel`` is written from a ``PayrollResult``
    (``from_result`` / ``apply_result``) and read back as a
    ``PayrollRecord``.

Architecture position:
    **Modules layer** -- persistence companions to the pure DTO models.
    Inherits from ``TrackedBase`` (kernel DB base) which provides:
    id (UUID PK, auto-generated), created_at, updated_at.

Invariants enforced:
    - All monetary fields use Decimal (maps to Numeric(38,9)) -- NEVER float.
    - Enum fields stored as String(50) containing the enum .value string.
    - One payroll record per employee, month and year
      (uq_payroll_record_employee_period).
    - Earnings and deductions lines stored as JSON lists with string amounts.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import JSON, Boolean, Date, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from payroll_kernel.db.base import TrackedBase


def _enum_value(value):
    return value.value if hasattr(value, "value") else value


# ---------------------------------------------------------------------------
# CompanyModel
# ---------------------------------------------------------------------------

class CompanyModel(TrackedBase):
    """
    ORM model for ``Company`` with its payroll settings flattened in.

    Guarantees:
        - Unset numeric settings are stored as NULL so engine defaults apply.
    """

    __tablename__ = "payroll_companies"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    overtime_rate_per_hour: Mapped[Decimal | None] = mapped_column(nullable=True)
    pf_deduction_percentage: Mapped[Decimal | None] = mapped_column(nullable=True)
    esi_deduction_percentage: Mapped[Decimal | None] = mapped_column(nullable=True)
    currency_symbol: Mapped[str] = mapped_column(String(10), default="₹", nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def to_dto(self):
        from payroll_modules.payroll.models import Company, CompanySettings
        return Company(
            id=self.id,
            name=self.name,
            settings=CompanySettings(
                overtime_rate_per_hour=self.overtime_rate_per_hour,
                pf_deduction_percentage=self.pf_deduction_percentage,
                esi_deduction_percentage=self.esi_deduction_percentage,
                currency_symbol=self.currency_symbol,
            ),
        )

    @classmethod
    def from_dto(cls, dto) -> "CompanyModel":
        return cls(
            id=dto.id,
            name=dto.name,
            overtime_rate_per_hour=dto.settings.overtime_rate_per_hour,
            pf_deduction_percentage=dto.settings.pf_deduction_percentage,
            esi_deduction_percentage=dto.settings.esi_deduction_percentage,
            currency_symbol=dto.settings.currency_symbol,
        )

    def __repr__(self) -> str:
        return f"<CompanyModel {self.name}>"


# ---------------------------------------------------------------------------
# EmployeeModel
# ---------------------------------------------------------------------------

class EmployeeModel(TrackedBase):
    """
    ORM model for ``Employee``.

    Guarantees:
        - ``employee_code`` is unique (uq_payroll_employee_code).
        - ``basic_salary`` is NULL when no salary has been set.
    """

    __tablename__ = "payroll_employees"

    employee_code: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    company_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_companies.id"), nullable=False,
    )
    basic_salary: Mapped[Decimal | None] = mapped_column(nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        UniqueConstraint("employee_code", name="uq_payroll_employee_code"),
        Index("idx_payroll_employee_company_active", "company_id", "is_active"),
    )

    def to_dto(self):
        from payroll_modules.payroll.models import Employee
        return Employee(
            id=self.id,
            employee_code=self.employee_code,
            name=self.name,
            company_id=self.company_id,
            basic_salary=self.basic_salary,
            is_active=self.is_active,
        )

    @classmethod
    def from_dto(cls, dto) -> "EmployeeModel":
        return cls(
            id=dto.id,
            employee_code=dto.employee_code,
            name=dto.name,
            company_id=dto.company_id,
            basic_salary=dto.basic_salary,
            is_active=dto.is_active,
        )

    def __repr__(self) -> str:
        return f"<EmployeeModel {self.employee_code}: {self.name}>"


# ---------------------------------------------------------------------------
# SalaryComponentModel
# ---------------------------------------------------------------------------

class SalaryComponentModel(TrackedBase):
    """
    ORM model for ``SalaryComponent`` (a salary rule).

    Guarantees:
        - ``employee_id`` NULL marks a company-wide rule.
        - ``type``, ``calculation_type`` and ``percentage_of`` store enum
          .value strings.
    """

    __tablename__ = "payroll_salary_components"

    company_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_companies.id"), nullable=False,
    )
    employee_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("payroll_employees.id"), nullable=True,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    calculation_type: Mapped[str] = mapped_column(String(50), nullable=False)
    value: Mapped[Decimal] = mapped_column(nullable=False)
    category: Mapped[str] = mapped_column(String(100), default="", nullable=False)
    percentage_of: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_taxable: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        Index("idx_payroll_component_company", "company_id", "is_active"),
        Index("idx_payroll_component_employee", "employee_id", "is_active"),
    )

    def to_dto(self):
        from payroll_modules.payroll.models import (
            CalculationType,
            ComponentType,
            PercentageOf,
            SalaryComponent,
        )
        return SalaryComponent(
            id=self.id,
            company_id=self.company_id,
            name=self.name,
            type=ComponentType(self.type),
            calculation_type=CalculationType(self.calculation_type),
            value=self.value,
            category=self.category,
            percentage_of=PercentageOf(self.percentage_of) if self.percentage_of else None,
            is_taxable=self.is_taxable,
            employee_id=self.employee_id,
            is_active=self.is_active,
        )

    @classmethod
    def from_dto(cls, dto) -> "SalaryComponentModel":
        return cls(
            id=dto.id,
            company_id=dto.company_id,
            employee_id=dto.employee_id,
            name=dto.name,
            type=_enum_value(dto.type),
            calculation_type=_enum_value(dto.calculation_type),
            value=dto.value,
            category=dto.category,
            percentage_of=_enum_value(dto.percentage_of) if dto.percentage_of else None,
            is_taxable=dto.is_taxable,
            is_active=dto.is_active,
        )

    def __repr__(self) -> str:
        return f"<SalaryComponentModel {self.name} ({self.type}/{self.calculation_type})>"


# ---------------------------------------------------------------------------
# AttendanceRecordModel
# ---------------------------------------------------------------------------

class AttendanceRecordModel(TrackedBase):
    """
    ORM model for ``AttendanceRecord``.

    Guarantees:
        - One record per employee per day (uq_payroll_attendance_employee_date).
    """

    __tablename__ = "payroll_attendance_records"

    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_employees.id"), nullable=False,
    )
    attendance_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False)
    overtime_hours: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
    is_approved: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "employee_id", "attendance_date",
            name="uq_payroll_attendance_employee_date",
        ),
        Index("idx_payroll_attendance_lookup", "employee_id", "attendance_date", "is_approved"),
    )

    def to_dto(self):
        from payroll_modules.payroll.models import AttendanceRecord, AttendanceStatus
        return AttendanceRecord(
            employee_id=self.employee_id,
            date=self.attendance_date,
            status=AttendanceStatus(self.status),
            overtime_hours=self.overtime_hours,
            is_approved=self.is_approved,
        )

    @classmethod
    def from_dto(cls, dto) -> "AttendanceRecordModel":
        return cls(
            employee_id=dto.employee_id,
            attendance_date=dto.date,
            status=_enum_value(dto.status),
            overtime_hours=dto.overtime_hours,
            is_approved=dto.is_approved,
        )

    def __repr__(self) -> str:
        return f"<AttendanceRecordModel {self.employee_id} {self.attendance_date}: {self.status}>"


# ---------------------------------------------------------------------------
# PayrollRecordModel
# ---------------------------------------------------------------------------

class PayrollRecordModel(TrackedBase):
    """
    ORM model for ``PayrollRecord`` -- a calculated payroll for one
    employee, month and year.

    Guarantees:
        - Unique per employee and period (uq_payroll_record_employee_period).
        - ``is_locked`` records are never overwritten by a batch run.
    """

    __tablename__ = "payroll_records"

    company_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_companies.id"), nullable=False,
    )
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_employees.id"), nullable=False,
    )
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    period_from: Mapped[date] = mapped_column(Date, nullable=False)
    period_to: Mapped[date] = mapped_column(Date, nullable=False)

    total_working_days: Mapped[Decimal] = mapped_column(nullable=False)
    present_days: Mapped[Decimal] = mapped_column(nullable=False)
    absent_days: Mapped[Decimal] = mapped_column(nullable=False)
    leave_days: Mapped[Decimal] = mapped_column(nullable=False)
    overtime_hours: Mapped[Decimal] = mapped_column(nullable=False)

    basic_salary: Mapped[Decimal] = mapped_column(nullable=False)
    gross_earnings: Mapped[Decimal] = mapped_column(nullable=False)
    total_deductions: Mapped[Decimal] = mapped_column(nullable=False)
    net_salary: Mapped[Decimal] = mapped_column(nullable=False)
    tax_deducted: Mapped[Decimal] = mapped_column(nullable=False)
    pf_contribution: Mapped[Decimal] = mapped_column(nullable=False)
    esi_contribution: Mapped[Decimal] = mapped_column(nullable=False)

    earnings: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    deductions: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    status: Mapped[str] = mapped_column(String(50), default="draft", nullable=False)
    is_locked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "employee_id", "month", "year",
            name="uq_payroll_record_employee_period",
        ),
        Index("idx_payroll_record_company_period", "company_id", "year", "month"),
        Index("idx_payroll_record_status", "status"),
    )

    def apply_result(self, result, status: str) -> None:
        """Overwrite the calculated figures with ``result``."""
        self.period_from = result.period_from
        self.period_to = result.period_to
        self.total_working_days = result.total_working_days
        self.present_days = result.present_days
        self.absent_days = result.absent_days
        self.leave_days = result.leave_days
        self.overtime_hours = result.overtime_hours
        self.basic_salary = result.basic_salary
        self.gross_earnings = result.gross_earnings
        self.total_deductions = result.total_deductions
        self.net_salary = result.net_salary
        self.tax_deducted = result.tax_deducted
        self.pf_contribution = result.pf_contribution
        self.esi_contribution = result.esi_contribution
        self.earnings = [line.to_dict() for line in result.earnings]
        self.deductions = [line.to_dict() for line in result.deductions]
        self.status = status

    @classmethod
    def from_result(
        cls, company_id: UUID, month: int, result, status: str,
    ) -> "PayrollRecordModel":
        model = cls(
            company_id=company_id,
            employee_id=result.employee_id,
            month=month,
            year=result.year,
            is_locked=False,
        )
        model.apply_result(result, status)
        return model

    def to_dto(self):
        from payroll_modules.payroll.models import PayrollLine, PayrollRecord, PayrollStatus
        return PayrollRecord(
            id=self.id,
            company_id=self.company_id,
            employee_id=self.employee_id,
            month=self.month,
            year=self.year,
            basic_salary=self.basic_salary,
            gross_earnings=self.gross_earnings,
            total_deductions=self.total_deductions,
            net_salary=self.net_salary,
            tax_deducted=self.tax_deducted,
            pf_contribution=self.pf_contribution,
            esi_contribution=self.esi_contribution,
            present_days=self.present_days,
            status=PayrollStatus(self.status),
            is_locked=self.is_locked,
            earnings=tuple(PayrollLine.from_dict(d) for d in self.earnings or ()),
            deductions=tuple(PayrollLine.from_dict(d) for d in self.deductions or ()),
        )

    def to_existing(self):
        from payroll_modules.payroll.models import ExistingPayroll, PayrollStatus
        return ExistingPayroll(
            id=self.id,
            status=PayrollStatus(self.status),
            is_locked=self.is_locked,
        )

    def __repr__(self) -> str:
        return (
            f"<PayrollRecordModel {self.employee_id} {self.year}-{self.month:02d}: "
            f"{self.status}{' locked' if self.is_locked else ''}>"
        )
