"""
Pytest fixtures for the payroll engine test suite.

Provides:
- Structured logging configuration and log capture
- In-memory implementations of the payroll collaborator protocols
- Builders for companies, employees, salary rules and attendance
- In-memory SQLite session factories for ORM and repository tests
"""

import json
import logging
import threading
from collections.abc import Sequence
from datetime import date, timedelta
from decimal import Decimal
from io import StringIO
from uuid import UUID, uuid4

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from payroll_config import AttendancePolicy, PayrollEngineConfig
from payroll_kernel.db.base import Base
from payroll_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from payroll_modules.payroll.models import (
    AttendanceRecord,
    AttendanceStatus,
    CalculationType,
    Company,
    CompanySettings,
    ComponentType,
    Employee,
    ExistingPayroll,
    PayrollResult,
    PayrollStatus,
    PercentageOf,
    SalaryComponent,
)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture payroll_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            calculator.calculate_payroll(...)
            logs = captured_logs()
            assert any(r["message"] == "payroll_calculation_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("payroll_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Builders
# =============================================================================


def make_company(
    *,
    name: str = "Acme Industries",
    overtime_rate: Decimal | None = None,
    pf: Decimal | None = Decimal("12"),
    esi: Decimal | None = Decimal("0.75"),
) -> Company:
    return Company(
        id=uuid4(),
        name=name,
        settings=CompanySettings(
            overtime_rate_per_hour=overtime_rate,
            pf_deduction_percentage=pf,
            esi_deduction_percentage=esi,
        ),
    )


def make_employee(
    company: Company,
    *,
    code: str = "EMP001",
    name: str = "Asha Rao",
    basic: Decimal | None = Decimal("26000"),
    active: bool = True,
) -> Employee:
    return Employee(
        id=uuid4(),
        employee_code=code,
        name=name,
        company_id=company.id,
        basic_salary=basic,
        is_active=active,
    )


def make_component(
    company: Company,
    *,
    name: str,
    type: ComponentType = ComponentType.EARNING,
    calc: CalculationType = CalculationType.FIXED,
    value: Decimal = Decimal("0"),
    percentage_of: PercentageOf | None = None,
    employee: Employee | None = None,
    category: str = "allowance",
    active: bool = True,
    is_taxable: bool | None = None,
) -> SalaryComponent:
    return SalaryComponent(
        id=uuid4(),
        company_id=company.id,
        name=name,
        type=type,
        calculation_type=calc,
        value=value,
        category=category,
        percentage_of=percentage_of,
        is_taxable=is_taxable,
        employee_id=employee.id if employee is not None else None,
        is_active=active,
    )


def attendance_days(
    employee: Employee,
    start: date,
    count: int,
    status: AttendanceStatus = AttendanceStatus.PRESENT,
    overtime: Decimal = Decimal("0"),
    approved: bool = True,
) -> list[AttendanceRecord]:
    """``count`` consecutive daily records starting at ``start``."""
    return [
        AttendanceRecord(
            employee_id=employee.id,
            date=start + timedelta(days=i),
            status=status,
            overtime_hours=overtime,
            is_approved=approved,
        )
        for i in range(count)
    ]


# =============================================================================
# In-memory collaborators
# =============================================================================


class InMemoryPayrollData:
    """Dict-backed ``PayrollDataSource``."""

    def __init__(self) -> None:
        self.companies: dict[UUID, Company] = {}
        self.employees: dict[UUID, Employee] = {}
        self.components: list[SalaryComponent] = []
        self.attendance: list[AttendanceRecord] = []
        self.attendance_error: Exception | None = None
        self.components_error: Exception | None = None
        self.calls: list[str] = []

    # -- setup --------------------------------------------------------------

    def add_company(self, company: Company) -> Company:
        self.companies[company.id] = company
        return company

    def add_employee(self, employee: Employee) -> Employee:
        self.employees[employee.id] = employee
        return employee

    def add_components(self, *components: SalaryComponent) -> None:
        self.components.extend(components)

    def add_attendance(self, records: Sequence[AttendanceRecord]) -> None:
        self.attendance.extend(records)

    # -- PayrollDataSource ----------------------------------------------------

    def get_employee(self, employee_id):
        self.calls.append("get_employee")
        return self.employees.get(employee_id)

    def get_company(self, company_id):
        self.calls.append("get_company")
        return self.companies.get(company_id)

    def list_active_employees(self, company_id, employee_codes=None):
        result = [
            e for e in self.employees.values()
            if e.company_id == company_id and e.is_active
        ]
        if employee_codes is not None:
            result = [e for e in result if e.employee_code in set(employee_codes)]
        return sorted(result, key=lambda e: e.employee_code)

    def list_salary_components(self, company_id, employee_id):
        self.calls.append("list_salary_components")
        if self.components_error is not None:
            raise self.components_error
        return [
            c for c in self.components
            if c.company_id == company_id
            and c.is_active
            and (c.employee_id is None or c.employee_id == employee_id)
        ]

    def has_active_components(self, employee_id):
        return any(c.employee_id == employee_id and c.is_active for c in self.components)

    def list_approved_attendance(self, employee_id, period_from, period_to):
        if self.attendance_error is not None:
            raise self.attendance_error
        return [
            r for r in self.attendance
            if r.employee_id == employee_id
            and r.is_approved
            and period_from <= r.date <= period_to
        ]


class InMemoryRecordStore:
    """Dict-backed ``PayrollRecordStore`` keyed by (employee, month, year)."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.records: dict[tuple[UUID, int, int], dict] = {}
        self.save_calls = 0

    def seed(
        self,
        employee: Employee,
        month: int,
        year: int,
        *,
        locked: bool = False,
        status: PayrollStatus = PayrollStatus.CALCULATED,
    ) -> UUID:
        record_id = uuid4()
        self.records[(employee.id, month, year)] = {
            "id": record_id,
            "status": status,
            "is_locked": locked,
            "result": None,
        }
        return record_id

    def find_existing(self, employee_id, month, year):
        with self._lock:
            rec = self.records.get((employee_id, month, year))
        if rec is None:
            return None
        return ExistingPayroll(id=rec["id"], status=rec["status"], is_locked=rec["is_locked"])

    def save_calculated(self, company_id, result: PayrollResult, month, replace_id=None):
        with self._lock:
            self.save_calls += 1
            key = (result.employee_id, month, result.year)
            record_id = replace_id or uuid4()
            self.records[key] = {
                "id": record_id,
                "status": PayrollStatus.CALCULATED,
                "is_locked": False,
                "result": result,
                "company_id": company_id,
            }
            return record_id

    def result_for(self, employee: Employee, month: int, year: int) -> PayrollResult | None:
        rec = self.records.get((employee.id, month, year))
        return rec["result"] if rec else None


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def payroll_data() -> InMemoryPayrollData:
    return InMemoryPayrollData()


@pytest.fixture
def record_store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def zero_policy_config() -> PayrollEngineConfig:
    """Engine config that turns missing attendance into a zero summary."""
    return PayrollEngineConfig(attendance_policy=AttendancePolicy.ZERO)


@pytest.fixture
def sqlite_session_factory():
    """In-memory SQLite with every payroll table created."""
    import payroll_modules.payroll.orm  # noqa: F401  registers payroll tables

    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, expire_on_commit=False)
    yield factory
    Base.metadata.drop_all(engine)
    engine.dispose()
