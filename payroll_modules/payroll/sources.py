"""
Collaborator protocols for the payroll engine.

Contract:
    ``PayrollDataSource`` supplies the read-only inputs of a calculation:
    employees, companies, salary rules and approved attendance.
    ``PayrollRecordStore`` answers "does a record already exist for this
    period?" and persists calculated results.

Architecture:
    payroll_modules/payroll.  The calculator and batch runner depend only
    on these protocols; ``payroll_modules.payroll.repository`` ships the
    SQLAlchemy implementations, and tests use in-memory fakes.

Implementations must be safe to call from several worker threads at once
when the batch runner is configured with ``max_workers > 1``.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from typing import Protocol, runtime_checkable
from uuid import UUID

from payroll_modules.payroll.models import (
    AttendanceRecord,
    Company,
    Employee,
    ExistingPayroll,
    PayrollResult,
    SalaryComponent,
)


@runtime_checkable
class PayrollDataSource(Protocol):
    """Read-only access to payroll inputs."""

    def get_employee(self, employee_id: UUID) -> Employee | None:
        """Return the employee, or None when it does not exist."""
        ...

    def get_company(self, company_id: UUID) -> Company | None:
        """Return the company with its settings, or None."""
        ...

    def list_active_employees(
        self,
        company_id: UUID,
        employee_codes: Sequence[str] | None = None,
    ) -> Sequence[Employee]:
        """Active employees of a company, optionally limited to ``employee_codes``."""
        ...

    def list_salary_components(
        self,
        company_id: UUID,
        employee_id: UUID,
    ) -> Sequence[SalaryComponent]:
        """
        Active rules relevant to one employee.

        Returns both rules bound to ``employee_id`` and company-wide rules
        (no employee binding); precedence is applied by the engine.
        """
        ...

    def has_active_components(self, employee_id: UUID) -> bool:
        """True when at least one active rule is bound to the employee."""
        ...

    def list_approved_attendance(
        self,
        employee_id: UUID,
        period_from: date,
        period_to: date,
    ) -> Sequence[AttendanceRecord]:
        """Approved attendance records dated within the inclusive range."""
        ...


@runtime_checkable
class PayrollRecordStore(Protocol):
    """Persistence of calculated payroll records."""

    def find_existing(
        self,
        employee_id: UUID,
        month: int,
        year: int,
    ) -> ExistingPayroll | None:
        """The stored record for the employee and period, if any."""
        ...

    def save_calculated(
        self,
        company_id: UUID,
        result: PayrollResult,
        month: int,
        replace_id: UUID | None = None,
    ) -> UUID:
        """
        Persist ``result`` with status ``calculated`` and return the record id.

        When ``replace_id`` is given the existing record is overwritten in
        place instead of a new one being created.
        """
        ...
