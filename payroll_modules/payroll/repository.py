"""
SQLAlchemy implementations of the payroll collaborator protocols.

Contract:
    ``SqlAlchemyPayrollDataSource`` implements ``PayrollDataSource`` and
    ``SqlAlchemyPayrollRecordStore`` implements ``PayrollRecordStore``
    over the models in ``payroll_modules.payroll.orm``.  Both return frozen
    DTOs, never ORM instances.

Architecture:
    payroll_modules/payroll.  Each call opens its own short-lived session
    from the injected ``session_factory``, so one instance can be shared by
    the batch runner's worker threads.

Failure modes:
    - SQLAlchemy errors propagate unchanged (the batch runner records them
      as per-employee failures).
    - ``save_calculated`` on a locked record raises ``PayrollRecordLockedError``.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import date
from uuid import UUID

from sqlalchemy import exists, or_, select
from sqlalchemy.orm import Session

from payroll_kernel.exceptions import PayrollRecordLockedError, PayrollRecordNotFoundError
from payroll_kernel.logging_config import get_logger
from payroll_modules.payroll.models import (
    AttendanceRecord,
    Company,
    Employee,
    ExistingPayroll,
    PayrollRecord,
    PayrollResult,
    PayrollStatus,
    PayrollSummary,
    SalaryComponent,
)
from payroll_modules.payroll.orm import (
    AttendanceRecordModel,
    CompanyModel,
    EmployeeModel,
    PayrollRecordModel,
    SalaryComponentModel,
)
from payroll_modules.payroll.summary import summarize_payroll

logger = get_logger("modules.payroll.repository")

SessionFactory = Callable[[], Session]


class SqlAlchemyPayrollDataSource:
    """Read-only payroll inputs from the ORM tables."""

    def __init__(self, session_factory: SessionFactory):
        self._session_factory = session_factory

    def get_employee(self, employee_id: UUID) -> Employee | None:
        with self._session_factory() as session:
            model = session.get(EmployeeModel, employee_id)
            return model.to_dto() if model is not None else None

    def get_company(self, company_id: UUID) -> Company | None:
        with self._session_factory() as session:
            model = session.get(CompanyModel, company_id)
            return model.to_dto() if model is not None else None

    def list_active_employees(
        self,
        company_id: UUID,
        employee_codes: Sequence[str] | None = None,
    ) -> list[Employee]:
        stmt = select(EmployeeModel).where(
            EmployeeModel.company_id == company_id,
            EmployeeModel.is_active.is_(True),
        )
        if employee_codes is not None:
            stmt = stmt.where(EmployeeModel.employee_code.in_(list(employee_codes)))
        stmt = stmt.order_by(EmployeeModel.employee_code)
        with self._session_factory() as session:
            return [m.to_dto() for m in session.scalars(stmt)]

    def list_salary_components(
        self,
        company_id: UUID,
        employee_id: UUID,
    ) -> list[SalaryComponent]:
        stmt = (
            select(SalaryComponentModel)
            .where(
                SalaryComponentModel.company_id == company_id,
                SalaryComponentModel.is_active.is_(True),
                or_(
                    SalaryComponentModel.employee_id == employee_id,
                    SalaryComponentModel.employee_id.is_(None),
                ),
            )
            .order_by(SalaryComponentModel.name, SalaryComponentModel.id)
        )
        with self._session_factory() as session:
            return [m.to_dto() for m in session.scalars(stmt)]

    def has_active_components(self, employee_id: UUID) -> bool:
        stmt = select(
            exists().where(
                SalaryComponentModel.employee_id == employee_id,
                SalaryComponentModel.is_active.is_(True),
            )
        )
        with self._session_factory() as session:
            return bool(session.scalar(stmt))

    def list_approved_attendance(
        self,
        employee_id: UUID,
        period_from: date,
        period_to: date,
    ) -> list[AttendanceRecord]:
        stmt = (
            select(AttendanceRecordModel)
            .where(
                AttendanceRecordModel.employee_id == employee_id,
                AttendanceRecordModel.is_approved.is_(True),
                AttendanceRecordModel.attendance_date >= period_from,
                AttendanceRecordModel.attendance_date <= period_to,
            )
            .order_by(AttendanceRecordModel.attendance_date)
        )
        with self._session_factory() as session:
            return [m.to_dto() for m in session.scalars(stmt)]


class SqlAlchemyPayrollRecordStore:
    """Calculated payroll records in the ``payroll_records`` table."""

    def __init__(self, session_factory: SessionFactory):
        self._session_factory = session_factory

    def find_existing(
        self,
        employee_id: UUID,
        month: int,
        year: int,
    ) -> ExistingPayroll | None:
        stmt = select(PayrollRecordModel).where(
            PayrollRecordModel.employee_id == employee_id,
            PayrollRecordModel.month == month,
            PayrollRecordModel.year == year,
        )
        with self._session_factory() as session:
            model = session.scalars(stmt).first()
            return model.to_existing() if model is not None else None

    def save_calculated(
        self,
        company_id: UUID,
        result: PayrollResult,
        month: int,
        replace_id: UUID | None = None,
    ) -> UUID:
        status = PayrollStatus.CALCULATED.value
        with self._session_factory() as session, session.begin():
            model = session.get(PayrollRecordModel, replace_id) if replace_id else None
            if model is not None:
                if model.is_locked:
                    raise PayrollRecordLockedError(model.id)
                model.apply_result(result, status)
                action = "replaced"
            else:
                model = PayrollRecordModel.from_result(company_id, month, result, status)
                session.add(model)
                action = "created"
            session.flush()
            record_id = model.id

        logger.info(
            "payroll_record_saved",
            extra={
                "payroll_record_id": str(record_id),
                "employee_id": str(result.employee_id),
                "month": month,
                "year": result.year,
                "action": action,
            },
        )
        return record_id

    def set_status(
        self,
        record_id: UUID,
        status: PayrollStatus,
        *,
        lock: bool | None = None,
    ) -> None:
        """Move a record to ``status``, optionally locking or unlocking it."""
        with self._session_factory() as session, session.begin():
            model = session.get(PayrollRecordModel, record_id)
            if model is None:
                raise PayrollRecordNotFoundError(record_id)
            model.status = status.value
            if lock is not None:
                model.is_locked = lock

    def list_records(self, company_id: UUID, month: int, year: int) -> list[PayrollRecord]:
        stmt = (
            select(PayrollRecordModel)
            .where(
                PayrollRecordModel.company_id == company_id,
                PayrollRecordModel.month == month,
                PayrollRecordModel.year == year,
            )
            .order_by(PayrollRecordModel.employee_id)
        )
        with self._session_factory() as session:
            return [m.to_dto() for m in session.scalars(stmt)]

    def summarize(self, company_id: UUID, month: int, year: int) -> PayrollSummary:
        """``summarize_payroll`` over the company's records for the month."""
        return summarize_payroll(self.list_records(company_id, month, year), month, year)
