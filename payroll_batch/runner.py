"""
PayrollBatchRunner -- company-wide payroll runs with per-employee isolation.

Contract:
    ``run_for_company()`` calculates and persists payroll for every active
    employee of a company (or a subset selected by employee code) and
    returns a ``BatchRunResult``.  One employee's failure never aborts the
    run; it is recorded and the run continues.

Architecture: payroll_batch.  Depends on the collaborator protocols in
    ``payroll_modules.payroll.sources`` and on ``PayrollCalculator``.

Invariants enforced:
    - Per-employee isolation: every exception inside one employee's work
      becomes a FAILED entry.
    - Entries appear in input order regardless of completion order; each
      worker writes only its own slot, and counters are computed by a
      single reducer pass after all work is settled.
    - Locked records are never recalculated; existing records are only
      recalculated when ``force`` is set.
    - ``total_payroll_amount`` is the sum of successful net salaries.
    - All timestamps come from the injected Clock.

Failure modes (run-level, raised):
    - ``InvalidPayrollPeriodError`` for a bad month or year.
    - ``CompanyNotFoundError`` for an unknown company.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Sequence
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from datetime import datetime
from uuid import UUID, uuid4

from payroll_config.schema import PayrollEngineConfig
from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.domain.money import ZERO, round_money
from payroll_kernel.exceptions import (
    CompanyNotFoundError,
    PayrollKernelError,
    SalaryStructureMissingError,
)
from payroll_kernel.logging_config import LogContext, get_logger
from payroll_modules.payroll.models import MONTH_NAMES, Employee
from payroll_modules.payroll.service import PayrollCalculator, validate_period
from payroll_modules.payroll.sources import PayrollDataSource, PayrollRecordStore

from payroll_batch.types import (
    REASON_CANCELLED,
    REASON_EXISTS,
    REASON_LOCKED,
    BatchRunResult,
    BatchRunStatus,
    CancellationToken,
    EmployeeRunEntry,
    EmployeeRunStatus,
    EmployeeRunSummary,
)

logger = get_logger("batch.runner")

TIMEOUT_ERROR_CODE = "CALCULATION_TIMEOUT"
UNHANDLED_ERROR_CODE = "UNHANDLED_EXCEPTION"


class PayrollBatchRunner:
    """Runs payroll for a company's active workforce.

    Contract:
        - ``max_workers`` bounds concurrent employee calculations
          (1 = sequential, the default).
        - ``item_timeout`` (seconds) caps how long the runner waits on one
          employee once its calculation has started; a timed-out employee
          is recorded as failed and its result is never persisted.  Once
          an employee's save has begun it is no longer subject to the
          timeout; the run waits for the save to finish.
        - No retries.

    Non-goals:
        - Does NOT own transactions -- each store call is its own unit.
    """

    def __init__(
        self,
        data_source: PayrollDataSource,
        record_store: PayrollRecordStore,
        calculator: PayrollCalculator | None = None,
        config: PayrollEngineConfig | None = None,
        clock: Clock | None = None,
        max_workers: int = 1,
        item_timeout: float | None = None,
    ):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        if item_timeout is not None and item_timeout <= 0:
            raise ValueError("item_timeout must be positive")
        self._data = data_source
        self._store = record_store
        self._calculator = calculator or PayrollCalculator(data_source, config=config)
        self._clock = clock or SystemClock()
        self._max_workers = max_workers
        self._item_timeout = item_timeout

    # -------------------------------------------------------------------------
    # Run
    # -------------------------------------------------------------------------

    def run_for_company(
        self,
        company_id: UUID,
        month: int,
        year: int,
        *,
        employee_codes: Sequence[str] | None = None,
        force: bool = False,
        cancel_token: CancellationToken | None = None,
        correlation_id: str | None = None,
    ) -> BatchRunResult:
        """Calculate and persist payroll for the company's active employees.

        Raises:
            InvalidPayrollPeriodError: If month or year is out of range.
            CompanyNotFoundError: If company_id does not exist.
        """
        start_time = time.monotonic()
        started_at = self._clock.now()
        run_id = uuid4()
        token = cancel_token or CancellationToken()
        context = {
            "run_id": str(run_id),
            "company_id": str(company_id),
            "correlation_id": correlation_id,
        }

        with LogContext.bind(**context):
            validate_period(month, year)
            if self._data.get_company(company_id) is None:
                raise CompanyNotFoundError(company_id)

            employees = list(self._data.list_active_employees(company_id, employee_codes))
            logger.info("payroll_batch_started", extra={
                "month": month,
                "year": year,
                "total_employees": len(employees),
                "force": force,
                "max_workers": self._max_workers,
                "employee_codes": list(employee_codes) if employee_codes is not None else None,
            })

            job = _RunJob(
                runner=self,
                company_id=company_id,
                month=month,
                year=year,
                force=force,
                token=token,
                context=context,
            )
            if self._max_workers == 1 and self._item_timeout is None:
                slots = job.run_sequential(employees)
            else:
                slots = job.run_pooled(employees, self._max_workers, self._item_timeout)

            entries = tuple(
                slot if slot is not None else _skipped(i, employees[i], REASON_CANCELLED)
                for i, slot in enumerate(slots)
            )
            result = self._reduce(
                entries,
                run_id=run_id,
                company_id=company_id,
                month=month,
                year=year,
                cancelled=token.is_cancelled,
                started_at=started_at,
                completed_at=self._clock.now(),
                duration_ms=int((time.monotonic() - start_time) * 1000),
                correlation_id=correlation_id,
            )

            logger.info("payroll_batch_completed", extra={
                "status": result.status.value,
                "total_employees": result.total_employees,
                "success_count": result.success_count,
                "failed_count": result.failed_count,
                "skipped_count": result.skipped_count,
                "total_payroll_amount": str(result.total_payroll_amount),
                "cancelled": result.cancelled,
                "duration_ms": result.duration_ms,
            })
        return result

    # -------------------------------------------------------------------------
    # Per-employee work
    # -------------------------------------------------------------------------

    def _process_employee(
        self,
        index: int,
        employee: Employee,
        company_id: UUID,
        month: int,
        year: int,
        force: bool,
        ledger: _ItemLedger,
    ) -> EmployeeRunEntry | None:
        item_start = time.monotonic()

        def elapsed() -> int:
            return int((time.monotonic() - item_start) * 1000)

        try:
            if not employee.has_basic_salary and not self._data.has_active_components(employee.id):
                raise SalaryStructureMissingError(employee.id)

            existing = self._store.find_existing(employee.id, month, year)
            if existing is not None and existing.is_locked:
                logger.info("payroll_employee_skipped", extra={"reason": REASON_LOCKED})
                return _skipped(index, employee, REASON_LOCKED, elapsed())
            if existing is not None and not force:
                logger.info("payroll_employee_skipped", extra={"reason": REASON_EXISTS})
                return _skipped(index, employee, REASON_EXISTS, elapsed())

            result = self._calculator.calculate_monthly_payroll(employee.id, month, year)
            if not ledger.claim(index):
                logger.warning("payroll_employee_result_abandoned", extra={
                    "item_index": index,
                })
                return None

            record_id = self._store.save_calculated(
                company_id,
                result,
                month,
                replace_id=existing.id if existing is not None else None,
            )
            return EmployeeRunEntry(
                item_index=index,
                employee_id=employee.id,
                employee_code=employee.employee_code,
                employee_name=employee.name,
                status=EmployeeRunStatus.SUCCESS,
                payroll_record_id=record_id,
                summary=EmployeeRunSummary(
                    present_days=result.present_days,
                    basic_salary=result.basic_salary,
                    net_salary=result.net_salary,
                ),
                duration_ms=elapsed(),
            )

        except PayrollKernelError as exc:
            logger.warning("payroll_employee_failed", extra={
                "error_code": exc.code,
                "error_message": str(exc),
            })
            return _failed(index, employee, str(exc), exc.code, elapsed())
        except Exception as exc:
            logger.error("payroll_employee_failed", extra={
                "error_code": UNHANDLED_ERROR_CODE,
                "error_message": str(exc),
            }, exc_info=True)
            return _failed(index, employee, str(exc), UNHANDLED_ERROR_CODE, elapsed())

    # -------------------------------------------------------------------------
    # Reducer
    # -------------------------------------------------------------------------

    @staticmethod
    def _reduce(
        entries: tuple[EmployeeRunEntry, ...],
        *,
        run_id: UUID,
        company_id: UUID,
        month: int,
        year: int,
        cancelled: bool,
        started_at: datetime,
        completed_at: datetime,
        duration_ms: int,
        correlation_id: str | None,
    ) -> BatchRunResult:
        succeeded = failed = skipped = 0
        total_net = ZERO
        for entry in entries:
            if entry.status == EmployeeRunStatus.SUCCESS:
                succeeded += 1
                total_net += entry.summary.net_salary
            elif entry.status == EmployeeRunStatus.FAILED:
                failed += 1
            else:
                skipped += 1

        if cancelled:
            status = BatchRunStatus.CANCELLED
        elif failed == 0:
            status = BatchRunStatus.COMPLETED
        elif succeeded == 0 and skipped == 0:
            status = BatchRunStatus.FAILED
        else:
            status = BatchRunStatus.PARTIALLY_COMPLETED

        return BatchRunResult(
            run_id=run_id,
            company_id=company_id,
            month=MONTH_NAMES[month - 1],
            year=year,
            status=status,
            total_employees=len(entries),
            success_count=succeeded,
            failed_count=failed,
            skipped_count=skipped,
            total_payroll_amount=round_money(total_net),
            entries=entries,
            cancelled=cancelled,
            started_at=started_at,
            completed_at=completed_at,
            duration_ms=duration_ms,
            correlation_id=correlation_id,
        )


# =============================================================================
# Internals
# =============================================================================


class _ItemLedger:
    """
    Persist-or-abandon decision per item, made once under a lock.

    A worker ``claim``s its index right before saving; the scheduler
    ``abandon``s an index when it times out.  Whichever comes first wins,
    so a timed-out result is never saved and a save already underway is
    never reported as timed out.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._abandoned: set[int] = set()
        self._claimed: set[int] = set()

    def claim(self, index: int) -> bool:
        with self._lock:
            if index in self._abandoned:
                return False
            self._claimed.add(index)
            return True

    def abandon(self, index: int) -> bool:
        with self._lock:
            if index in self._claimed:
                return False
            self._abandoned.add(index)
            return True

    def is_claimed(self, index: int) -> bool:
        with self._lock:
            return index in self._claimed

    def is_abandoned(self, index: int) -> bool:
        with self._lock:
            return index in self._abandoned


class _RunJob:
    """State of one ``run_for_company`` call: slot array and scheduling."""

    def __init__(self, runner, company_id, month, year, force, token, context):
        self._runner = runner
        self._company_id = company_id
        self._month = month
        self._year = year
        self._force = force
        self._token = token
        self._context = context
        self._ledger = _ItemLedger()
        self._started: dict[int, float] = {}

    def _work(self, index: int, employee: Employee) -> EmployeeRunEntry | None:
        # Context variables do not cross into pool threads; rebind here.
        with LogContext.bind(employee_id=str(employee.id), **self._context):
            if self._token.is_cancelled:
                return None
            self._started[index] = time.monotonic()
            return self._runner._process_employee(
                index, employee, self._company_id, self._month, self._year,
                self._force, self._ledger,
            )

    def run_sequential(self, employees: list[Employee]) -> list[EmployeeRunEntry | None]:
        slots: list[EmployeeRunEntry | None] = [None] * len(employees)
        for index, employee in enumerate(employees):
            if self._token.is_cancelled:
                break
            slots[index] = self._work(index, employee)
        return slots

    def run_pooled(
        self,
        employees: list[Employee],
        max_workers: int,
        item_timeout: float | None,
    ) -> list[EmployeeRunEntry | None]:
        slots: list[EmployeeRunEntry | None] = [None] * len(employees)
        executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="payroll-batch",
        )
        try:
            futures: dict[Future, int] = {
                executor.submit(self._work, index, employee): index
                for index, employee in enumerate(employees)
            }
            pending = set(futures)
            while pending:
                done, pending = wait(
                    pending,
                    timeout=self._next_deadline(pending, futures, item_timeout),
                    return_when=FIRST_COMPLETED,
                )
                for future in done:
                    index = futures[future]
                    if not self._ledger.is_abandoned(index):
                        slots[index] = future.result()
                if item_timeout is not None:
                    pending = self._expire(pending, futures, employees, slots, item_timeout)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
        return slots

    def _next_deadline(self, pending, futures, item_timeout: float | None) -> float | None:
        if item_timeout is None:
            return None
        now = time.monotonic()
        remaining = [
            self._started[futures[f]] + item_timeout - now
            for f in pending
            if futures[f] in self._started and not self._ledger.is_claimed(futures[f])
        ]
        if not remaining:
            # Nothing started or only saves in flight: poll.
            return min(item_timeout, 0.05)
        return max(0.0, min(remaining))

    def _expire(self, pending, futures, employees, slots, item_timeout: float):
        now = time.monotonic()
        still_pending = set()
        for future in pending:
            index = futures[future]
            started = self._started.get(index)
            if (
                started is not None
                and now - started >= item_timeout
                and self._ledger.abandon(index)
            ):
                employee = employees[index]
                logger.error("payroll_employee_timed_out", extra={
                    "employee_id": str(employee.id),
                    "item_index": index,
                    "item_timeout": item_timeout,
                })
                slots[index] = _failed(
                    index,
                    employee,
                    f"Payroll calculation timed out after {item_timeout} seconds",
                    TIMEOUT_ERROR_CODE,
                    int(item_timeout * 1000),
                )
            else:
                still_pending.add(future)
        return still_pending


def _skipped(
    index: int, employee: Employee, reason: str, duration_ms: int = 0,
) -> EmployeeRunEntry:
    return EmployeeRunEntry(
        item_index=index,
        employee_id=employee.id,
        employee_code=employee.employee_code,
        employee_name=employee.name,
        status=EmployeeRunStatus.SKIPPED,
        reason=reason,
        duration_ms=duration_ms,
    )


def _failed(
    index: int, employee: Employee, error: str, error_code: str, duration_ms: int = 0,
) -> EmployeeRunEntry:
    return EmployeeRunEntry(
        item_index=index,
        employee_id=employee.id,
        employee_code=employee.employee_code,
        employee_name=employee.name,
        status=EmployeeRunStatus.FAILED,
        error=error,
        error_code=error_code,
        duration_ms=duration_ms,
    )
