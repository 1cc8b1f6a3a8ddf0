"""
payroll_batch.types -- Frozen DTOs and the cancellation token for
company-wide payroll runs.

Frozen dataclasses with enum status fields and tuples for immutable
collections.  ZERO I/O.

Invariants enforced:
    - All DTOs are frozen (immutable).
    - ``BatchRunResult`` counters always agree with its entries:
      success + failed + skipped == total_employees.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID


# =============================================================================
# Status enums
# =============================================================================


class EmployeeRunStatus(str, Enum):
    """Per-employee outcome within a batch run."""

    SUCCESS = "success"  # Calculated and persisted
    FAILED = "failed"  # Calculation or persistence raised
    SKIPPED = "skipped"  # Locked, already calculated, or run cancelled


class BatchRunStatus(str, Enum):
    """Run-level outcome."""

    COMPLETED = "completed"  # No failures
    PARTIALLY_COMPLETED = "partially_completed"  # Some employees failed
    FAILED = "failed"  # Every processed employee failed
    CANCELLED = "cancelled"  # Cancellation requested during the run


# Skip reasons
REASON_LOCKED = "Payroll is locked"
REASON_EXISTS = "Payroll already exists (use force flag to recalculate)"
REASON_CANCELLED = "Batch run cancelled"


# =============================================================================
# Cancellation
# =============================================================================


class CancellationToken:
    """Cooperative cancellation flag shared between caller and runner.

    Once cancelled, the runner starts no further employee calculations;
    calculations already in flight run to completion.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()


# =============================================================================
# Result DTOs
# =============================================================================


@dataclass(frozen=True)
class EmployeeRunSummary:
    """Headline figures of a successful calculation."""

    present_days: Decimal
    basic_salary: Decimal
    net_salary: Decimal


@dataclass(frozen=True)
class EmployeeRunEntry:
    """Outcome for one employee in a batch run.

    Exactly one of ``payroll_record_id`` (success), ``error`` (failed) or
    ``reason`` (skipped) is set.
    """

    item_index: int  # 0-indexed position in the run's employee list
    employee_id: UUID
    employee_code: str
    employee_name: str
    status: EmployeeRunStatus
    payroll_record_id: UUID | None = None
    error: str | None = None
    error_code: str | None = None
    reason: str | None = None
    summary: EmployeeRunSummary | None = None
    duration_ms: int = 0

    @property
    def success(self) -> bool:
        return self.status == EmployeeRunStatus.SUCCESS


@dataclass(frozen=True)
class BatchRunResult:
    """Immutable result of a company-wide payroll run.

    Returned by ``PayrollBatchRunner.run_for_company()``.
    """

    run_id: UUID
    company_id: UUID
    month: str  # Month name, e.g. "March"
    year: int
    status: BatchRunStatus
    total_employees: int
    success_count: int
    failed_count: int
    skipped_count: int
    total_payroll_amount: Decimal
    entries: tuple[EmployeeRunEntry, ...] = ()
    cancelled: bool = False
    started_at: datetime | None = None
    completed_at: datetime | None = None
    duration_ms: int = 0
    correlation_id: str | None = None

    def entry_for(self, employee_code: str) -> EmployeeRunEntry | None:
        for entry in self.entries:
            if entry.employee_code == employee_code:
                return entry
        return None
