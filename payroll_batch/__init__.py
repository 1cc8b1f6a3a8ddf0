"""
Company-wide payroll runs.

    runner = PayrollBatchRunner(data_source, record_store, max_workers=4)
    result = runner.run_for_company(company_id, month=3, year=2025)
"""

from payroll_batch.runner import PayrollBatchRunner
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

__all__ = [
    "REASON_CANCELLED",
    "REASON_EXISTS",
    "REASON_LOCKED",
    "BatchRunResult",
    "BatchRunStatus",
    "CancellationToken",
    "EmployeeRunEntry",
    "EmployeeRunStatus",
    "EmployeeRunSummary",
    "PayrollBatchRunner",
]
