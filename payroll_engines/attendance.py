"""
Attendance Summary Resolver.

Turns an employee's approved attendance records for a pay period into an
``AttendanceSummary``.  When no approved records exist, the configured
``AttendancePolicy`` decides between raising, a deterministic zero
summary, or randomized placeholder figures (demo mode only).

Invariants:
    - ``present`` counts 1, ``half-day`` counts 0.5 present and 0.5 leave.
    - ``total_working_days`` is the number of considered records, or the
      weekday count of the period when records are absent.
    - Placeholder figures satisfy present + absent + leave <= total.
    - ``AttendanceRequiredError`` is a policy outcome, never swallowed by
      the internal-fault fallback.

Failure modes:
    - Loader or record faults -> conservative fallback summary
      (``source = fallback``), logged at ERROR.
"""

from __future__ import annotations

import random
import threading
from collections.abc import Callable, Sequence
from datetime import date, timedelta
from decimal import Decimal
from uuid import UUID

from payroll_config.schema import AttendancePolicy, PayrollEngineConfig
from payroll_kernel.domain.money import ZERO
from payroll_kernel.exceptions import AttendanceRequiredError
from payroll_kernel.logging_config import get_logger
from payroll_modules.payroll.models import (
    AttendanceRecord,
    AttendanceSource,
    AttendanceStatus,
    AttendanceSummary,
)

logger = get_logger("engines.attendance")

HALF = Decimal("0.5")
ONE = Decimal("1")

RecordLoader = Callable[[UUID, date, date], Sequence[AttendanceRecord]]


def count_weekdays(start: date, end: date) -> int:
    """Number of Monday-to-Friday dates in the inclusive range."""
    if end < start:
        return 0
    days = (end - start).days + 1
    full_weeks, remainder = divmod(days, 7)
    count = full_weeks * 5
    for offset in range(remainder):
        if (start + timedelta(days=full_weeks * 7 + offset)).weekday() < 5:
            count += 1
    return count


def summarize_records(records: Sequence[AttendanceRecord]) -> AttendanceSummary:
    """Aggregate attendance records into a summary."""
    present = absent = leave = overtime = ZERO
    for record in records:
        if record.overtime_hours < 0:
            raise ValueError(
                f"Attendance record on {record.date} has negative overtime hours"
            )
        if record.status == AttendanceStatus.PRESENT:
            present += ONE
            overtime += record.overtime_hours
        elif record.status == AttendanceStatus.ABSENT:
            absent += ONE
        elif record.status == AttendanceStatus.LEAVE:
            leave += ONE
        elif record.status == AttendanceStatus.HALF_DAY:
            present += HALF
            leave += HALF

    return AttendanceSummary(
        total_working_days=Decimal(len(records)),
        present_days=present,
        absent_days=absent,
        leave_days=leave,
        overtime_hours=overtime,
        source=AttendanceSource.RECORDS,
    )


def zero_summary(period_from: date, period_to: date) -> AttendanceSummary:
    """No attendance at all over the period's weekdays."""
    return AttendanceSummary(
        total_working_days=Decimal(count_weekdays(period_from, period_to)),
        present_days=ZERO,
        absent_days=ZERO,
        leave_days=ZERO,
        overtime_hours=ZERO,
        source=AttendanceSource.ZERO,
    )


def placeholder_summary(
    period_from: date,
    period_to: date,
    config: PayrollEngineConfig,
    rng: random.Random,
) -> AttendanceSummary:
    """
    Randomized high-attendance figures for demo environments.

    present is drawn from the half-open range [min_present, total), so a
    draw never equals total once total exceeds min_present; the exclusive
    upper bound is the established placeholder policy, not an off-by-one.
    When the period has no more weekdays than min_present, present equals
    total.  Absent, leave and overtime are drawn from [0, max]; absent,
    leave and then present are clamped so the day counts never exceed the
    period.
    """
    total = count_weekdays(period_from, period_to)
    floor_days = config.placeholder_min_present_days
    present = rng.randrange(floor_days, total) if total > floor_days else total
    overtime = rng.randint(0, config.placeholder_max_overtime_hours)
    absent = min(rng.randint(0, config.placeholder_max_absent_days), total)
    leave = min(rng.randint(0, config.placeholder_max_leave_days), total - absent)
    present = max(0, min(present, total - absent - leave))

    return AttendanceSummary(
        total_working_days=Decimal(total),
        present_days=Decimal(present),
        absent_days=Decimal(absent),
        leave_days=Decimal(leave),
        overtime_hours=Decimal(overtime),
        source=AttendanceSource.PLACEHOLDER,
    )


def fallback_summary(config: PayrollEngineConfig) -> AttendanceSummary:
    """The fixed conservative summary used after an internal fault."""
    fb = config.fallback_attendance
    return AttendanceSummary(
        total_working_days=fb.total_working_days,
        present_days=fb.present_days,
        absent_days=fb.absent_days,
        leave_days=fb.leave_days,
        overtime_hours=fb.overtime_hours,
        source=AttendanceSource.FALLBACK,
    )


class AttendanceResolver:
    """
    Resolves attendance for one employee and period.

    ``load_records`` is usually ``PayrollDataSource.list_approved_attendance``.
    ``rng`` is only consulted under the placeholder policy; inject a seeded
    ``random.Random`` for reproducible output.
    """

    def __init__(
        self,
        load_records: RecordLoader,
        config: PayrollEngineConfig | None = None,
        rng: random.Random | None = None,
    ):
        self._load_records = load_records
        self._config = config or PayrollEngineConfig.with_defaults()
        self._rng = rng or random.Random()
        self._rng_lock = threading.Lock()

    def resolve(
        self,
        employee_id: UUID,
        period_from: date,
        period_to: date,
    ) -> AttendanceSummary:
        try:
            records = [
                r
                for r in self._load_records(employee_id, period_from, period_to)
                if r.is_approved and period_from <= r.date <= period_to
            ]
            summary = summarize_records(records) if records else None
        except Exception:
            logger.error(
                "attendance_resolution_failed",
                extra={
                    "employee_id": str(employee_id),
                    "period_from": period_from.isoformat(),
                    "period_to": period_to.isoformat(),
                },
                exc_info=True,
            )
            return fallback_summary(self._config)

        if summary is not None:
            logger.debug(
                "attendance_summarized",
                extra={
                    "employee_id": str(employee_id),
                    "record_count": len(records),
                    "present_days": str(summary.present_days),
                },
            )
            return summary

        return self._resolve_missing(employee_id, period_from, period_to)

    def _resolve_missing(
        self,
        employee_id: UUID,
        period_from: date,
        period_to: date,
    ) -> AttendanceSummary:
        policy = self._config.attendance_policy

        if policy == AttendancePolicy.REQUIRE:
            logger.info(
                "attendance_missing_required",
                extra={
                    "employee_id": str(employee_id),
                    "period_from": period_from.isoformat(),
                    "period_to": period_to.isoformat(),
                },
            )
            raise AttendanceRequiredError(employee_id, period_from, period_to)

        if policy == AttendancePolicy.ZERO:
            logger.info(
                "attendance_missing_zero_summary",
                extra={"employee_id": str(employee_id)},
            )
            return zero_summary(period_from, period_to)

        with self._rng_lock:
            summary = placeholder_summary(period_from, period_to, self._config, self._rng)
        logger.warning(
            "attendance_placeholder_generated",
            extra={
                "employee_id": str(employee_id),
                "period_from": period_from.isoformat(),
                "period_to": period_to.isoformat(),
                "present_days": str(summary.present_days),
                "overtime_hours": str(summary.overtime_hours),
            },
        )
        return summary
