#!/usr/bin/env python3
"""
Run payroll for every active employee of a company and print the outcome.

Reads companies, employees, salary components and attendance from the
payroll tables, writes calculated payroll records back, and prints one
line per employee plus the run totals.

Usage:
    python3 scripts/run_payroll.py --company <uuid> --month 3 --year 2025 [options]

Examples:
    # Whole company, sequential
    python3 scripts/run_payroll.py --company 0d9c... --month 3 --year 2025

    # Two employees, recalculating existing records, four workers
    python3 scripts/run_payroll.py --company 0d9c... --month 3 --year 2025 \\
        --employee EMP001 --employee EMP002 --force --workers 4

    # Engine policy from YAML
    python3 scripts/run_payroll.py --company 0d9c... --month 3 --year 2025 \\
        --config config/payroll.yaml
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from uuid import UUID, uuid4

# Project root on sys.path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

DB_URL = os.environ.get("PAYROLL_DATABASE_URL", "sqlite:///payroll.db")


def _positive_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{text!r} is not a whole number") from None
    if value < 1:
        raise argparse.ArgumentTypeError("must be at least 1")
    return value


def _positive_float(text: str) -> float:
    try:
        value = float(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{text!r} is not a number") from None
    if not value > 0:
        raise argparse.ArgumentTypeError("must be greater than 0")
    return value


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Calculate and persist payroll for a company's active employees.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--company", required=True, type=UUID, help="Company UUID.")
    parser.add_argument("--month", required=True, type=int, help="Month (1-12).")
    parser.add_argument("--year", required=True, type=int, help="Year (2000-2100).")
    parser.add_argument(
        "--employee",
        action="append",
        dest="employee_codes",
        default=None,
        help="Limit the run to this employee code (repeatable).",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Recalculate employees that already have an unlocked record.",
    )
    parser.add_argument(
        "--workers",
        type=_positive_int,
        default=1,
        help="Concurrent employee calculations (default: 1).",
    )
    parser.add_argument(
        "--item-timeout",
        type=_positive_float,
        default=None,
        help="Seconds to wait on one employee before recording a failure.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML engine configuration (default: built-in defaults).",
    )
    parser.add_argument(
        "--db-url",
        default=DB_URL,
        help=f"Database URL (default: {DB_URL!r}).",
    )
    parser.add_argument("--create-tables", action="store_true", help="Create tables first.")
    parser.add_argument("-v", "--verbose", action="store_true", help="DEBUG logging.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    # Lazy imports so we fail fast on args first
    import yaml

    from payroll_batch import PayrollBatchRunner
    from payroll_config import PayrollEngineConfig, load_engine_config
    from payroll_kernel.db.engine import create_tables, get_session_factory, init_engine_from_url
    from payroll_kernel.exceptions import PayrollKernelError
    from payroll_kernel.logging_config import configure_logging
    from payroll_modules.payroll.repository import (
        SqlAlchemyPayrollDataSource,
        SqlAlchemyPayrollRecordStore,
    )

    configure_logging(level=logging.DEBUG if args.verbose else logging.INFO)

    try:
        config = (
            load_engine_config(args.config)
            if args.config is not None
            else PayrollEngineConfig.with_defaults()
        )
    except (OSError, yaml.YAMLError, PayrollKernelError) as e:
        print(f"ERROR: Could not load configuration: {e}", file=sys.stderr)
        return 1

    init_engine_from_url(args.db_url)
    if args.create_tables:
        create_tables()
    session_factory = get_session_factory()

    data_source = SqlAlchemyPayrollDataSource(session_factory)
    runner = PayrollBatchRunner(
        data_source,
        SqlAlchemyPayrollRecordStore(session_factory),
        config=config,
        max_workers=args.workers,
        item_timeout=args.item_timeout,
    )

    try:
        result = runner.run_for_company(
            args.company,
            args.month,
            args.year,
            employee_codes=args.employee_codes,
            force=args.force,
            correlation_id=str(uuid4()),
        )
    except PayrollKernelError as e:
        print(f"ERROR [{e.code}]: {e}", file=sys.stderr)
        return 1

    print(f"Payroll run {result.run_id} -- {result.month} {result.year}")
    for entry in result.entries:
        if entry.success:
            detail = f"net {entry.summary.net_salary}"
        elif entry.error is not None:
            detail = f"{entry.error_code}: {entry.error}"
        else:
            detail = entry.reason
        print(f"  {entry.employee_code:<12} {entry.employee_name:<30} {entry.status.value:<8} {detail}")
    print(
        f"Total {result.total_employees}: {result.success_count} succeeded, "
        f"{result.failed_count} failed, {result.skipped_count} skipped; "
        f"payroll amount {result.total_payroll_amount}"
    )
    return 0 if result.failed_count == 0 else 2


if __name__ == "__main__":
    sys.exit(main())
