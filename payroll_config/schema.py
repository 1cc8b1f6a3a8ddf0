"""
Payroll Engine Configuration Schema.

Every policy constant the engine relies on lives here rather than in the
calculation code: the fallback basic salary, the standard working-days
divisor, the progressive tax table, statutory percentages and thresholds,
and what to do when an employee has no approved attendance.

Override at instantiation with company- or jurisdiction-specific values:

    config = PayrollEngineConfig(
        standard_working_days=Decimal("22"),
        attendance_policy=AttendancePolicy.ZERO,
    )
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Self

from payroll_kernel.exceptions import PayrollConfigError
from payroll_kernel.logging_config import get_logger

logger = get_logger("config.schema")

MAX_DAYS_IN_MONTH = 31
PLACEHOLDER_FIELDS = (
    "placeholder_min_present_days",
    "placeholder_max_absent_days",
    "placeholder_max_leave_days",
    "placeholder_max_overtime_hours",
)


class AttendancePolicy(str, Enum):
    """What the resolver does when no approved attendance exists."""

    REQUIRE = "require"  # Raise AttendanceRequiredError
    ZERO = "zero"  # Deterministic zero-attendance summary
    PLACEHOLDER = "placeholder"  # Demo mode: randomized, high-attendance figures


@dataclass(frozen=True)
class TaxBracket:
    """
    One band of a progressive annual tax table.

    ``upper_limit`` is the cumulative annual income at which the band ends;
    ``None`` marks the open-ended top band.  ``rate`` is a fraction
    (0.05 for 5%).
    """

    upper_limit: Decimal | None
    rate: Decimal

    def __post_init__(self) -> None:
        if self.rate < 0 or self.rate > 1:
            raise PayrollConfigError("tax_brackets", f"rate {self.rate} outside [0, 1]")
        if self.upper_limit is not None and self.upper_limit <= 0:
            raise PayrollConfigError(
                "tax_brackets", f"upper_limit {self.upper_limit} must be positive"
            )


DEFAULT_TAX_BRACKETS: tuple[TaxBracket, ...] = (
    TaxBracket(Decimal("300000"), Decimal("0")),
    TaxBracket(Decimal("600000"), Decimal("0.05")),
    TaxBracket(Decimal("900000"), Decimal("0.10")),
    TaxBracket(Decimal("1200000"), Decimal("0.15")),
    TaxBracket(Decimal("1500000"), Decimal("0.20")),
    TaxBracket(None, Decimal("0.30")),
)


@dataclass(frozen=True)
class FallbackAttendance:
    """Conservative attendance used when resolution hits an internal fault."""

    total_working_days: Decimal = Decimal("26")
    present_days: Decimal = Decimal("23")  # 90% of 26, floored
    absent_days: Decimal = Decimal("2")
    leave_days: Decimal = Decimal("1")
    overtime_hours: Decimal = Decimal("8")


def _validate_brackets(brackets: tuple[TaxBracket, ...], field_name: str) -> None:
    if not brackets:
        raise PayrollConfigError(field_name, "at least one bracket is required")
    limits = [b.upper_limit for b in brackets]
    if any(limit is None for limit in limits[:-1]):
        raise PayrollConfigError(field_name, "only the last bracket may be open-ended")
    bounded = [limit for limit in limits if limit is not None]
    if bounded != sorted(bounded) or len(set(bounded)) != len(bounded):
        raise PayrollConfigError(field_name, "upper limits must be strictly ascending")


@dataclass(frozen=True)
class PayrollEngineConfig:
    """
    Configuration for the payroll calculation engine.

    Field defaults reproduce the reference policy: 30,000 fallback basic
    salary, 26 standard working days, a six-band tax table, PF 12%,
    ESI 0.75% up to a gross of 21,000, overtime at 200 per hour.
    """

    # Salary
    fallback_basic_salary: Decimal = Decimal("30000")
    standard_working_days: Decimal = Decimal("26")

    # Tax
    tax_brackets: tuple[TaxBracket, ...] = DEFAULT_TAX_BRACKETS
    tax_brackets_by_year: dict[int, tuple[TaxBracket, ...]] = field(default_factory=dict)

    # Statutory
    default_pf_percentage: Decimal = Decimal("12")
    default_esi_percentage: Decimal = Decimal("0.75")
    esi_gross_threshold: Decimal = Decimal("21000")

    # Rules
    default_overtime_rate: Decimal = Decimal("200")

    # Attendance
    attendance_policy: AttendancePolicy = AttendancePolicy.REQUIRE
    fallback_attendance: FallbackAttendance = field(default_factory=FallbackAttendance)
    placeholder_min_present_days: int = 20
    placeholder_max_absent_days: int = 2
    placeholder_max_leave_days: int = 2
    placeholder_max_overtime_hours: int = 20

    def __post_init__(self):
        if self.fallback_basic_salary < 0:
            raise PayrollConfigError("fallback_basic_salary", "cannot be negative")
        if self.standard_working_days <= 0:
            raise PayrollConfigError("standard_working_days", "must be positive")
        for name in ("default_pf_percentage", "default_esi_percentage"):
            value = getattr(self, name)
            if value < 0 or value > 100:
                raise PayrollConfigError(name, f"{value} outside [0, 100]")
        if self.esi_gross_threshold < 0:
            raise PayrollConfigError("esi_gross_threshold", "cannot be negative")
        if self.default_overtime_rate < 0:
            raise PayrollConfigError("default_overtime_rate", "cannot be negative")
        if not isinstance(self.attendance_policy, AttendancePolicy):
            raise PayrollConfigError(
                "attendance_policy", f"unknown policy {self.attendance_policy!r}"
            )
        for name in PLACEHOLDER_FIELDS:
            if getattr(self, name) < 0:
                raise PayrollConfigError(name, "cannot be negative")
        if self.placeholder_min_present_days > MAX_DAYS_IN_MONTH:
            raise PayrollConfigError(
                "placeholder_min_present_days",
                f"cannot exceed {MAX_DAYS_IN_MONTH} days",
            )

        _validate_brackets(self.tax_brackets, "tax_brackets")
        for year, brackets in self.tax_brackets_by_year.items():
            _validate_brackets(brackets, f"tax_brackets_by_year[{year}]")

        logger.debug(
            "payroll_engine_config_initialized",
            extra={
                "fallback_basic_salary": str(self.fallback_basic_salary),
                "standard_working_days": str(self.standard_working_days),
                "tax_bracket_count": len(self.tax_brackets),
                "tax_years_overridden": sorted(self.tax_brackets_by_year),
                "attendance_policy": self.attendance_policy.value,
            },
        )

    def brackets_for(self, tax_year: int) -> tuple[TaxBracket, ...]:
        """Bracket table for ``tax_year``; the default table when not overridden."""
        return self.tax_brackets_by_year.get(tax_year, self.tax_brackets)

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with the reference defaults."""
        return cls()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Create config from a dictionary (e.g. parsed YAML)."""
        logger.info(
            "payroll_engine_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        known = set(cls.__dataclass_fields__)
        unknown = set(data) - known
        if unknown:
            raise PayrollConfigError(
                ", ".join(sorted(unknown)), "unknown configuration key"
            )

        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            if key == "tax_brackets":
                kwargs[key] = _parse_brackets(value)
            elif key == "tax_brackets_by_year":
                if not isinstance(value or {}, dict):
                    raise PayrollConfigError(key, "must be a mapping of year to brackets")
                kwargs[key] = {
                    _count(f"{key}[{year}]", year): _parse_brackets(brackets)
                    for year, brackets in (value or {}).items()
                }
            elif key == "attendance_policy":
                try:
                    kwargs[key] = AttendancePolicy(value)
                except ValueError:
                    raise PayrollConfigError(key, f"unknown policy {value!r}") from None
            elif key == "fallback_attendance":
                kwargs[key] = _parse_fallback_attendance(value)
            elif key in PLACEHOLDER_FIELDS:
                kwargs[key] = _count(key, value)
            else:
                kwargs[key] = _decimal(key, value)
        return cls(**kwargs)


def _parse_brackets(raw: Any) -> tuple[TaxBracket, ...]:
    """Parse a list of ``{upper_limit, rate}`` mappings into brackets."""
    if not isinstance(raw, list):
        raise PayrollConfigError("tax_brackets", "must be a list of brackets")
    brackets = []
    for item in raw:
        try:
            limit = item.get("upper_limit")
            rate = item["rate"]
        except (AttributeError, KeyError):
            raise PayrollConfigError(
                "tax_brackets", f"bracket {item!r} needs 'rate' and optional 'upper_limit'"
            ) from None
        brackets.append(
            TaxBracket(
                upper_limit=_decimal("tax_brackets", limit) if limit is not None else None,
                rate=_decimal("tax_brackets", rate),
            )
        )
    return tuple(brackets)


def _decimal(key: str, value: Any) -> Decimal:
    """A finite Decimal from a YAML scalar; anything else is a config error."""
    if isinstance(value, bool) or not isinstance(value, (int, float, str, Decimal)):
        raise PayrollConfigError(key, f"expected a number, got {value!r}")
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        raise PayrollConfigError(key, f"expected a number, got {value!r}") from None
    if not number.is_finite():
        raise PayrollConfigError(key, f"expected a finite number, got {value!r}")
    return number


def _count(key: str, value: Any) -> int:
    """A whole number from a YAML scalar (``20`` or ``"20"``, not ``20.5``)."""
    if isinstance(value, bool):
        raise PayrollConfigError(key, f"expected a whole number, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value)
    raise PayrollConfigError(key, f"expected a whole number, got {value!r}")


def _parse_fallback_attendance(raw: Any) -> FallbackAttendance:
    if raw is None:
        return FallbackAttendance()
    if not isinstance(raw, dict):
        raise PayrollConfigError("fallback_attendance", "must be a mapping")
    known = set(FallbackAttendance.__dataclass_fields__)
    unknown = set(raw) - known
    if unknown:
        raise PayrollConfigError(
            "fallback_attendance", f"unknown key(s) {', '.join(sorted(map(str, unknown)))}"
        )
    return FallbackAttendance(
        **{k: _decimal(f"fallback_attendance.{k}", v) for k, v in raw.items()}
    )
