"""
Rule Component Evaluator - earnings and deductions.

Evaluates a company's configurable salary rules into payroll lines.

Precedence:
    Active rules bound to the employee win; when the employee has none of
    the requested type, the company-wide rules (no employee binding) apply.
    Earning rules in the ``basic`` category are never evaluated here.

Calculation types:
    =================  ===============================  ======================
    calculation_type   earning                          deduction
    =================  ===============================  ======================
    fixed              value                            value
    percentage/basic   prorated basic x value / 100     prorated basic x v/100
    percentage/gross   0 (not evaluated)                (basic + earnings) x v/100
    overtime_formula   overtime hours x company rate    0
    attendance_rate    present days x value             0
    =================  ===============================  ======================

Each rule is evaluated into a ``ComponentOutcome`` holding either an
amount or an error.  Evaluation never raises: failures are logged and
returned as diagnostics alongside the best-effort lines.  Line amounts
are rounded to 2 decimals and non-positive amounts are omitted.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from payroll_config.schema import PayrollEngineConfig
from payroll_kernel.domain.money import ZERO, round_money
from payroll_kernel.exceptions import ComponentEvaluationError
from payroll_kernel.logging_config import get_logger
from payroll_modules.payroll.models import (
    AttendanceSummary,
    CalculationType,
    CompanySettings,
    ComponentType,
    PayrollLine,
    PercentageOf,
    SalaryComponent,
)

logger = get_logger("engines.components")

HUNDRED = Decimal("100")
BASIC_CATEGORY = "basic"

# Either the rules themselves or a zero-argument callable that loads them.
RuleSource = Iterable[SalaryComponent] | Callable[[], Iterable[SalaryComponent]]


@dataclass(frozen=True)
class ComponentOutcome:
    """Result of evaluating one rule: a rounded amount, or the error that prevented it."""

    component: SalaryComponent
    amount: Decimal | None = None
    error: ComponentEvaluationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class RuleEvaluation:
    """
    Lines produced by a rule set plus messages for suppressed failures.

    ``errors`` holds failures of the rule set as a whole (the rules could
    not be loaded or selected); per-rule failures live on ``outcomes``.
    """

    lines: tuple[PayrollLine, ...]
    outcomes: tuple[ComponentOutcome, ...]
    errors: tuple[ComponentEvaluationError, ...] = ()

    @property
    def diagnostics(self) -> tuple[str, ...]:
        return tuple(str(e) for e in self.errors) + tuple(
            str(o.error) for o in self.outcomes if o.error is not None
        )

    @property
    def total(self) -> Decimal:
        return sum((line.amount for line in self.lines), ZERO)


def select_applicable(
    rules: Iterable[SalaryComponent],
    component_type: ComponentType,
    employee_id: UUID,
) -> list[SalaryComponent]:
    """
    Rules of ``component_type`` that apply to the employee, in input order.

    Employee-bound rules take precedence over company-wide ones; the two
    sets are never mixed.
    """
    candidates = [
        r for r in rules
        if r.is_active
        and r.type == component_type
        and not (
            component_type == ComponentType.EARNING
            and r.category.lower() == BASIC_CATEGORY
        )
    ]
    bound = [r for r in candidates if r.employee_id == employee_id]
    if bound:
        return bound
    return [r for r in candidates if r.is_company_wide]


def _earning_amount(
    rule: SalaryComponent,
    prorated_basic: Decimal,
    attendance: AttendanceSummary,
    settings: CompanySettings,
    config: PayrollEngineConfig,
) -> Decimal:
    calc = rule.calculation_type
    if calc == CalculationType.FIXED:
        return rule.value
    if calc == CalculationType.PERCENTAGE:
        if rule.percentage_of == PercentageOf.BASIC:
            return prorated_basic * rule.value / HUNDRED
        # Percentage of gross is circular for earnings.
        return ZERO
    if calc == CalculationType.OVERTIME_FORMULA:
        rate = settings.overtime_rate_per_hour
        if rate is None:
            rate = config.default_overtime_rate
        return attendance.overtime_hours * rate
    if calc == CalculationType.ATTENDANCE_RATE:
        return attendance.present_days * rule.value
    raise ComponentEvaluationError(rule.name, f"unsupported calculation type {calc!r}")


def _deduction_amount(
    rule: SalaryComponent,
    prorated_basic: Decimal,
    earnings_total: Decimal,
) -> Decimal:
    calc = rule.calculation_type
    if calc == CalculationType.FIXED:
        return rule.value
    if calc == CalculationType.PERCENTAGE:
        if rule.percentage_of == PercentageOf.BASIC:
            return prorated_basic * rule.value / HUNDRED
        if rule.percentage_of == PercentageOf.GROSS:
            return (prorated_basic + earnings_total) * rule.value / HUNDRED
        return ZERO
    if calc in (CalculationType.OVERTIME_FORMULA, CalculationType.ATTENDANCE_RATE):
        return ZERO
    raise ComponentEvaluationError(rule.name, f"unsupported calculation type {calc!r}")


def _evaluate(rule: SalaryComponent, compute) -> ComponentOutcome:
    try:
        return ComponentOutcome(component=rule, amount=round_money(compute()))
    except ComponentEvaluationError as exc:
        error = exc
    except Exception as exc:
        error = ComponentEvaluationError(rule.name, str(exc) or type(exc).__name__)
    logger.warning(
        "component_evaluation_failed",
        extra={
            "component_id": str(rule.id),
            "component_name": rule.name,
            "component_type": rule.type.value,
            "calculation_type": rule.calculation_type.value,
            "reason": error.reason,
        },
    )
    return ComponentOutcome(component=rule, error=error)


def _applicable(
    rules: RuleSource,
    component_type: ComponentType,
    employee_id: UUID,
) -> tuple[list[SalaryComponent], ComponentEvaluationError | None]:
    try:
        loaded = rules() if callable(rules) else rules
        return select_applicable(loaded, component_type, employee_id), None
    except Exception as exc:
        error = ComponentEvaluationError(
            f"{component_type.value} rules", str(exc) or type(exc).__name__,
        )
        logger.error(
            "component_rules_unavailable",
            extra={
                "employee_id": str(employee_id),
                "component_type": component_type.value,
                "reason": error.reason,
            },
            exc_info=True,
        )
        return [], error


def _collapse(
    outcomes: Sequence[ComponentOutcome],
    load_error: ComponentEvaluationError | None = None,
) -> RuleEvaluation:
    lines = []
    for outcome in outcomes:
        if not outcome.ok:
            continue
        if outcome.amount > 0:
            lines.append(
                PayrollLine(
                    component=outcome.component.name,
                    amount=outcome.amount,
                    is_taxable=outcome.component.taxable,
                )
            )
    return RuleEvaluation(
        lines=tuple(lines),
        outcomes=tuple(outcomes),
        errors=(load_error,) if load_error is not None else (),
    )


def evaluate_earnings(
    employee_id: UUID,
    rules: RuleSource,
    prorated_basic: Decimal,
    attendance: AttendanceSummary,
    settings: CompanySettings,
    config: PayrollEngineConfig,
) -> RuleEvaluation:
    """
    Evaluate the applicable earning rules for one employee.

    ``rules`` may be a loader; a failure to load or select the rules
    yields no lines and one diagnostic.
    """
    applicable, load_error = _applicable(rules, ComponentType.EARNING, employee_id)
    outcomes = [
        _evaluate(
            rule,
            lambda rule=rule: _earning_amount(
                rule, prorated_basic, attendance, settings, config
            ),
        )
        for rule in applicable
    ]
    evaluation = _collapse(outcomes, load_error)
    logger.debug(
        "earnings_evaluated",
        extra={
            "employee_id": str(employee_id),
            "rule_count": len(applicable),
            "line_count": len(evaluation.lines),
            "failed_count": len(evaluation.diagnostics),
        },
    )
    return evaluation


def evaluate_deductions(
    employee_id: UUID,
    rules: RuleSource,
    prorated_basic: Decimal,
    earnings: Sequence[PayrollLine],
) -> RuleEvaluation:
    """Evaluate the applicable deduction rules for one employee."""
    applicable, load_error = _applicable(rules, ComponentType.DEDUCTION, employee_id)
    earnings_total = sum((line.amount for line in earnings), ZERO)
    outcomes = [
        _evaluate(
            rule,
            lambda rule=rule: _deduction_amount(rule, prorated_basic, earnings_total),
        )
        for rule in applicable
    ]
    evaluation = _collapse(outcomes, load_error)
    logger.debug(
        "deductions_evaluated",
        extra={
            "employee_id": str(employee_id),
            "rule_count": len(applicable),
            "line_count": len(evaluation.lines),
            "failed_count": len(evaluation.diagnostics),
        },
    )
    return evaluation
