"""
Statutory contributions: Provident Fund (PF) and Employees' State
Insurance (ESI).

Both are whole-unit amounts.  A company percentage that is unset or zero
falls back to the engine default, so a company cannot switch a statutory
contribution off by configuring 0%.
"""

from __future__ import annotations

from decimal import Decimal

from payroll_config.schema import PayrollEngineConfig
from payroll_kernel.domain.money import ZERO, round_whole
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.statutory")

HUNDRED = Decimal("100")


def _effective_percentage(configured: Decimal | None, default: Decimal) -> Decimal:
    return configured if configured else default


def calculate_pf(
    prorated_basic: Decimal,
    pf_percentage: Decimal | None,
    config: PayrollEngineConfig,
) -> Decimal:
    """PF = prorated basic x pf% / 100, rounded half-up to whole units."""
    pct = _effective_percentage(pf_percentage, config.default_pf_percentage)
    return round_whole(prorated_basic * pct / HUNDRED)


def calculate_esi(
    gross: Decimal,
    esi_percentage: Decimal | None,
    config: PayrollEngineConfig,
) -> Decimal:
    """
    ESI = gross x esi% / 100 in whole units, only while gross is at or
    below the ESI threshold; zero above it.
    """
    if gross > config.esi_gross_threshold:
        logger.debug(
            "esi_not_applicable",
            extra={
                "gross": str(gross),
                "threshold": str(config.esi_gross_threshold),
            },
        )
        return ZERO
    pct = _effective_percentage(esi_percentage, config.default_esi_percentage)
    return round_whole(gross * pct / HUNDRED)
