"""
Money rounding helpers.

Invariants enforced:
    - All monetary arithmetic uses ``Decimal`` -- NEVER ``float``.
    - Rounding is ROUND_HALF_UP, matching how payroll figures are
      presented on salary slips.
    - Rounding is idempotent: rounding an already-rounded value is a no-op.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

ZERO = Decimal("0")
CENT = Decimal("0.01")
UNIT = Decimal("1")


def to_decimal(value: Decimal | int | float | str | None) -> Decimal:
    """Coerce a numeric input to ``Decimal``; ``None`` becomes zero.

    Floats are converted through ``str`` so that ``0.75`` stays ``0.75``
    rather than its binary expansion.
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round_money(amount: Decimal) -> Decimal:
    """Round to 2 decimal places (half-up)."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def round_whole(amount: Decimal) -> Decimal:
    """Round to the nearest whole unit (half-up)."""
    return amount.quantize(UNIT, rounding=ROUND_HALF_UP)
