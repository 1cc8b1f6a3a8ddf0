"""
Pure domain layer.

Immutable value helpers with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- I/O (except SystemClock, the sanctioned time boundary)
"""

from payroll_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from payroll_kernel.domain.money import (
    CENT,
    UNIT,
    ZERO,
    round_money,
    round_whole,
    to_decimal,
)

__all__ = [
    "CENT",
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "UNIT",
    "ZERO",
    "round_money",
    "round_whole",
    "to_decimal",
]
