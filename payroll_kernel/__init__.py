"""
Payroll Kernel

Shared foundations for the payroll calculation engine:
- Structured JSON logging with context propagation
- Typed exception hierarchy with machine-readable codes
- Injectable clock
- Decimal money rounding
- SQLAlchemy declarative base and engine/session management
"""

__version__ = "0.1.0"
