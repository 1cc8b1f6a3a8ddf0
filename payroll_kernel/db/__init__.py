"""Database layer: declarative base and engine/session management."""

from payroll_kernel.db.base import Base, TrackedBase, UUIDString

__all__ = ["Base", "TrackedBase", "UUIDString"]
