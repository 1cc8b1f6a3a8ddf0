"""
ORM declarative base (``payroll_kernel.db.base``).

Every payroll table derives from ``TrackedBase``: a UUID primary key plus
server-stamped ``created_at`` / ``updated_at``.  Column types come from
the annotation map, so a ``Mapped[Decimal]`` money column is always
``NUMERIC(38, 9)`` and never a float.

Nothing here imports from ``payroll_modules``; the payroll models import
this module, not the other way round.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

MONEY_COLUMN = Numeric(38, 9, asdecimal=True)
TIMESTAMP_COLUMN = DateTime(timezone=True)


class UUIDString(TypeDecorator):
    """UUIDs as 36-character text, so SQLite and PostgreSQL store them alike."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else UUID(value)


class Base(DeclarativeBase):
    type_annotation_map: ClassVar[dict] = {
        Decimal: MONEY_COLUMN,
        datetime: TIMESTAMP_COLUMN,
        UUID: UUIDString(),
    }

    id: Mapped[UUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TrackedBase(Base):
    """Abstract base adding row timestamps set by the database."""

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    # Refreshed by SQLAlchemy on every UPDATE issued through the ORM.
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now()
    )
