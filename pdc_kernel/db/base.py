"""
Module: pdc_kernel.db.base
Responsibility: Declarative base for the PDC ledger's ORM models: UUID
    primary keys stored portably, the column type map, and the audit
    columns shared by every tracked table.
Architecture position: Kernel > DB.  Imports only SQLAlchemy; MUST NOT
    import from pdc_modules or pdc_batch.

Invariants enforced:
    - Primary keys are uuid4 values, stored as 36-character strings so the
      same schema runs on PostgreSQL and SQLite.
    - ``Decimal`` annotations map to Numeric(12, 2), the scale cheque
      amounts are written in.  Amounts are never floats.
    - Timestamps are timezone-aware.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """``uuid.UUID`` in Python, ``VARCHAR(36)`` in the database."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else UUID(value)


class Base(DeclarativeBase):
    type_annotation_map: ClassVar[dict] = {
        UUID: UUIDString(),
        Decimal: Numeric(12, 2),
        datetime: DateTime(timezone=True),
    }

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)


class TrackedBase(Base):
    """
    Adds who/when audit columns.

    ``created_at`` and ``updated_at`` come from the database clock.
    ``updated_at`` is refreshed by every UPDATE, including the Core-level
    compare-and-set status updates, and ``updated_by_id`` carries the actor
    of the latest transition.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=func.now(),
    )
    created_by_id: Mapped[UUID]
    updated_by_id: Mapped[UUID | None]
