"""
Declarative base for the approval workflow tables.

Every table gets a uuid4 surrogate key named ``id``; the organization's own
identifiers (employee number, department code, project code, request type
and level) are ordinary columns.  ``TrackedBase`` adds creation and update
stamps with the acting employee number.

Type conventions:
    - ``datetime`` columns are timezone-aware.
    - ``int`` columns are BIGINT; employee and organization codes are
      externally assigned and may be large.
    - UUIDs are stored as 36-character strings so the same schema runs on
      PostgreSQL and on SQLite.
"""

from datetime import datetime
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import BigInteger, DateTime, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else UUID(value)


class Base(DeclarativeBase):
    type_annotation_map: ClassVar[dict] = {
        datetime: DateTime(timezone=True),
        UUID: UUIDString(),
        int: BigInteger,
    }

    id: Mapped[UUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TrackedBase(Base):
    """Adds created/updated timestamps and the employee numbers behind them.

    Seeded rows have no actor, so the actor columns are nullable.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False,
    )
    created_by_id: Mapped[int | None] = mapped_column(nullable=True)
    updated_by_id: Mapped[int | None] = mapped_column(nullable=True)
