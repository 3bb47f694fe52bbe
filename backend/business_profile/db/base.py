"""SQLAlchemy Declarative Base — shared base class and column mixins for all ORM models.

Invariants:
    - All models inherit from Base
    - Base is the single source of truth for table metadata
    - Every row has a UUID id and created_at/updated_at maintained by the ORM

Design Decisions:
    - Separate file for Base: avoids circular imports between models
    - Generic Uuid type instead of the postgresql dialect UUID: same native column on
      PostgreSQL, CHAR(32) on SQLite so the store tests run without a server
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all business profile ORM models."""
    pass


class RecordMixin:
    """Identity and bookkeeping columns shared by every table."""

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow,
    )


class TenantOwnedMixin(RecordMixin):
    """Rows that belong to exactly one company."""

    @declared_attr
    def company_id(cls) -> Mapped[uuid.UUID]:
        return mapped_column(
            Uuid(as_uuid=True),
            ForeignKey("companies.id", ondelete="CASCADE"),
            nullable=False, index=True,
        )
