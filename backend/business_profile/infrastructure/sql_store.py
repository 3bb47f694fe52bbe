"""SQL Remote Store — RemoteStore over the SQLAlchemy async ORM.

Invariants:
    - One short-lived session per operation; nothing is held between calls
    - Rows leave as validated record variants (schemas/records.py), never ORM instances
    - Writes are validated with validate_patch before touching the session
    - A TemporaryId in filters, update or delete raises TemporaryIdError and no SQL runs
    - Missing row on update/delete -> ResourceNotFoundError; unique violation ->
      ConflictError; anything else SQLAlchemy raises -> StoreUnavailableError
      (mapped by DatabaseSessionManager)

Design Decisions:
    - refresh() after commit: server-side and onupdate values are loaded eagerly, so
      validation never triggers an implicit (sync) lazy load
    - filter_by over hand-built expressions: filters are equality-only by contract
"""

import logging
from collections.abc import Sequence
from typing import Any
from uuid import UUID

from sqlalchemy import select

from business_profile.core.domain_types import ResourceType, is_temporary
from business_profile.core.errors import (
    RecordValidationError, ResourceNotFoundError, TemporaryIdError,
)
from business_profile.infrastructure.database import DatabaseSessionManager
from business_profile.models import ORM_MODELS
from business_profile.schemas.records import Record, validate_patch, validate_record

logger = logging.getLogger(__name__)


class SqlAlchemyRemoteStore:
    """Persistence collaborator backed by PostgreSQL (or SQLite in tests)."""

    def __init__(self, db: DatabaseSessionManager):
        self._db = db

    async def fetch_one(
        self, resource: ResourceType, filters: dict[str, Any],
    ) -> Record | None:
        model = ORM_MODELS[resource]
        stmt = select(model).filter_by(**self._filters(resource, filters)).limit(1)
        async with self._db.session(resource.value) as db:
            row = (await db.execute(stmt)).scalars().first()
            return validate_record(resource, row) if row is not None else None

    async def fetch_many(
        self,
        resource: ResourceType,
        filters: dict[str, Any],
        order_by: Sequence[str] | None = None,
    ) -> list[Record]:
        model = ORM_MODELS[resource]
        stmt = select(model).filter_by(**self._filters(resource, filters))
        for column in order_by or ():
            stmt = stmt.order_by(self._column(resource, column))
        async with self._db.session(resource.value) as db:
            rows = (await db.execute(stmt)).scalars().all()
            return [validate_record(resource, row) for row in rows]

    async def create(
        self, resource: ResourceType, fields: dict[str, Any],
    ) -> Record:
        values = validate_patch(resource, fields)
        row = ORM_MODELS[resource](**values)
        async with self._db.session(resource.value) as db:
            db.add(row)
            await db.commit()
            await db.refresh(row)
            logger.debug(
                f"Created {resource.value}",
                extra={"resource": resource.value, "entity_id": str(row.id)},
            )
            return validate_record(resource, row)

    async def update(
        self, resource: ResourceType, record_id: UUID, patch: dict[str, Any],
    ) -> Record:
        self._require_server_id(resource, record_id)
        values = validate_patch(resource, patch)
        async with self._db.session(resource.value) as db:
            row = await db.get(ORM_MODELS[resource], record_id)
            if row is None:
                raise ResourceNotFoundError(resource.value, str(record_id))
            for name, value in values.items():
                setattr(row, name, value)
            await db.commit()
            await db.refresh(row)
            return validate_record(resource, row)

    async def delete(self, resource: ResourceType, record_id: UUID) -> None:
        self._require_server_id(resource, record_id)
        async with self._db.session(resource.value) as db:
            row = await db.get(ORM_MODELS[resource], record_id)
            if row is None:
                raise ResourceNotFoundError(resource.value, str(record_id))
            await db.delete(row)
            await db.commit()

    # ── helpers ───────────────────────────────────────────────

    def _filters(self, resource: ResourceType, filters: dict[str, Any]) -> dict[str, Any]:
        for name, value in filters.items():
            self._column(resource, name)
            if is_temporary(value):
                raise TemporaryIdError(resource.value, str(value))
        return filters

    def _column(self, resource: ResourceType, name: str):
        model = ORM_MODELS[resource]
        column = model.__table__.columns.get(name)
        if column is None:
            raise RecordValidationError(
                f"{resource.value} has no column '{name}'", resource.value,
            )
        return column

    def _require_server_id(self, resource: ResourceType, record_id: object) -> None:
        if is_temporary(record_id) or not isinstance(record_id, UUID):
            raise TemporaryIdError(resource.value, str(record_id))
