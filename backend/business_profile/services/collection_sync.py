"""Collection Sync Manager — optimistic add/update/remove with temporary-id reconciliation.

Invariants:
    - add() shows the item immediately under a TemporaryId; the create runs in the background
      and, on success, the id is replaced in place (same list position, no duplicate)
    - A failed create removes the optimistic item and emits CREATE_FAILED — no orphaned
      temporary entries stay visible
    - update() applies locally at once; the remote write waits until the entity has a server
      id and only sends fields that differ from the last acknowledged row
    - Updates queued behind a pending create coalesce into a single write
    - remove() of a never-persisted entity is local only; if its create lands later, the new
      row is deleted so the store does not keep an entity the user removed
    - A failed delete puts the entity back at its old position and emits DELETE_FAILED
    - Background results are applied only if the entry is still attached and the session
      is still active
    - No automatic retry: failures are emitted, retries are the caller's policy

Design Decisions:
    - One asyncio.Lock per entry: create -> flush -> delete for the same entity run in trigger
      order while different entities proceed concurrently
    - Tasks tracked in a set and exposed through settle(): callers (tests, the explicit "save"
      action) can wait for quiescence without a cancellation primitive
    - Bookkeeping lives in core/collection_state.py; this class only does IO around it
"""

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

from business_profile.core.collection_state import CollectionEntry, CollectionState
from business_profile.core.domain_types import CollectionName, EntityId, TemporaryId
from business_profile.core.editing_context import EditingContext, SyncEventKind
from business_profile.core.errors import (
    ErrorContext, ProfileEditorError, ResourceNotFoundError,
)
from business_profile.core.repository_protocols import RemoteStore
from business_profile.schemas.records import Record, validate_patch

logger = logging.getLogger(__name__)

_OWNER_FIELD = "company_id"


class CollectionSyncManager:
    """Keeps one ordered tenant collection in step with the store."""

    def __init__(
        self,
        context: EditingContext,
        store: RemoteStore,
        collection: CollectionName,
        records: list[Record],
    ):
        self._context = context
        self._store = store
        self.collection = collection
        self.resource = collection.resource
        self._state = CollectionState.from_records(records)
        self._locks: dict[CollectionEntry, asyncio.Lock] = {}
        self._queued_flush: set[CollectionEntry] = set()
        self._tasks: set[asyncio.Task] = set()

    # ── reads ─────────────────────────────────────────────────

    @property
    def items(self) -> list[dict[str, Any]]:
        return self._state.as_list()

    @property
    def ids(self) -> list[EntityId]:
        return [e.id for e in self._state.entries]

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def get(self, entity_id: object) -> dict[str, Any]:
        return self._require(entity_id).as_dict()

    # ── operations ────────────────────────────────────────────

    def add(self, draft: dict[str, Any]) -> TemporaryId:
        fields = self._validate(draft)
        entry = self._state.add_draft(fields)
        self._spawn(self._create(entry))
        return entry.temp_id

    def stage(self, entity_id: object, patch: dict[str, Any]) -> None:
        """Local edit only; nothing is sent until commit_item()."""
        entry = self._require(entity_id)
        self._state.stage(entry, self._validate(patch))

    def commit_item(self, entity_id: object) -> bool:
        """Send this item's changed fields. Returns False if there is nothing to send."""
        entry = self._require(entity_id)
        if entry.persisted and not entry.pending_changes():
            return False
        if entry not in self._queued_flush:
            self._queued_flush.add(entry)
            self._spawn(self._flush(entry))
        return True

    def update(self, entity_id: object, patch: dict[str, Any]) -> None:
        self.stage(entity_id, patch)
        self.commit_item(entity_id)

    def remove(self, entity_id: object) -> None:
        entry = self._require(entity_id)
        index = self._state.detach(entry)
        self._queued_flush.discard(entry)
        if not entry.persisted:
            logger.info(
                f"Removed unsaved {self.resource.value} locally",
                extra=self._context.log_extra(entity_id=str(entry.id)),
            )
            return
        self._spawn(self._delete(entry, index))

    async def settle(self) -> None:
        """Wait until every background operation (and any it spawned) has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    # ── background work ───────────────────────────────────────

    async def _create(self, entry: CollectionEntry) -> None:
        async with self._lock_for(entry):
            try:
                record = await self._store.create(
                    self.resource,
                    {**entry.draft, _OWNER_FIELD: self._context.tenant_id},
                )
            except ProfileEditorError as e:
                self._locks.pop(entry, None)
                if self._state.rollback_create(entry):
                    self._report(SyncEventKind.CREATE_FAILED, entry.temp_id, e)
                return

            if not self._state.is_attached(entry):
                self._locks.pop(entry, None)
                await self._delete_orphan(record)
                return
            if not self._context.is_active:
                return
            self._state.resolve_create(entry, record)
            self._context.emit(
                SyncEventKind.CREATED, resource=self.resource.value, entity_id=record.id,
            )

    async def _flush(self, entry: CollectionEntry) -> None:
        async with self._lock_for(entry):
            self._queued_flush.discard(entry)
            if not self._applies(entry) or not entry.persisted:
                return
            changes = entry.pending_changes()
            if not changes:
                return
            try:
                record = await self._store.update(self.resource, entry.server_id, changes)
            except ProfileEditorError as e:
                if self._applies(entry):
                    self._report(SyncEventKind.SAVE_FAILED, entry.server_id, e)
                return
            if self._applies(entry):
                self._state.acknowledge(entry, changes, record)
                self._context.emit(
                    SyncEventKind.SAVED, resource=self.resource.value,
                    entity_id=entry.server_id,
                )

    async def _delete(self, entry: CollectionEntry, index: int) -> None:
        async with self._lock_for(entry):
            try:
                await self._store.delete(self.resource, entry.server_id)
            except ResourceNotFoundError:
                logger.info(
                    f"{self.resource.value} {entry.server_id} already gone",
                    extra=self._context.log_extra(entity_id=str(entry.server_id)),
                )
            except ProfileEditorError as e:
                if self._context.is_active:
                    self._state.restore(entry, index)
                    self._report(SyncEventKind.DELETE_FAILED, entry.server_id, e)
                return
            self._locks.pop(entry, None)
            if self._context.is_active:
                self._context.emit(
                    SyncEventKind.DELETED, resource=self.resource.value,
                    entity_id=entry.server_id,
                )

    async def _delete_orphan(self, record: Record) -> None:
        """The user removed the item while its create was in flight."""
        try:
            await self._store.delete(self.resource, record.id)
        except ProfileEditorError as e:
            self._report(SyncEventKind.DELETE_FAILED, record.id, e)

    # ── helpers ───────────────────────────────────────────────

    def _validate(self, fields: dict[str, Any]) -> dict[str, Any]:
        coerced = validate_patch(self.resource, fields)
        coerced.pop(_OWNER_FIELD, None)
        return coerced

    def _require(self, entity_id: object) -> CollectionEntry:
        entry = self._state.find(entity_id)
        if entry is None:
            raise ResourceNotFoundError(
                self.resource.value, str(entity_id),
                ErrorContext(
                    tenant_id=str(self._context.tenant_id),
                    session_id=str(self._context.session_id),
                    entity_id=str(entity_id),
                ),
            )
        return entry

    def _applies(self, entry: CollectionEntry) -> bool:
        return self._context.is_active and self._state.is_attached(entry)

    def _lock_for(self, entry: CollectionEntry) -> asyncio.Lock:
        return self._locks.setdefault(entry, asyncio.Lock())

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _report(
        self, kind: SyncEventKind, entity_id: object, error: ProfileEditorError,
    ) -> None:
        logger.warning(
            f"{kind.value} for {self.resource.value}: {error.message}",
            extra=self._context.log_extra(
                entity_id=str(entity_id), error_code=error.code,
            ),
        )
        if self._context.is_active:
            self._context.emit(
                kind, resource=self.resource.value, entity_id=entity_id, error=error,
            )
