"""Field Sync Buffer — autosave of one scalar field, only when it changed.

Invariants:
    - commit() on a clean buffer issues zero remote calls
    - Commits on one buffer run one at a time, in the order they were triggered
    - Failed commit: local value kept, buffer dirty again, SAVE_FAILED emitted
    - A result arriving after rebind() or after the session closed is reported STALE and
      never applied
    - set_local() validates and coerces against the record variant before comparing
    - settle() returns only after the commit in flight has landed and been applied

Design Decisions:
    - asyncio.Lock per buffer: trigger-order commits without a queue structure
    - State decisions delegated to core/field_buffer.py; this class only does IO, events
      and logging around it
    - on_saved callback: the session keeps one registry of latest singleton rows, so the
      channel view and other buffers see what this buffer stored
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable
from uuid import UUID

from business_profile.core.domain_types import BufferState, CommitStatus, ResourceType
from business_profile.core.editing_context import EditingContext, SyncEventKind
from business_profile.core.errors import ProfileEditorError
from business_profile.core.field_buffer import FieldEditBuffer
from business_profile.core.repository_protocols import RemoteStore
from business_profile.schemas.records import Record, validate_patch

logger = logging.getLogger(__name__)


@dataclass
class CommitOutcome:
    """Typed result of one commit — what the UI renders as saved / error."""
    status: CommitStatus
    value: Any = None
    error: ProfileEditorError | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "value": self.value,
            "error": self.error.to_event() if self.error else None,
        }


class FieldSyncBuffer:
    """Write-on-change-only binding between one record field and the store."""

    def __init__(
        self,
        context: EditingContext,
        store: RemoteStore,
        resource: ResourceType,
        record_id: UUID,
        field: str,
        value: Any,
        on_saved: Callable[[Record], None] | None = None,
    ):
        self._context = context
        self._store = store
        self.resource = resource
        self.record_id = record_id
        self.field = field
        self._buffer = FieldEditBuffer.mount(value)
        self._on_saved = on_saved
        self._lock = asyncio.Lock()

    @property
    def value(self) -> Any:
        return self._buffer.value

    @property
    def committed(self) -> Any:
        return self._buffer.committed

    @property
    def state(self) -> BufferState:
        return self._buffer.state

    def set_local(self, value: Any) -> None:
        coerced = validate_patch(self.resource, {self.field: value})[self.field]
        self._buffer.set_local(coerced)

    def rebind(self, value: Any, record_id: UUID | None = None) -> None:
        """Re-mount on a new external value; in-flight results become stale."""
        if record_id is not None:
            self.record_id = record_id
        self._buffer.rebind(value)

    async def settle(self) -> None:
        """Wait for the commit in flight, if any, to finish."""
        async with self._lock:
            return

    async def commit(self) -> CommitOutcome:
        async with self._lock:
            ticket = self._buffer.begin_commit()
            if ticket is None:
                return CommitOutcome(CommitStatus.UNCHANGED, self.value)
            try:
                record = await self._store.update(
                    self.resource, self.record_id, {self.field: ticket.value},
                )
            except ProfileEditorError as e:
                if not self._buffer.commit_failed(ticket) or not self._context.is_active:
                    return CommitOutcome(CommitStatus.STALE, self.value, e)
                logger.warning(
                    f"Commit failed for {self.resource.value}.{self.field}: {e.message}",
                    extra=self._context.log_extra(
                        resource=self.resource.value, field=self.field,
                        error_code=e.code,
                    ),
                )
                self._context.emit(
                    SyncEventKind.SAVE_FAILED, resource=self.resource.value,
                    field=self.field, entity_id=self.record_id, error=e,
                )
                return CommitOutcome(CommitStatus.FAILED, self.value, e)

            server_value = getattr(record, self.field)
            if (
                not self._buffer.commit_succeeded(ticket, server_value)
                or not self._context.is_active
            ):
                return CommitOutcome(CommitStatus.STALE, server_value)
            if self._on_saved is not None:
                self._on_saved(record)
            self._context.emit(
                SyncEventKind.SAVED, resource=self.resource.value,
                field=self.field, entity_id=self.record_id,
            )
            return CommitOutcome(CommitStatus.SAVED, server_value)
