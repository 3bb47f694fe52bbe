"""Collection State — ordered local mirror of a server collection with temporary ids.

Invariants:
    - Every entry has exactly one current id: a TemporaryId until the create lands,
      then the server id, replaced in place (list position unchanged)
    - An entry remembers its temporary id, so late calls made with it still resolve
    - pending_changes() is empty while the entry has no server id — updates are held,
      never addressed to a placeholder
    - pending_changes() only contains fields whose local value differs from the last
      value the store acknowledged (write-on-change, per item)
    - Edits made while a create is in flight survive the id replacement

Design Decisions:
    - Entries are plain mutable objects compared by identity: background results check
      is_attached(entry) before touching state, which is how a removed or rolled-back
      entity is recognised after an await
    - Record fields held as dicts of already-validated values (schemas.records.validate_patch),
      so equality checks compare like with like
"""

from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from business_profile.core.domain_types import EntityId, TemporaryId
from business_profile.schemas.records import Record

_MISSING = object()
_NON_DATA_FIELDS = frozenset({"id", "created_at", "updated_at"})


def record_fields(record: Record) -> dict[str, Any]:
    return record.model_dump(exclude=set(_NON_DATA_FIELDS))


@dataclass(eq=False)
class CollectionEntry:
    """One item of a collection as the UI sees it."""

    data: dict[str, Any]
    server_id: UUID | None = None
    temp_id: TemporaryId | None = None
    committed: dict[str, Any] | None = None
    draft: dict[str, Any] = field(default_factory=dict)
    created_at: Any = None

    @property
    def id(self) -> EntityId:
        if self.server_id is not None:
            return self.server_id
        return self.temp_id

    @property
    def persisted(self) -> bool:
        return self.server_id is not None

    def matches(self, entity_id: object) -> bool:
        if self.server_id is not None and entity_id == self.server_id:
            return True
        return self.temp_id is not None and entity_id == self.temp_id

    def pending_changes(self) -> dict[str, Any]:
        if self.committed is None:
            return {}
        return {
            k: v for k, v in self.data.items()
            if self.committed.get(k, _MISSING) != v
        }

    def as_dict(self) -> dict[str, Any]:
        return {"id": str(self.id), "persisted": self.persisted, **self.data}


@dataclass
class CollectionState:
    """Ordered entries plus the bookkeeping for optimistic create/update/delete."""

    entries: list[CollectionEntry] = field(default_factory=list)

    @classmethod
    def from_records(cls, records: list[Record]) -> "CollectionState":
        return cls([
            CollectionEntry(
                data=record_fields(r), server_id=r.id,
                committed=record_fields(r), created_at=r.created_at,
            )
            for r in records
        ])

    def find(self, entity_id: object) -> CollectionEntry | None:
        for entry in self.entries:
            if entry.matches(entity_id):
                return entry
        return None

    def is_attached(self, entry: CollectionEntry) -> bool:
        return any(e is entry for e in self.entries)

    def index_of(self, entry: CollectionEntry) -> int:
        for i, e in enumerate(self.entries):
            if e is entry:
                return i
        return -1

    # ── optimistic insert ─────────────────────────────────────

    def add_draft(self, fields: dict[str, Any]) -> CollectionEntry:
        entry = CollectionEntry(
            data=dict(fields), temp_id=TemporaryId.new(), draft=dict(fields),
        )
        self.entries.append(entry)
        return entry

    def resolve_create(self, entry: CollectionEntry, record: Record) -> None:
        """Swap in the server id and row; keep edits made while the create was in flight."""
        server = record_fields(record)
        edited = {
            k: v for k, v in entry.data.items()
            if entry.draft.get(k, _MISSING) != v
        }
        entry.server_id = record.id
        entry.created_at = record.created_at
        entry.committed = server
        entry.data = {**server, **edited}

    def rollback_create(self, entry: CollectionEntry) -> bool:
        return self.detach(entry) >= 0

    # ── update ────────────────────────────────────────────────

    def stage(self, entry: CollectionEntry, patch: dict[str, Any]) -> None:
        entry.data.update(patch)

    def acknowledge(
        self, entry: CollectionEntry, sent: dict[str, Any], record: Record,
    ) -> None:
        """Adopt the stored row for the fields that were sent."""
        server = record_fields(record)
        entry.committed = server
        for key, value in sent.items():
            if entry.data.get(key, _MISSING) == value:
                entry.data[key] = server.get(key, value)

    # ── delete ────────────────────────────────────────────────

    def detach(self, entry: CollectionEntry) -> int:
        """Remove an entry; returns its former index or -1 if it was not attached."""
        index = self.index_of(entry)
        if index >= 0:
            del self.entries[index]
        return index

    def restore(self, entry: CollectionEntry, index: int) -> None:
        if self.is_attached(entry):
            return
        self.entries.insert(min(max(index, 0), len(self.entries)), entry)

    def as_list(self) -> list[dict[str, Any]]:
        return [e.as_dict() for e in self.entries]
