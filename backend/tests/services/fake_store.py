"""Fake collaborators — in-memory RemoteStore and GenerationClient for service and route tests.

Invariants:
    - FakeRemoteStore enforces the same unique keys as the SQL schema (ConflictError)
    - Every operation yields to the event loop before and after touching state, so
      concurrent callers really interleave
    - Rows are validated record variants; callers get copies, never the stored object
    - calls records (op, resource, payload) in the order operations started

Design Decisions:
    - Flat fake classes (no inheritance from the real store): simple, explicit, easy to debug
    - fail() queues exceptions per (op, resource): scripted failures without monkeypatching
    - hold() returns an asyncio.Event gating an operation, for "while the create is in
      flight" scenarios
"""

import asyncio
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID, uuid4

from business_profile.core.domain_types import (
    SINGLETON_RESOURCES, GenerationKind, ResourceType, is_temporary,
)
from business_profile.core.errors import (
    ConflictError, GenerationError, ResourceNotFoundError, StoreUnavailableError,
    TemporaryIdError,
)
from business_profile.schemas.records import Record, validate_patch, validate_record

_UNIQUE_KEYS: dict[ResourceType, tuple[str, ...]] = {
    **{r: ("company_id",) for r in SINGLETON_RESOURCES},
    ResourceType.PLATFORM_SETTING: ("company_id", "platform"),
    ResourceType.COMPANY_MEMBER: ("company_id", "user_id"),
    ResourceType.PROFILE: ("user_id",),
}

_BASE_TIME = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _sort_key(value: Any) -> tuple:
    # None sorts last, like NULLS LAST
    return (value is None, value if value is not None else 0)


def unavailable(operation: str = "execute") -> StoreUnavailableError:
    return StoreUnavailableError("connection refused", operation)


class FakeRemoteStore:
    """RemoteStore held in dicts, with scripted failures and gates."""

    def __init__(self):
        self.rows: dict[ResourceType, dict[UUID, Record]] = defaultdict(dict)
        self.calls: list[tuple[str, ResourceType, Any]] = []
        self._failures: dict[tuple[str, ResourceType], list[Exception]] = defaultdict(list)
        self._gates: dict[tuple[str, ResourceType], asyncio.Event] = {}
        self._clock = 0

    # ── test helpers ──────────────────────────────────────────

    def _now(self) -> datetime:
        self._clock += 1
        return _BASE_TIME + timedelta(seconds=self._clock)

    def seed(self, resource: ResourceType, **fields) -> Record:
        now = self._now()
        record = validate_record(resource, {
            "id": fields.pop("id", None) or uuid4(),
            "created_at": now, "updated_at": now, **fields,
        })
        self.rows[resource][record.id] = record
        return record.model_copy(deep=True)

    def fail(self, op: str, resource: ResourceType, error: Exception, times: int = 1):
        self._failures[(op, resource)].extend([error] * times)

    def hold(self, op: str, resource: ResourceType) -> asyncio.Event:
        gate = asyncio.Event()
        self._gates[(op, resource)] = gate
        return gate

    def all(self, resource: ResourceType) -> list[Record]:
        return list(self.rows[resource].values())

    def count(self, op: str, resource: ResourceType | None = None) -> int:
        return sum(
            1 for o, r, _ in self.calls
            if o == op and (resource is None or r == resource)
        )

    def payloads(self, op: str, resource: ResourceType) -> list[Any]:
        return [p for o, r, p in self.calls if o == op and r == resource]

    async def _enter(self, op: str, resource: ResourceType, payload: Any) -> None:
        self.calls.append((op, resource, payload))
        gate = self._gates.get((op, resource))
        if gate is not None:
            await gate.wait()
        await asyncio.sleep(0)
        queued = self._failures.get((op, resource))
        if queued:
            raise queued.pop(0)

    # ── RemoteStore ───────────────────────────────────────────

    async def fetch_one(self, resource, filters):
        rows = await self.fetch_many(resource, filters)
        return rows[0] if rows else None

    async def fetch_many(self, resource, filters, order_by=None):
        await self._enter("fetch", resource, dict(filters))
        for value in filters.values():
            if is_temporary(value):
                raise TemporaryIdError(resource.value, str(value))
        rows = [
            r for r in self.rows[resource].values()
            if all(getattr(r, k) == v for k, v in filters.items())
        ]
        for column in reversed(order_by or ()):
            rows.sort(key=lambda r, c=column: _sort_key(getattr(r, c)))
        return [r.model_copy(deep=True) for r in rows]

    async def create(self, resource, fields):
        await self._enter("create", resource, dict(fields))
        values = validate_patch(resource, fields)
        key = _UNIQUE_KEYS.get(resource)
        if key is not None:
            for existing in self.rows[resource].values():
                if all(getattr(existing, k) == values.get(k) for k in key):
                    raise ConflictError(
                        f"duplicate {resource.value} for {key}", resource.value,
                    )
        now = self._now()
        record = validate_record(resource, {
            "id": uuid4(), "created_at": now, "updated_at": now, **values,
        })
        self.rows[resource][record.id] = record
        await asyncio.sleep(0)
        return record.model_copy(deep=True)

    async def update(self, resource, record_id, patch):
        await self._enter("update", resource, dict(patch))
        if is_temporary(record_id):
            raise TemporaryIdError(resource.value, str(record_id))
        current = self.rows[resource].get(record_id)
        if current is None:
            raise ResourceNotFoundError(resource.value, str(record_id))
        values = validate_patch(resource, patch)
        record = current.model_copy(update={**values, "updated_at": self._now()}, deep=True)
        self.rows[resource][record_id] = record
        await asyncio.sleep(0)
        return record.model_copy(deep=True)

    async def delete(self, resource, record_id):
        await self._enter("delete", resource, record_id)
        if is_temporary(record_id):
            raise TemporaryIdError(resource.value, str(record_id))
        if self.rows[resource].pop(record_id, None) is None:
            raise ResourceNotFoundError(resource.value, str(record_id))
        await asyncio.sleep(0)


class FakeGenerationClient:
    """GenerationClient returning canned fields per kind, or raising."""

    def __init__(self, results: dict[GenerationKind, dict[str, Any]] | None = None):
        self.results = results or {}
        self.error: GenerationError | None = None
        self.calls: list[tuple[UUID, GenerationKind]] = []
        self.subjects: list[dict[str, Any] | None] = []

    async def generate(self, tenant_id, kind, subject=None):
        self.calls.append((tenant_id, kind))
        self.subjects.append(subject)
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return dict(self.results.get(kind, {}))


def seed_tenant(store: FakeRemoteStore, name: str = "Acme", **company_fields):
    """A company plus an owner whose profile points at it. Returns (company, user_id)."""
    company = store.seed(ResourceType.COMPANY, name=name, **company_fields)
    user_id = uuid4()
    store.seed(ResourceType.PROFILE, user_id=user_id, primary_company_id=company.id)
    store.seed(
        ResourceType.COMPANY_MEMBER, company_id=company.id, user_id=user_id,
        role="owner", is_primary=True, joined_at=_BASE_TIME,
    )
    return company, user_id


def kinds(log) -> list[str]:
    """Event kinds drained from an EventLog, in emission order."""
    return [e.kind.value for e in log.drain()]
