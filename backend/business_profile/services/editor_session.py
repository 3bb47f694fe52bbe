"""Editor Session — one user editing one tenant: resolve, load, then hand out synced editors.

Invariants:
    - A session exists only for a resolved tenant; NotFound yields no session (onboarding)
    - Exactly one FieldSyncBuffer per (resource, field) and one CollectionSyncManager per
      collection for the session's lifetime, so concurrent callers share buffer state
    - The registry holds the latest stored row of the company and each singleton; every
      successful write through any component updates it
    - A clean buffer whose field changed through another path (channel write, reload) is
      rebound to the stored value; dirty or saving buffers are left alone
    - After close(), background results are discarded (EditingContext.is_active)
    - reload() waits for in-flight commits before fetching, so a save that lands during
      a reload is never overwritten by the pre-write value

Design Decisions:
    - Facade over the five components instead of letting routes wire them: the wiring
      (shared registry, on_saved propagation, lazy singleton recovery) is domain logic
    - Failed load slices are emitted as LOAD_FAILED once per open/reload; the session
      still opens with the slices that did load
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from business_profile.core.aggregate_snapshot import AggregateSnapshot
from business_profile.core.domain_types import (
    SINGLETON_RESOURCES, BufferState, CollectionName, GenerationKind, ResourceType,
    UserId,
)
from business_profile.core.editing_context import (
    EditingContext, Notifier, SyncEvent, SyncEventKind,
)
from business_profile.core.errors import (
    ErrorContext, GenerationError, RecordValidationError, ResourceNotFoundError,
)
from business_profile.core.repository_protocols import GenerationClient, RemoteStore
from business_profile.core.tenant_selection import TenantResolution
from business_profile.schemas.records import RECORD_MODELS, Record, writable_fields
from business_profile.services.aggregate_loader import AggregateLoader
from business_profile.services.channel_view import ConsolidatedChannelView
from business_profile.services.collection_sync import CollectionSyncManager
from business_profile.services.field_sync import CommitOutcome, FieldSyncBuffer
from business_profile.services.generation_merge import GenerationMerger, GenerationOutcome
from business_profile.services.notifications import EventLog
from business_profile.services.tenant_resolver import TenantResolver

logger = logging.getLogger(__name__)

_SCALAR_RESOURCES = (ResourceType.COMPANY, *SINGLETON_RESOURCES)
_RESOURCE_OF_MODEL = {model: resource for resource, model in RECORD_MODELS.items()}


@dataclass
class OpenResult:
    resolution: TenantResolution
    session: "EditorSession | None" = None

    @property
    def ready(self) -> bool:
        return self.session is not None


class EditorSession:
    """Everything one editing session needs, wired around a single EditingContext."""

    def __init__(
        self,
        context: EditingContext,
        store: RemoteStore,
        snapshot: AggregateSnapshot,
        generation_client: GenerationClient | None = None,
    ):
        self.context = context
        self._store = store
        self._loader = AggregateLoader(store)
        self._generation_client = generation_client
        self._fields: dict[tuple[ResourceType, str], FieldSyncBuffer] = {}
        self._registry: dict[ResourceType, Record | None] = {}
        self._collections: dict[CollectionName, CollectionSyncManager] = {}
        self.snapshot = snapshot
        self._adopt(snapshot)
        self.channels = ConsolidatedChannelView(
            context, store, self._loader, self._registry,
            snapshot.platform_settings.value, on_saved=self._record_saved,
        )

    @classmethod
    async def open(
        cls,
        user_id: UserId,
        store: RemoteStore,
        generation_client: GenerationClient | None = None,
        notifier: Notifier | None = None,
    ) -> OpenResult:
        resolution = await TenantResolver(store).resolve(user_id)
        if not resolution.found:
            return OpenResult(resolution)

        snapshot = await AggregateLoader(store).load(resolution.tenant_id)
        context = EditingContext(
            user_id=user_id, tenant_id=resolution.tenant_id,
            notifier=notifier or EventLog(),
        )
        session = cls(context, store, snapshot, generation_client)
        session._report_load_failures(snapshot)
        logger.info("Editor session opened", extra=context.log_extra())
        return OpenResult(resolution, session)

    # ── state ─────────────────────────────────────────────────

    @property
    def session_id(self):
        return self.context.session_id

    @property
    def tenant_id(self):
        return self.context.tenant_id

    @property
    def pending(self) -> int:
        return sum(m.pending for m in self._collections.values())

    def record(self, resource: ResourceType) -> Record | None:
        return self._registry.get(resource)

    def _adopt(self, snapshot: AggregateSnapshot) -> None:
        self._registry[ResourceType.COMPANY] = snapshot.company.value
        for resource in SINGLETON_RESOURCES:
            self._registry[resource] = snapshot.singleton(resource)
        for name in CollectionName:
            result = snapshot.collections.get(name)
            self._collections[name] = CollectionSyncManager(
                self.context, self._store, name, result.value if result else [],
            )

    def _report_load_failures(self, snapshot: AggregateSnapshot) -> None:
        slices = [(ResourceType.COMPANY.value, snapshot.company)]
        slices += [(r.value, s) for r, s in snapshot.singletons.items()]
        slices += [(c.value, s) for c, s in snapshot.collections.items()]
        slices.append((ResourceType.PLATFORM_SETTING.value, snapshot.platform_settings))
        for name, result in slices:
            if not result.ok:
                self.context.emit(
                    SyncEventKind.LOAD_FAILED, resource=name, error=result.error,
                )

    # ── scalar fields ─────────────────────────────────────────

    async def field(self, resource: ResourceType, name: str) -> FieldSyncBuffer:
        """The session's buffer for one field of the company or a singleton."""
        key = (resource, name)
        if key in self._fields:
            return self._fields[key]
        if resource not in _SCALAR_RESOURCES:
            raise RecordValidationError(
                f"{resource.value} has no scalar fields; use its collection", resource.value,
            )
        if name not in writable_fields(resource) - {"company_id"}:
            raise RecordValidationError(
                f"Unknown {resource.value} field: {name}", resource.value,
            )

        record = await self._require_record(resource)
        buffer = FieldSyncBuffer(
            self.context, self._store, resource, record.id, name,
            getattr(record, name), on_saved=self._record_saved,
        )
        # Another caller may have created it while the record was loading
        return self._fields.setdefault(key, buffer)

    async def commit_field(
        self, resource: ResourceType, name: str, value: Any,
    ) -> CommitOutcome:
        buffer = await self.field(resource, name)
        buffer.set_local(value)
        return await buffer.commit()

    async def _require_record(self, resource: ResourceType) -> Record:
        record = self._registry.get(resource)
        if record is not None:
            return record
        if resource == ResourceType.COMPANY:
            raise self.snapshot.company.error or ResourceNotFoundError(
                resource.value, str(self.tenant_id),
                ErrorContext(tenant_id=str(self.tenant_id)),
            )
        result = await self._loader.reload_slice(self.tenant_id, resource)
        if not result.ok:
            raise result.error
        self._registry[resource] = result.value
        return result.value

    def _record_saved(self, record: Record) -> None:
        resource = _RESOURCE_OF_MODEL[type(record)]
        self._registry[resource] = record
        for (res, name), buffer in self._fields.items():
            if res != resource or buffer.state != BufferState.CLEAN:
                continue
            stored = getattr(record, name)
            if buffer.committed != stored:
                buffer.rebind(stored, record.id)

    # ── collections, channels, generation ─────────────────────

    def collection(self, name: CollectionName) -> CollectionSyncManager:
        return self._collections[name]

    async def generate(self, kind: GenerationKind) -> GenerationOutcome:
        return await self._merger().merge(kind)

    async def analyze_competitor(
        self, entity_id: object, force: bool = False,
    ) -> GenerationOutcome:
        return await self._merger().analyze_competitor(entity_id, force=force)

    def _merger(self) -> GenerationMerger:
        if self._generation_client is None:
            raise GenerationError("no generation client configured", "configuration")
        return GenerationMerger(
            self.context, self._generation_client, self.field, self.collection,
        )

    # ── lifecycle ─────────────────────────────────────────────

    async def settle(self) -> None:
        """Wait for every field commit and collection write in flight."""
        await asyncio.gather(
            *(b.settle() for b in list(self._fields.values())),
            *(m.settle() for m in self._collections.values()),
        )

    async def reload(self) -> AggregateSnapshot:
        """Re-fetch everything and rebind editors to the stored values."""
        await self.settle()
        snapshot = await self._loader.load(self.tenant_id)
        if not self.context.is_active:
            return snapshot
        self.snapshot = snapshot
        self._adopt(snapshot)
        self.channels.replace_settings(snapshot.platform_settings.value)
        for (resource, name), buffer in self._fields.items():
            record = self._registry.get(resource)
            # A commit started after settle() reports through on_saved
            if record is not None and buffer.state != BufferState.SAVING:
                buffer.rebind(getattr(record, name), record.id)
        self._report_load_failures(snapshot)
        return snapshot

    def close(self) -> None:
        self.context.close()
        logger.info("Editor session closed", extra=self.context.log_extra())

    def events(self) -> list[SyncEvent]:
        notifier = self.context.notifier
        return notifier.drain() if isinstance(notifier, EventLog) else []

    def to_dict(self) -> dict[str, Any]:
        def dump(record: Record | None) -> dict[str, Any] | None:
            return record.model_dump(mode="json") if record is not None else None

        return {
            "session_id": str(self.session_id),
            "tenant_id": str(self.tenant_id),
            "company": dump(self._registry.get(ResourceType.COMPANY)),
            "singletons": {
                r.value: dump(self._registry.get(r)) for r in SINGLETON_RESOURCES
            },
            "collections": {
                name.value: manager.items
                for name, manager in self._collections.items()
            },
            "channels": self.channels.read_all(),
            "failed_slices": self.snapshot.failed_slices,
            "pending": self.pending,
        }
