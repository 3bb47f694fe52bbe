"""Consolidated Channel View — one row per platform over three independently-owned records.

Invariants:
    - read() merges field-by-field from the owner named in core/channel_fields.py; a
      missing owner contributes defaults only
    - write() validates the whole edit before any remote call, then fans out into at most
      one write per owner; owners that failed never block owners that succeeded
    - Values equal to what the owner already stores are never sent
    - Keyed singleton maps are re-read from the shared registry under the owner's lock, so
      two platforms editing tone_by_platform concurrently cannot drop each other's key
    - A platform without a platform_setting row gets one created (upsert); a lost create
      race re-fetches the winner and applies the patch to it

Design Decisions:
    - One asyncio.Lock per owner: serializes the read-modify-write of whole maps without
      ordering unrelated owners
    - Registry dict shared with the session: a commit through a FieldSyncBuffer on the same
      singleton is visible here, and a channel write is visible to those buffers via on_saved
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from business_profile.core.channel_fields import (
    CHANNEL_OWNERS, merge_row, owner_of, plan_writes,
)
from business_profile.core.domain_types import CommitStatus, Platform, ResourceType
from business_profile.core.editing_context import EditingContext, SyncEventKind
from business_profile.core.errors import ConflictError, ProfileEditorError
from business_profile.core.repository_protocols import RemoteStore
from business_profile.schemas.records import PlatformSettingRecord, Record
from business_profile.services.aggregate_loader import AggregateLoader
from business_profile.services.field_sync import CommitOutcome

logger = logging.getLogger(__name__)


@dataclass
class ChannelWriteOutcome:
    """Per-owner results of one channel row edit."""
    platform: Platform
    outcomes: dict[ResourceType, CommitOutcome] = field(default_factory=dict)
    row: dict[str, Any] = field(default_factory=dict)

    @property
    def failed(self) -> list[ResourceType]:
        return [o for o, r in self.outcomes.items() if r.status == CommitStatus.FAILED]

    @property
    def partial(self) -> bool:
        return bool(self.failed) and len(self.failed) < len(self.outcomes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "platform": self.platform.value,
            "outcomes": {o.value: r.to_dict() for o, r in self.outcomes.items()},
            "partial": self.partial,
            "row": self.row,
        }


class ConsolidatedChannelView:
    """Read/write facade for per-platform channel rows."""

    def __init__(
        self,
        context: EditingContext,
        store: RemoteStore,
        loader: AggregateLoader,
        registry: dict[ResourceType, Record | None],
        platform_settings: list[PlatformSettingRecord],
        on_saved: Callable[[Record], None] | None = None,
    ):
        self._context = context
        self._store = store
        self._loader = loader
        self._registry = registry
        self._settings: dict[str, PlatformSettingRecord] = {
            s.platform: s for s in platform_settings
        }
        self._on_saved = on_saved
        self._locks = {owner: asyncio.Lock() for owner in CHANNEL_OWNERS}

    def _sources(self, platform: Platform) -> dict[ResourceType, Record | None]:
        return {
            ResourceType.PLATFORM_SETTING: self._settings.get(platform.value),
            ResourceType.SCHEDULE: self._registry.get(ResourceType.SCHEDULE),
            ResourceType.COMMUNICATION: self._registry.get(ResourceType.COMMUNICATION),
        }

    def read(self, platform: Platform) -> dict[str, Any]:
        return merge_row(platform, self._sources(platform))

    def read_all(self) -> list[dict[str, Any]]:
        return [self.read(p) for p in Platform]

    def replace_settings(self, platform_settings: list[PlatformSettingRecord]) -> None:
        self._settings = {s.platform: s for s in platform_settings}

    async def write(
        self, platform: Platform, changes: dict[str, Any],
    ) -> ChannelWriteOutcome:
        # Raises RecordValidationError before anything is sent
        plan_writes(platform, changes, self._sources(platform))

        by_owner: dict[ResourceType, dict[str, Any]] = {}
        for name, value in changes.items():
            by_owner.setdefault(owner_of(name), {})[name] = value

        owners = list(by_owner)
        results = await asyncio.gather(*(
            self._write_owner(platform, owner, by_owner[owner]) for owner in owners
        ))
        outcome = ChannelWriteOutcome(
            platform=platform,
            outcomes=dict(zip(owners, results)),
            row=self.read(platform),
        )
        if outcome.partial:
            logger.warning(
                f"Partial channel write for {platform.value}: "
                f"{', '.join(o.value for o in outcome.failed)} failed",
                extra=self._context.log_extra(entity_id=platform.value),
            )
        return outcome

    async def _write_owner(
        self, platform: Platform, owner: ResourceType, changes: dict[str, Any],
    ) -> CommitOutcome:
        async with self._locks[owner]:
            patch = plan_writes(platform, changes, self._sources(platform)).get(owner)
            if not patch:
                return CommitOutcome(CommitStatus.UNCHANGED)
            try:
                if owner == ResourceType.PLATFORM_SETTING:
                    record = await self._upsert_setting(platform, patch)
                else:
                    record = await self._update_singleton(owner, patch)
            except ProfileEditorError as e:
                if not self._context.is_active:
                    return CommitOutcome(CommitStatus.STALE, patch, e)
                logger.warning(
                    f"Channel write to {owner.value} failed: {e.message}",
                    extra=self._context.log_extra(
                        resource=owner.value, entity_id=platform.value,
                        error_code=e.code,
                    ),
                )
                self._context.emit(
                    SyncEventKind.SAVE_FAILED, resource=owner.value,
                    entity_id=platform.value, error=e,
                )
                return CommitOutcome(CommitStatus.FAILED, patch, e)

            if not self._context.is_active:
                return CommitOutcome(CommitStatus.STALE, patch)
            self._apply(owner, record)
            self._context.emit(
                SyncEventKind.SAVED, resource=owner.value, entity_id=platform.value,
            )
            return CommitOutcome(CommitStatus.SAVED, patch)

    async def _update_singleton(
        self, owner: ResourceType, patch: dict[str, Any],
    ) -> Record:
        current = self._registry.get(owner)
        if current is None:
            result = await self._loader.reload_slice(self._context.tenant_id, owner)
            if not result.ok:
                raise result.error
            current = result.value
            self._registry[owner] = current
        return await self._store.update(owner, current.id, patch)

    async def _upsert_setting(
        self, platform: Platform, patch: dict[str, Any],
    ) -> Record:
        resource = ResourceType.PLATFORM_SETTING
        existing = self._settings.get(platform.value)
        if existing is not None:
            return await self._store.update(resource, existing.id, patch)

        key = {"company_id": self._context.tenant_id, "platform": platform.value}
        try:
            return await self._store.create(resource, {**key, **patch})
        except ConflictError:
            winner = await self._store.fetch_one(resource, key)
            if winner is None:
                raise
            logger.info(
                f"platform_setting for {platform.value} created concurrently; updating it",
                extra=self._context.log_extra(entity_id=platform.value),
            )
            return await self._store.update(resource, winner.id, patch)

    def _apply(self, owner: ResourceType, record: Record) -> None:
        if isinstance(record, PlatformSettingRecord):
            self._settings[record.platform] = record
            return
        self._registry[owner] = record
        if self._on_saved is not None:
            self._on_saved(record)
