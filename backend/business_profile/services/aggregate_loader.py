"""Aggregate Loader — concurrent fetch of a tenant's sub-records with lazy singleton creation.

Invariants:
    - All slices fetched concurrently; the only shared input is tenant_id
    - Missing singleton -> create an empty default row; ConflictError on that create ->
      re-fetch (another load won the race), so at most one row per (tenant, type) survives
    - Collections returned as-is; never lazily created
    - A failing slice becomes SliceResult(absent, error) and never aborts the others
    - Only ProfileEditorError is converted into a slice error; anything else is a bug and
      propagates

Design Decisions:
    - asyncio.gather over one task per slice, each slice catching its own typed errors:
      gather(return_exceptions=True) would also swallow programming errors
    - Re-fetch after conflict instead of upsert: keeps the store contract to five plain
      operations
"""

import asyncio
import logging
from typing import Any, Awaitable

from business_profile.core.aggregate_snapshot import AggregateSnapshot, SliceResult
from business_profile.core.domain_types import (
    SINGLETON_RESOURCES, CollectionName, ResourceType, TenantId,
)
from business_profile.core.errors import (
    ConflictError, ErrorContext, ProfileEditorError, ResourceNotFoundError,
)
from business_profile.core.repository_protocols import RemoteStore
from business_profile.schemas.records import Record

logger = logging.getLogger(__name__)


class AggregateLoader:
    """Loads (or lazily completes) the editable aggregate of one tenant."""

    def __init__(self, store: RemoteStore):
        self._store = store

    async def load(self, tenant_id: TenantId) -> AggregateSnapshot:
        singletons = list(SINGLETON_RESOURCES)
        collections = list(CollectionName)
        results = await asyncio.gather(
            self._slice(self._load_company(tenant_id), None),
            *(self._slice(self._load_singleton(tenant_id, r), None) for r in singletons),
            *(self._slice(self._load_collection(tenant_id, c), []) for c in collections),
            self._slice(self._load_platform_settings(tenant_id), []),
        )
        company, rest = results[0], results[1:]
        singleton_results = rest[:len(singletons)]
        collection_results = rest[len(singletons):len(singletons) + len(collections)]
        snapshot = AggregateSnapshot(
            tenant_id=tenant_id,
            company=company,
            singletons=dict(zip(singletons, singleton_results)),
            collections=dict(zip(collections, collection_results)),
            platform_settings=rest[-1],
        )
        if snapshot.failed_slices:
            logger.warning(
                f"Partial aggregate load: {', '.join(snapshot.failed_slices)}",
                extra={"tenant_id": str(tenant_id)},
            )
        return snapshot

    async def _slice(self, loader: Awaitable[Any], empty: Any) -> SliceResult:
        try:
            return SliceResult(await loader)
        except ProfileEditorError as e:
            return SliceResult(empty, e)

    async def _load_company(self, tenant_id: TenantId) -> Record:
        company = await self._store.fetch_one(ResourceType.COMPANY, {"id": tenant_id})
        if company is None:
            raise ResourceNotFoundError(
                ResourceType.COMPANY.value, str(tenant_id),
                ErrorContext(tenant_id=str(tenant_id)),
            )
        return company

    async def _load_singleton(
        self, tenant_id: TenantId, resource: ResourceType,
    ) -> Record:
        filters = {"company_id": tenant_id}
        row = await self._store.fetch_one(resource, filters)
        if row is not None:
            return row
        return await self.ensure_singleton(tenant_id, resource)

    async def ensure_singleton(
        self, tenant_id: TenantId, resource: ResourceType,
    ) -> Record:
        """Create the default row; on a lost race, return the winner's row."""
        filters = {"company_id": tenant_id}
        try:
            created = await self._store.create(resource, dict(filters))
            logger.info(
                f"Created default {resource.value}",
                extra={"tenant_id": str(tenant_id), "resource": resource.value},
            )
            return created
        except ConflictError:
            existing = await self._store.fetch_one(resource, filters)
            if existing is None:
                raise
            logger.info(
                f"Lost create race for {resource.value}; using existing row",
                extra={"tenant_id": str(tenant_id), "resource": resource.value},
            )
            return existing

    async def _load_collection(
        self, tenant_id: TenantId, collection: CollectionName,
    ) -> list[Record]:
        return await self._store.fetch_many(
            collection.resource, {"company_id": tenant_id},
            order_by=collection.order_by,
        )

    async def _load_platform_settings(self, tenant_id: TenantId) -> list[Record]:
        return await self._store.fetch_many(
            ResourceType.PLATFORM_SETTING, {"company_id": tenant_id},
            order_by=("platform",),
        )

    async def reload_slice(
        self, tenant_id: TenantId, resource: ResourceType,
    ) -> SliceResult:
        """Retry one singleton slice after a recoverable failure."""
        return await self._slice(self._load_singleton(tenant_id, resource), None)
