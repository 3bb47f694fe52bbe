"""Boundary Protocols — contracts between the editor core and its collaborators.

Invariants:
    - Core NEVER imports from services/, infrastructure/ or api/ — arrows point inward only
    - Every remote operation reports "not found" (None / ResourceNotFoundError) distinctly
      from transport failure (StoreUnavailableError)
    - Ids passed to update/delete are always server ids, never TemporaryId
    - Rows returned are validated record variants (schemas/records.py)

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async in Protocol: boundary methods are async because implementations do IO,
      but the core state machines that USE these protocols are never async themselves —
      services/ orchestrates the async calls around the pure logic
"""

from collections.abc import Sequence
from typing import Any, Protocol
from uuid import UUID

from business_profile.core.domain_types import GenerationKind, ResourceType, TenantId
from business_profile.schemas.records import Record


class RemoteStore(Protocol):
    """Contract for the persistence collaborator — implemented by infrastructure."""

    async def fetch_one(
        self, resource: ResourceType, filters: dict[str, Any],
    ) -> Record | None: ...

    async def fetch_many(
        self,
        resource: ResourceType,
        filters: dict[str, Any],
        order_by: Sequence[str] | None = None,
    ) -> list[Record]: ...

    async def create(
        self, resource: ResourceType, fields: dict[str, Any],
    ) -> Record: ...

    async def update(
        self, resource: ResourceType, record_id: UUID, patch: dict[str, Any],
    ) -> Record: ...

    async def delete(self, resource: ResourceType, record_id: UUID) -> None: ...


class GenerationClient(Protocol):
    """Contract for opaque content producers — returns partial fields to merge.

    Singleton kinds return record fields. OBJECTIVES returns {"objectives": [draft, ...]}.
    COMPETITOR_ANALYSIS is given the competitor as subject and returns the analysis
    document, with any social profile URLs found under "social_networks".
    """

    async def generate(
        self, tenant_id: TenantId, kind: GenerationKind,
        subject: dict[str, Any] | None = None,
    ) -> dict[str, Any]: ...
