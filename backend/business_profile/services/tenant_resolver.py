"""Tenant Resolver — finds the company a user is editing.

Invariants:
    - Lookup order: profile.primary_company_id -> primary membership -> earliest membership
    - Stops at the first hit (memberships are not fetched when the profile names a tenant)
    - NotFound is returned, never raised; transport failures raise StoreUnavailableError

Design Decisions:
    - IO here, ranking in core/tenant_selection.py (ADR: impureim sandwich)
    - One memberships query for both fallback steps: the pure selector applies the
      primary-then-any rule with a deterministic tie-break
"""

import logging

from business_profile.core.domain_types import ResourceType, UserId
from business_profile.core.repository_protocols import RemoteStore
from business_profile.core.tenant_selection import TenantResolution, select_tenant
from business_profile.schemas.records import MembershipRecord, ProfileRecord

logger = logging.getLogger(__name__)


class TenantResolver:
    """Resolves the canonical tenant id for an acting user."""

    def __init__(self, store: RemoteStore):
        self._store = store

    async def resolve(self, user_id: UserId) -> TenantResolution:
        profile = await self._store.fetch_one(
            ResourceType.PROFILE, {"user_id": user_id},
        )
        if isinstance(profile, ProfileRecord) and profile.primary_company_id:
            resolution = select_tenant(profile, [])
        else:
            memberships = await self._store.fetch_many(
                ResourceType.COMPANY_MEMBER,
                {"user_id": user_id},
                order_by=("joined_at", "id"),
            )
            resolution = select_tenant(
                None, [m for m in memberships if isinstance(m, MembershipRecord)],
            )

        if resolution.found:
            logger.info(
                "Tenant resolved",
                extra={
                    "tenant_id": str(resolution.tenant_id),
                    "source": resolution.source.value,
                },
            )
        else:
            logger.info(f"No tenant for user {user_id}: needs onboarding")
        return resolution
