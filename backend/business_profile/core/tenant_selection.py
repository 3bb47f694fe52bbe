"""Tenant Selection — pure fallback rules that pick the company a user edits.

Invariants:
    - Profile link beats any membership flag, even a conflicting is_primary
    - A primary membership beats a non-primary one
    - Without any primary signal the earliest joined membership wins; ties by membership id
    - Same memberships in any order -> same answer
    - No memberships and no profile link -> TenantResolution.not_found()

Design Decisions:
    - Pure function over already-fetched rows: the service does the IO, this module
      only ranks (ADR: functional core)
    - Explicit tie-break instead of store order: the store's default ordering is not a
      contract, so "first returned" would be nondeterministic across backends
"""

from dataclasses import dataclass
from datetime import datetime, timezone

from business_profile.core.domain_types import ResolutionSource, TenantId
from business_profile.schemas.records import MembershipRecord, ProfileRecord

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class TenantResolution:
    """Outcome of resolve(): a tenant and the signal that found it, or nothing."""
    tenant_id: TenantId | None
    source: ResolutionSource | None = None

    @property
    def found(self) -> bool:
        return self.tenant_id is not None

    @classmethod
    def not_found(cls) -> "TenantResolution":
        return cls(tenant_id=None)


def _join_key(m: MembershipRecord) -> tuple[datetime, str]:
    joined = m.joined_at or _EPOCH
    if joined.tzinfo is None:
        joined = joined.replace(tzinfo=timezone.utc)
    return joined, str(m.id)


def pick_membership(memberships: list[MembershipRecord]) -> MembershipRecord | None:
    """Earliest-joined membership, primaries first."""
    if not memberships:
        return None
    primaries = [m for m in memberships if m.is_primary]
    pool = primaries or memberships
    return min(pool, key=_join_key)


def select_tenant(
    profile: ProfileRecord | None, memberships: list[MembershipRecord],
) -> TenantResolution:
    """Apply the fallback chain: profile -> primary membership -> any membership."""
    if profile is not None and profile.primary_company_id is not None:
        return TenantResolution(
            TenantId(profile.primary_company_id), ResolutionSource.PROFILE,
        )
    chosen = pick_membership(memberships)
    if chosen is None:
        return TenantResolution.not_found()
    source = (
        ResolutionSource.PRIMARY_MEMBERSHIP if chosen.is_primary
        else ResolutionSource.FIRST_MEMBERSHIP
    )
    return TenantResolution(TenantId(chosen.company_id), source)
