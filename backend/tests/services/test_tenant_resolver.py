"""Tenant Resolver — tests for lookup order and failure modes against the store.

Tests cover:
    - Profile link short-circuits (memberships never fetched)
    - Primary membership, then earliest membership
    - NotFound for a user with nothing; transport failure raises
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from business_profile.core.domain_types import ResourceType, ResolutionSource
from business_profile.core.errors import StoreUnavailableError
from business_profile.services.tenant_resolver import TenantResolver

from tests.services.fake_store import unavailable

T0 = datetime(2025, 1, 1, tzinfo=timezone.utc)


async def test_profile_link_resolves_without_memberships(store, tenant):
    company, user_id = tenant
    result = await TenantResolver(store).resolve(user_id)
    assert result.tenant_id == company.id
    assert result.source == ResolutionSource.PROFILE
    assert store.count("fetch", ResourceType.COMPANY_MEMBER) == 0


async def test_primary_membership_when_no_profile(store):
    user_id = uuid4()
    first = store.seed(ResourceType.COMPANY, name="First")
    chosen = store.seed(ResourceType.COMPANY, name="Chosen")
    store.seed(ResourceType.COMPANY_MEMBER, company_id=first.id, user_id=user_id,
               joined_at=T0)
    store.seed(ResourceType.COMPANY_MEMBER, company_id=chosen.id, user_id=user_id,
               is_primary=True, joined_at=T0 + timedelta(days=9))

    result = await TenantResolver(store).resolve(user_id)
    assert result.tenant_id == chosen.id
    assert result.source == ResolutionSource.PRIMARY_MEMBERSHIP


async def test_earliest_membership_when_profile_has_no_link(store):
    user_id = uuid4()
    store.seed(ResourceType.PROFILE, user_id=user_id)
    late = store.seed(ResourceType.COMPANY, name="Late")
    early = store.seed(ResourceType.COMPANY, name="Early")
    store.seed(ResourceType.COMPANY_MEMBER, company_id=late.id, user_id=user_id,
               joined_at=T0 + timedelta(days=1))
    store.seed(ResourceType.COMPANY_MEMBER, company_id=early.id, user_id=user_id,
               joined_at=T0)

    result = await TenantResolver(store).resolve(user_id)
    assert result.tenant_id == early.id
    assert result.source == ResolutionSource.FIRST_MEMBERSHIP


async def test_user_without_anything_needs_onboarding(store):
    result = await TenantResolver(store).resolve(uuid4())
    assert not result.found


async def test_store_failure_is_not_not_found(store, tenant):
    _, user_id = tenant
    store.fail("fetch", ResourceType.PROFILE, unavailable())
    with pytest.raises(StoreUnavailableError):
        await TenantResolver(store).resolve(user_id)
