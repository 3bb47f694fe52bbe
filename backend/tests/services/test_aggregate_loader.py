"""Aggregate Loader — tests for concurrent load, lazy creation and partial failure.

Tests cover:
    - Missing singletons created once with defaults; existing ones reused
    - Two concurrent loads of a fresh tenant leave exactly one row per singleton
    - A failing slice is absent with an error; the others still load
    - Collections are never lazily created and come back in their order
"""

import asyncio
from uuid import uuid4

from business_profile.core.domain_types import (
    SINGLETON_RESOURCES, CollectionName, ResourceType,
)
from business_profile.core.errors import StoreUnavailableError
from business_profile.services.aggregate_loader import AggregateLoader

from tests.services.fake_store import unavailable


async def test_fresh_tenant_gets_default_singletons(store, tenant):
    company, _ = tenant
    snapshot = await AggregateLoader(store).load(company.id)

    assert snapshot.complete
    assert snapshot.company.value.name == "Acme"
    for resource in SINGLETON_RESOURCES:
        assert snapshot.singleton(resource).company_id == company.id
        assert len(store.all(resource)) == 1
    assert snapshot.singleton(ResourceType.SCHEDULE).timezone == "America/Mexico_City"


async def test_existing_singleton_is_not_recreated(store, tenant):
    company, _ = tenant
    existing = store.seed(ResourceType.STRATEGY, company_id=company.id, mision="Serve")
    snapshot = await AggregateLoader(store).load(company.id)
    assert snapshot.singleton(ResourceType.STRATEGY).id == existing.id
    assert store.count("create", ResourceType.STRATEGY) == 0


async def test_concurrent_loads_create_each_singleton_once(store, tenant):
    company, _ = tenant
    loader = AggregateLoader(store)

    first, second = await asyncio.gather(loader.load(company.id), loader.load(company.id))

    for resource in SINGLETON_RESOURCES:
        rows = store.all(resource)
        assert len(rows) == 1, resource
        assert first.singleton(resource).id == rows[0].id
        assert second.singleton(resource).id == rows[0].id
    assert first.complete and second.complete


async def test_failed_slice_does_not_block_others(store, tenant):
    company, _ = tenant
    store.fail("fetch", ResourceType.BRANDING, unavailable())
    snapshot = await AggregateLoader(store).load(company.id)

    branding = snapshot.singletons[ResourceType.BRANDING]
    assert branding.value is None
    assert isinstance(branding.error, StoreUnavailableError)
    assert snapshot.failed_slices == ["branding"]
    assert snapshot.singleton(ResourceType.STRATEGY) is not None
    assert snapshot.company.ok


async def test_failed_collection_slice_is_empty_with_error(store, tenant):
    company, _ = tenant
    store.seed(ResourceType.PRODUCT, company_id=company.id, name="Widget")
    store.fail("fetch", ResourceType.PRODUCT, unavailable())
    snapshot = await AggregateLoader(store).load(company.id)
    products = snapshot.collections[CollectionName.PRODUCTS]
    assert products.value == []
    assert not products.ok


async def test_collections_not_created_and_ordered(store, tenant):
    company, _ = tenant
    store.seed(ResourceType.OBJECTIVE, company_id=company.id, title="later", priority=3)
    store.seed(ResourceType.OBJECTIVE, company_id=company.id, title="first", priority=1)
    snapshot = await AggregateLoader(store).load(company.id)

    titles = [o.title for o in snapshot.collections[CollectionName.OBJECTIVES].value]
    assert titles == ["first", "later"]
    assert store.count("create", ResourceType.COMPETITOR) == 0
    assert snapshot.collections[CollectionName.COMPETITORS].value == []


async def test_missing_company_is_a_slice_error(store):
    snapshot = await AggregateLoader(store).load(uuid4())
    assert not snapshot.company.ok
    assert snapshot.company.error.code == "RESOURCE_NOT_FOUND"


async def test_snapshot_serializes(store, tenant):
    company, _ = tenant
    data = (await AggregateLoader(store).load(company.id)).to_dict()
    assert data["tenant_id"] == str(company.id)
    assert data["company"]["value"]["name"] == "Acme"
    assert data["failed_slices"] == []
