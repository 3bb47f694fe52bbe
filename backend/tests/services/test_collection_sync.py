"""Collection Sync Manager — tests for optimistic add/update/remove.

Tests cover:
    - add(): visible at once under a temporary id, replaced in place on success
    - Failed create removes the optimistic item and emits create_failed
    - Updates made before the server id exists coalesce into one write with the real id
    - remove(): local-only for unsaved items, orphan cleanup while a create is in flight
    - Failed delete restores the item at its old position
    - Results after close are discarded
"""

import asyncio

import pytest

from business_profile.core.domain_types import CollectionName, ResourceType, is_temporary
from business_profile.core.errors import RecordValidationError, ResourceNotFoundError
from business_profile.services.collection_sync import CollectionSyncManager

from tests.services.fake_store import kinds, unavailable


async def _spin(times: int = 5):
    for _ in range(times):
        await asyncio.sleep(0)


def _products(editing_context, store, *names):
    records = [
        store.seed(
            ResourceType.PRODUCT, company_id=editing_context.tenant_id,
            name=name, position=i,
        )
        for i, name in enumerate(names)
    ]
    return CollectionSyncManager(
        editing_context, store, CollectionName.PRODUCTS, records,
    )


# ── add ──────────────────────────────────────────────────────

async def test_add_is_visible_before_create_lands(editing_context, store):
    manager = _products(editing_context, store, "Basic")
    gate = store.hold("create", ResourceType.PRODUCT)

    temp_id = manager.add({"name": "Pro"})

    assert is_temporary(temp_id)
    assert [i["name"] for i in manager.items] == ["Basic", "Pro"]
    assert manager.items[1]["persisted"] is False
    gate.set()
    await manager.settle()


async def test_add_replaces_temporary_id_in_place(editing_context, store, events):
    manager = _products(editing_context, store, "Basic", "Plus")
    temp_id = manager.add({"name": "Pro", "price": "19.5"})
    await manager.settle()

    stored = store.all(ResourceType.PRODUCT)
    created = next(r for r in stored if r.name == "Pro")
    assert len(manager.items) == 3
    assert manager.ids[2] == created.id
    assert manager.items[2]["persisted"] is True
    assert manager.items[2]["price"] == 19.5
    assert not any(str(i) == str(temp_id) for i in manager.ids)
    assert store.payloads("create", ResourceType.PRODUCT)[0]["company_id"] == (
        editing_context.tenant_id
    )
    assert kinds(events) == ["created"]


async def test_add_rejects_invalid_draft_without_store_call(editing_context, store):
    manager = _products(editing_context, store)
    with pytest.raises(RecordValidationError):
        manager.add({"name": "Pro", "price": "free"})
    assert manager.items == []
    assert store.count("create") == 0


async def test_failed_create_removes_optimistic_item(editing_context, store, events):
    manager = _products(editing_context, store, "Basic")
    store.fail("create", ResourceType.PRODUCT, unavailable("insert"))

    manager.add({"name": "Pro"})
    await manager.settle()

    assert [i["name"] for i in manager.items] == ["Basic"]
    drained = events.drain()
    assert [e.kind.value for e in drained] == ["create_failed"]
    assert drained[0].resource == "product"
    assert drained[0].error["code"] == "STORE_UNAVAILABLE"


async def test_failed_creates_release_their_locks(editing_context, store):
    manager = _products(editing_context, store)
    store.fail("create", ResourceType.PRODUCT, unavailable("insert"), times=3)

    for name in ("Pro", "Team", "Enterprise"):
        manager.add({"name": name})
    await manager.settle()

    assert manager.items == []
    assert manager._locks == {}


async def test_add_does_not_send_client_company_id(editing_context, store):
    manager = _products(editing_context, store)
    other = store.seed(ResourceType.COMPANY, name="Other")
    manager.add({"name": "Pro", "company_id": other.id})
    await manager.settle()
    assert store.all(ResourceType.PRODUCT)[0].company_id == editing_context.tenant_id


# ── update ───────────────────────────────────────────────────

async def test_update_sends_only_changed_fields(editing_context, store, events):
    manager = _products(editing_context, store, "Basic")
    item_id = manager.ids[0]

    manager.update(item_id, {"name": "Basic", "price": 9})
    await manager.settle()

    assert store.payloads("update", ResourceType.PRODUCT) == [{"price": 9.0}]
    assert kinds(events) == ["saved"]


async def test_update_without_changes_sends_nothing(editing_context, store):
    manager = _products(editing_context, store, "Basic")
    manager.update(manager.ids[0], {"name": "Basic"})
    await manager.settle()
    assert store.count("update") == 0


async def test_updates_before_id_resolution_coalesce(editing_context, store):
    manager = _products(editing_context, store)
    gate = store.hold("create", ResourceType.PRODUCT)

    temp_id = manager.add({"name": "Pro"})
    await _spin()
    manager.update(temp_id, {"price": 10})
    manager.update(temp_id, {"description": "Best plan"})
    gate.set()
    await manager.settle()

    created = store.all(ResourceType.PRODUCT)[0]
    updates = [
        p for o, r, p in store.calls if o == "update" and r == ResourceType.PRODUCT
    ]
    assert updates == [{"price": 10.0, "description": "Best plan"}]
    assert created.price == 10.0
    assert created.description == "Best plan"
    assert manager.items[0]["id"] == str(created.id)


async def test_failed_update_keeps_local_value(editing_context, store, events):
    manager = _products(editing_context, store, "Basic")
    item_id = manager.ids[0]
    store.fail("update", ResourceType.PRODUCT, unavailable("update"))

    manager.update(item_id, {"name": "Starter"})
    await manager.settle()

    assert manager.get(item_id)["name"] == "Starter"
    assert kinds(events) == ["save_failed"]

    manager.commit_item(item_id)
    await manager.settle()
    assert store.rows[ResourceType.PRODUCT][item_id].name == "Starter"


async def test_unknown_id_is_not_found(editing_context, store):
    manager = _products(editing_context, store)
    with pytest.raises(ResourceNotFoundError):
        manager.update("tmp_missing", {"name": "x"})


# ── remove ───────────────────────────────────────────────────

async def test_remove_persisted_deletes_remotely(editing_context, store, events):
    manager = _products(editing_context, store, "Basic", "Plus")
    item_id = manager.ids[0]

    manager.remove(item_id)
    assert [i["name"] for i in manager.items] == ["Plus"]
    await manager.settle()

    assert item_id not in store.rows[ResourceType.PRODUCT]
    assert kinds(events) == ["deleted"]


async def test_remove_while_create_in_flight_deletes_orphan(editing_context, store, events):
    manager = _products(editing_context, store)
    gate = store.hold("create", ResourceType.PRODUCT)

    temp_id = manager.add({"name": "Pro"})
    await _spin()
    manager.remove(temp_id)
    assert manager.items == []
    gate.set()
    await manager.settle()

    assert store.all(ResourceType.PRODUCT) == []
    assert store.count("delete", ResourceType.PRODUCT) == 1
    assert manager.items == []
    assert manager._locks == {}
    assert kinds(events) == []


async def test_remove_right_after_add_leaves_no_row(editing_context, store):
    manager = _products(editing_context, store)
    temp_id = manager.add({"name": "Pro"})
    manager.remove(temp_id)
    await manager.settle()
    assert store.all(ResourceType.PRODUCT) == []
    assert manager.items == []


async def test_failed_delete_restores_position(editing_context, store, events):
    manager = _products(editing_context, store, "Basic", "Plus", "Pro")
    store.fail("delete", ResourceType.PRODUCT, unavailable("delete"))

    manager.remove(manager.ids[1])
    await manager.settle()

    assert [i["name"] for i in manager.items] == ["Basic", "Plus", "Pro"]
    assert kinds(events) == ["delete_failed"]


async def test_delete_of_already_missing_row_counts_as_gone(editing_context, store, events):
    manager = _products(editing_context, store, "Basic")
    item_id = manager.ids[0]
    store.rows[ResourceType.PRODUCT].pop(item_id)

    manager.remove(item_id)
    await manager.settle()

    assert manager.items == []
    assert kinds(events) == ["deleted"]


# ── session lifetime ─────────────────────────────────────────

async def test_create_result_after_close_is_discarded(editing_context, store, events):
    manager = _products(editing_context, store)
    gate = store.hold("create", ResourceType.PRODUCT)

    manager.add({"name": "Pro"})
    await _spin()
    editing_context.close()
    gate.set()
    await manager.settle()

    assert manager.items[0]["persisted"] is False
    assert kinds(events) == []


async def test_items_of_different_entities_proceed_concurrently(editing_context, store):
    manager = _products(editing_context, store, "Basic", "Plus")
    first, second = manager.ids

    manager.update(first, {"price": 1})
    manager.update(second, {"price": 2})
    assert manager.pending == 2
    await manager.settle()

    assert manager.pending == 0
    assert sorted(p["price"] for p in store.payloads("update", ResourceType.PRODUCT)) == [
        1.0, 2.0,
    ]
