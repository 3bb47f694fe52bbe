"""Consolidated Channel View — tests for per-platform rows over three owners.

Tests cover:
    - read(): each field comes from its owner; missing owners contribute defaults
    - write(): routed to the owning resource, values equal to the shown row never sent
    - Invalid edits rejected before any remote call
    - Partial failure: one owner failing does not undo or block the others
    - platform_setting upsert, including a lost create race
    - Concurrent keyed-map writes for two platforms keep both keys
"""

import asyncio

import pytest

from business_profile.core.domain_types import CommitStatus, Platform, ResourceType
from business_profile.core.errors import RecordValidationError
from business_profile.services.aggregate_loader import AggregateLoader
from business_profile.services.channel_view import ConsolidatedChannelView

from tests.services.fake_store import unavailable


@pytest.fixture
def channel_rows(editing_context, store):
    tenant_id = editing_context.tenant_id
    schedule = store.seed(
        ResourceType.SCHEDULE, company_id=tenant_id,
        content_frequency={"instagram": 5},
        preferred_posting_times={"instagram": ["09:00", "18:00"]},
    )
    communication = store.seed(
        ResourceType.COMMUNICATION, company_id=tenant_id,
        tone_by_platform={"instagram": "fun", "linkedin": "formal"},
    )
    instagram = store.seed(
        ResourceType.PLATFORM_SETTING, company_id=tenant_id,
        platform="instagram", is_active=True, max_posts_per_day=2,
    )
    return schedule, communication, instagram


@pytest.fixture
def registry(channel_rows):
    schedule, communication, _ = channel_rows
    return {ResourceType.SCHEDULE: schedule, ResourceType.COMMUNICATION: communication}


@pytest.fixture
def saved():
    return []


@pytest.fixture
def view(editing_context, store, channel_rows, registry, saved):
    return ConsolidatedChannelView(
        editing_context, store, AggregateLoader(store), registry,
        [channel_rows[2]], on_saved=saved.append,
    )


# ── read ─────────────────────────────────────────────────────

def test_read_merges_fields_from_each_owner(view):
    row = view.read(Platform.INSTAGRAM)
    assert row["platform"] == "instagram"
    assert row["tone"] == "fun"
    assert row["frequency"] == 5
    assert row["posting_times"] == ["09:00", "18:00"]
    assert row["is_active"] is True
    assert row["max_posts_per_day"] == 2
    assert row["sources"] == {
        "platform_setting": True, "schedule": True, "communication": True,
    }


def test_read_without_platform_setting_uses_defaults(view):
    row = view.read(Platform.LINKEDIN)
    assert row["tone"] == "formal"
    assert row["frequency"] == 0
    assert row["is_active"] is False
    assert row["max_posts_per_day"] == 3
    assert row["sources"]["platform_setting"] is False


def test_read_all_covers_every_platform(view):
    assert [r["platform"] for r in view.read_all()] == [p.value for p in Platform]


# ── write routing ────────────────────────────────────────────

async def test_write_routes_each_field_to_its_owner(view, store, events):
    outcome = await view.write(
        Platform.INSTAGRAM, {"tone": "casual", "max_posts_per_day": 4},
    )

    assert outcome.outcomes[ResourceType.COMMUNICATION].status == CommitStatus.SAVED
    assert outcome.outcomes[ResourceType.PLATFORM_SETTING].status == CommitStatus.SAVED
    assert ResourceType.SCHEDULE not in outcome.outcomes
    assert store.payloads("update", ResourceType.COMMUNICATION) == [
        {"tone_by_platform": {"instagram": "casual", "linkedin": "formal"}},
    ]
    assert store.payloads("update", ResourceType.PLATFORM_SETTING) == [
        {"max_posts_per_day": 4},
    ]
    assert store.count("update", ResourceType.SCHEDULE) == 0
    assert outcome.row["tone"] == "casual"
    assert outcome.row["max_posts_per_day"] == 4
    assert sorted(e.kind.value for e in events.drain()) == ["saved", "saved"]


async def test_unchanged_values_are_not_sent(view, store):
    outcome = await view.write(
        Platform.INSTAGRAM, {"tone": "fun", "is_active": True, "frequency": 5},
    )
    assert store.count("update") == 0
    assert store.count("create") == 0
    assert outcome.failed == []


async def test_writing_shown_defaults_sends_nothing(view, store):
    row = view.read(Platform.TWITTER)

    outcome = await view.write(Platform.TWITTER, {
        "tone": row["tone"], "frequency": row["frequency"],
        "max_posts_per_day": row["max_posts_per_day"],
    })

    assert (row["tone"], row["frequency"], row["max_posts_per_day"]) == ("professional", 0, 3)
    assert {o.status for o in outcome.outcomes.values()} == {CommitStatus.UNCHANGED}
    assert store.count("update") == 0
    assert store.count("create") == 0
    assert view.read(Platform.TWITTER)["sources"]["platform_setting"] is False


async def test_invalid_edit_sends_nothing(view, store):
    with pytest.raises(RecordValidationError):
        await view.write(Platform.INSTAGRAM, {"tone": "casual", "frequency": "often"})
    with pytest.raises(RecordValidationError):
        await view.write(Platform.INSTAGRAM, {"colour": "red"})
    assert store.count("update") == 0


async def test_channel_write_reports_saved_singleton(view, saved, registry):
    await view.write(Platform.FACEBOOK, {"frequency": 3})
    assert saved[0].content_frequency == {"instagram": 5, "facebook": 3}
    assert registry[ResourceType.SCHEDULE].content_frequency["facebook"] == 3


# ── partial failure ──────────────────────────────────────────

async def test_partial_failure_keeps_successful_owner(view, store, events):
    store.fail("update", ResourceType.COMMUNICATION, unavailable("update"))

    outcome = await view.write(
        Platform.INSTAGRAM, {"tone": "casual", "max_posts_per_day": 4},
    )

    assert outcome.partial is True
    assert outcome.failed == [ResourceType.COMMUNICATION]
    assert outcome.outcomes[ResourceType.PLATFORM_SETTING].status == CommitStatus.SAVED
    assert outcome.row["tone"] == "fun"
    assert outcome.row["max_posts_per_day"] == 4
    failures = [e for e in events.drain() if e.kind.value == "save_failed"]
    assert len(failures) == 1
    assert failures[0].resource == "communication"
    assert failures[0].entity_id == "instagram"

    data = outcome.to_dict()
    assert data["partial"] is True
    assert data["outcomes"]["communication"]["status"] == "failed"


# ── platform_setting upsert ──────────────────────────────────

async def test_missing_platform_setting_is_created(view, store, editing_context):
    outcome = await view.write(Platform.FACEBOOK, {"is_active": True})
    second = await view.write(Platform.FACEBOOK, {"hashtag_limit": 5})

    assert outcome.outcomes[ResourceType.PLATFORM_SETTING].status == CommitStatus.SAVED
    assert store.payloads("create", ResourceType.PLATFORM_SETTING) == [{
        "company_id": editing_context.tenant_id, "platform": "facebook", "is_active": True,
    }]
    assert store.count("update", ResourceType.PLATFORM_SETTING) == 1
    assert second.row["hashtag_limit"] == 5
    assert second.row["sources"]["platform_setting"] is True


async def test_lost_create_race_updates_winner(view, store, editing_context):
    winner = store.seed(
        ResourceType.PLATFORM_SETTING, company_id=editing_context.tenant_id,
        platform="tiktok",
    )

    outcome = await view.write(Platform.TIKTOK, {"auto_publish": True})

    assert outcome.outcomes[ResourceType.PLATFORM_SETTING].status == CommitStatus.SAVED
    rows = [r for r in store.all(ResourceType.PLATFORM_SETTING) if r.platform == "tiktok"]
    assert len(rows) == 1
    assert rows[0].id == winner.id
    assert rows[0].auto_publish is True


# ── concurrency ──────────────────────────────────────────────

async def test_concurrent_tone_writes_keep_both_platforms(view, store, channel_rows):
    await asyncio.gather(
        view.write(Platform.FACEBOOK, {"tone": "casual"}),
        view.write(Platform.TWITTER, {"tone": "friendly"}),
    )

    stored = store.rows[ResourceType.COMMUNICATION][channel_rows[1].id]
    assert stored.tone_by_platform == {
        "instagram": "fun", "linkedin": "formal",
        "facebook": "casual", "twitter": "friendly",
    }
    assert view.read(Platform.FACEBOOK)["tone"] == "casual"
    assert view.read(Platform.TWITTER)["tone"] == "friendly"


async def test_missing_singleton_is_loaded_before_write(
    editing_context, store, events,
):
    registry = {ResourceType.SCHEDULE: None, ResourceType.COMMUNICATION: None}
    view = ConsolidatedChannelView(
        editing_context, store, AggregateLoader(store), registry, [],
    )

    outcome = await view.write(Platform.YOUTUBE, {"tone": "fun"})

    assert outcome.outcomes[ResourceType.COMMUNICATION].status == CommitStatus.SAVED
    assert registry[ResourceType.COMMUNICATION].tone_by_platform == {"youtube": "fun"}
    assert len(store.all(ResourceType.COMMUNICATION)) == 1


async def test_result_after_close_is_stale(view, store, editing_context, events):
    gate = store.hold("update", ResourceType.PLATFORM_SETTING)
    task = asyncio.create_task(view.write(Platform.INSTAGRAM, {"hashtag_limit": 1}))
    for _ in range(5):
        await asyncio.sleep(0)
    editing_context.close()
    gate.set()

    outcome = await task
    assert outcome.outcomes[ResourceType.PLATFORM_SETTING].status == CommitStatus.STALE
    assert view.read(Platform.INSTAGRAM)["hashtag_limit"] == 10
    assert events.drain() == []
