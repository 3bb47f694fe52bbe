"""Service test fixtures — in-memory store, seeded tenant, editing context.

Invariants:
    - Every test gets a fresh FakeRemoteStore; nothing is shared between tests
    - editing_context collects events in an EventLog the test can drain

Design Decisions:
    - Fakes over SQLite here: races need controllable yield points, which a real
      driver does not offer (the SQL store has its own tests in tests/infrastructure)
"""

import pytest

from business_profile.core.domain_types import TenantId, UserId
from business_profile.core.editing_context import EditingContext
from business_profile.services.notifications import EventLog

from tests.services.fake_store import FakeRemoteStore, seed_tenant


@pytest.fixture
def store():
    return FakeRemoteStore()


@pytest.fixture
def tenant(store):
    """(company record, owner user id) with a profile pointing at the company."""
    return seed_tenant(store)


@pytest.fixture
def events():
    return EventLog()


@pytest.fixture
def editing_context(tenant, events):
    company, user_id = tenant
    return EditingContext(
        user_id=UserId(user_id), tenant_id=TenantId(company.id), notifier=events,
    )
