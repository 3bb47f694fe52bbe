"""API test fixtures — the FastAPI app over httpx's ASGI transport, backed by fakes.

Invariants:
    - The store and generation client are replaced through dependency_overrides
    - Open editing sessions are closed and forgotten after every test

Design Decisions:
    - ASGITransport does not run the lifespan, so no database is initialized; routes
      that need one get it from the override
"""

import pytest
from httpx import ASGITransport, AsyncClient

from business_profile.api.routes import editor
from business_profile.main import app

from tests.services.fake_store import FakeGenerationClient, FakeRemoteStore, seed_tenant


@pytest.fixture
def store():
    return FakeRemoteStore()


@pytest.fixture
def tenant(store):
    return seed_tenant(store)


@pytest.fixture
def generation_client():
    return FakeGenerationClient()


@pytest.fixture
async def client(store, generation_client):
    app.dependency_overrides[editor.get_store] = lambda: store
    app.dependency_overrides[editor.get_generation_client] = lambda: generation_client
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
    for session in editor._editor_sessions.values():
        session.close()
    editor._editor_sessions.clear()


@pytest.fixture
async def session_id(client, tenant):
    _, user_id = tenant
    response = await client.post(
        "/api/v1/editor/sessions", json={"user_id": str(user_id)},
    )
    assert response.status_code == 201
    return response.json()["session_id"]
