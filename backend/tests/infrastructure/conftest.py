"""Infrastructure test fixtures — SQLite-backed session manager per test."""

import pytest

from business_profile.db.base import Base
from business_profile.infrastructure.database import DatabaseSessionManager
from business_profile.infrastructure.sql_store import SqlAlchemyRemoteStore


@pytest.fixture
async def db(tmp_path):
    manager = DatabaseSessionManager(f"sqlite+aiosqlite:///{tmp_path / 'store.db'}")
    async with manager.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield manager
    await manager.dispose()


@pytest.fixture
def sql_store(db):
    return SqlAlchemyRemoteStore(db)
