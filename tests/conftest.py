import asyncio

import pytest


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def db(tmp_path, monkeypatch):
    """Fresh SQLite file with the schema applied."""
    from jemzy.db import base
    monkeypatch.setattr(base, "DB_PATH", tmp_path / "jemzy.db")
    monkeypatch.setattr(base, "_write_lock", asyncio.Lock())
    await base.init_db()
    return base


@pytest.fixture
async def user_id(db):
    from jemzy.services.user_service import create_user
    return await create_user("tester")
