"""Tests for the storage helpers' failure mapping."""
import aiosqlite
import pytest

from jemzy.db import base
from jemzy.errors import Transient
from jemzy.services import xp_service


def _locked(*args, **kwargs):
    raise aiosqlite.OperationalError("database is locked")


@pytest.mark.anyio
async def test_read_failure_is_transient(db, monkeypatch):
    monkeypatch.setattr(base.aiosqlite, "connect", _locked)
    with pytest.raises(Transient) as exc:
        await base.fetch_all("SELECT * FROM users")
    assert isinstance(exc.value.__cause__, aiosqlite.OperationalError)


@pytest.mark.anyio
async def test_write_failure_is_transient(user_id, monkeypatch):
    monkeypatch.setattr(base.aiosqlite, "connect", _locked)
    with pytest.raises(Transient):
        await xp_service.award_xp(user_id, "POST_VIDEO")


@pytest.mark.anyio
async def test_failed_transaction_releases_write_lock(user_id, monkeypatch):
    with monkeypatch.context() as m:
        m.setattr(base.aiosqlite, "connect", _locked)
        with pytest.raises(Transient):
            await xp_service.award_xp(user_id, "POST_VIDEO")

    assert not base._write_lock.locked()
    result = await xp_service.award_xp(user_id, "POST_VIDEO")
    assert result.current_xp == 20
