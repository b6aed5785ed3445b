"""Tests for awarding XP against the database."""
import asyncio

import pytest

from jemzy.db.base import execute_write, fetch_one
from jemzy.errors import InvalidArgument, NotFound
from jemzy.services import xp_service


async def _set_xp(user_id: int, xp: int, level: int | None = None):
    if level is None:
        level = xp_service.level_from_xp(xp)
    await execute_write("UPDATE users SET current_xp = ?, current_level = ? WHERE id = ?", (xp, level, user_id))


@pytest.mark.anyio
async def test_new_user_starts_at_zero(user_id):
    data = await xp_service.get_user_xp(user_id)
    assert data["xp"] == 0
    assert data["level"] == 0
    assert data["xpToNextLevel"] == 10


@pytest.mark.anyio
async def test_award_crossing_level(user_id):
    await _set_xp(user_id, 35)
    result = await xp_service.award_xp(user_id, "FIND_TREASURE")
    assert result.as_json() == {
        "leveledUp": True, "oldLevel": 1, "newLevel": 2, "currentXP": 40, "nextLevelXP": 90,
    }
    row = await fetch_one("SELECT current_xp, current_level FROM users WHERE id = ?", (user_id,))
    assert row == {"current_xp": 40, "current_level": 2}


@pytest.mark.anyio
async def test_award_within_level(user_id):
    await _set_xp(user_id, 35)
    result = await xp_service.award_xp(user_id, "POST_VIDEO", custom_amount=3)
    assert result.leveled_up is False
    assert (result.old_level, result.new_level, result.current_xp) == (1, 1, 38)


@pytest.mark.anyio
async def test_award_multiple_levels(user_id):
    result = await xp_service.award_xp(user_id, "MYSTERY_BOX", custom_amount=100)
    assert result.leveled_up is True
    assert (result.old_level, result.new_level) == (0, 3)


@pytest.mark.anyio
async def test_stale_cached_level_is_ignored(user_id):
    await _set_xp(user_id, 35, level=7)
    result = await xp_service.award_xp(user_id, "WATCH_VIDEO")
    assert result.old_level == 1
    assert result.new_level == 1
    data = await xp_service.get_user_xp(user_id)
    assert data["level"] == 1


@pytest.mark.anyio
async def test_get_user_xp_derives_level(user_id):
    await _set_xp(user_id, 95, level=0)
    data = await xp_service.get_user_xp(user_id)
    assert data["level"] == 3
    assert data["xpToNextLevel"] == 65


@pytest.mark.anyio
async def test_unknown_activity(user_id):
    with pytest.raises(InvalidArgument):
        await xp_service.award_xp(user_id, "NOT_A_THING")


@pytest.mark.anyio
async def test_unknown_user(db):
    with pytest.raises(NotFound):
        await xp_service.award_xp(999, "POST_VIDEO")
    with pytest.raises(NotFound):
        await xp_service.get_user_xp(999)


@pytest.mark.anyio
async def test_movement_xp(user_id):
    result = await xp_service.award_xp_for_movement(user_id, 2.7)
    assert result.current_xp == 13


@pytest.mark.anyio
async def test_concurrent_awards_do_not_lose_updates(user_id):
    await _set_xp(user_id, 35)
    amounts = [5, 7] + [1, 2, 3, 4, 5, 6, 7, 8] * 3
    await asyncio.gather(*(
        xp_service.award_xp(user_id, "MYSTERY_BOX", custom_amount=a) for a in amounts
    ))
    data = await xp_service.get_user_xp(user_id)
    assert data["xp"] == 35 + sum(amounts)
    row = await fetch_one("SELECT current_level FROM users WHERE id = ?", (user_id,))
    assert row["current_level"] == xp_service.level_from_xp(35 + sum(amounts))
