"""Tests for dragon attacks."""
import asyncio

import pytest

from jemzy.db.base import fetch_one, fetch_all
from jemzy.errors import Conflict, InvalidArgument, NotFound
from jemzy.services import dragon_service
from jemzy.services.user_service import create_user
from jemzy.utils.time_utils import sql_after

from helpers import offset, add_dragon, add_video


@pytest.mark.anyio
async def test_attack_reduces_health_and_awards_help_xp(user_id):
    dragon_id = await add_dragon(40.0, -74.0, health=3)
    video_id = await add_video(user_id, *offset(40.0, -74.0, 30, 0))

    result = await dragon_service.attack_dragon(dragon_id, user_id, video_id)
    assert result["currentHealth"] == 2
    assert result["dragonDefeated"] is False
    assert result["xp"]["currentXP"] == 1


@pytest.mark.anyio
async def test_defeat_splits_coins(user_id):
    other_id = await create_user("friend")
    dragon_id = await add_dragon(40.0, -74.0, coin_reward=100, health=2)
    video_id = await add_video(user_id, 40.0, -74.0)

    await dragon_service.attack_dragon(dragon_id, user_id, video_id)
    result = await dragon_service.attack_dragon(dragon_id, other_id, video_id)

    assert result["dragonDefeated"] is True
    assert sorted(p["coinsEarned"] for p in result["payouts"]) == [50, 50]

    users = await fetch_all("SELECT gem_coins, current_xp FROM users ORDER BY id")
    assert users == [{"gem_coins": 50, "current_xp": 26}, {"gem_coins": 50, "current_xp": 26}]
    dragon = await fetch_one("SELECT is_defeated, current_health FROM dragons WHERE id = ?", (dragon_id,))
    assert dragon == {"is_defeated": 1, "current_health": 0}


@pytest.mark.anyio
async def test_one_attack_per_user(user_id):
    dragon_id = await add_dragon(40.0, -74.0, health=5)
    video_id = await add_video(user_id, 40.0, -74.0)
    await dragon_service.attack_dragon(dragon_id, user_id, video_id)
    with pytest.raises(Conflict):
        await dragon_service.attack_dragon(dragon_id, user_id, video_id)
    dragon = await fetch_one("SELECT current_health FROM dragons WHERE id = ?", (dragon_id,))
    assert dragon["current_health"] == 4


@pytest.mark.anyio
async def test_video_outside_radius(user_id):
    dragon_id = await add_dragon(40.0, -74.0)
    video_id = await add_video(user_id, *offset(40.0, -74.0, 100, 0))
    with pytest.raises(InvalidArgument):
        await dragon_service.attack_dragon(dragon_id, user_id, video_id)


@pytest.mark.anyio
async def test_defeated_and_expired(user_id):
    video_id = await add_video(user_id, 40.0, -74.0)
    defeated = await add_dragon(40.0, -74.0, is_defeated=1)
    expired = await add_dragon(40.0, -74.0, expires_at=sql_after(hours=-1))
    with pytest.raises(Conflict):
        await dragon_service.attack_dragon(defeated, user_id, video_id)
    with pytest.raises(Conflict):
        await dragon_service.attack_dragon(expired, user_id, video_id)


@pytest.mark.anyio
async def test_missing_dragon_or_video(user_id):
    with pytest.raises(NotFound):
        await dragon_service.attack_dragon(42, user_id, 1)
    dragon_id = await add_dragon(40.0, -74.0)
    with pytest.raises(NotFound):
        await dragon_service.attack_dragon(dragon_id, user_id, 42)


@pytest.mark.anyio
async def test_unknown_user_leaves_dragon_untouched(user_id):
    dragon_id = await add_dragon(40.0, -74.0, health=3)
    video_id = await add_video(user_id, 40.0, -74.0)
    with pytest.raises(NotFound):
        await dragon_service.attack_dragon(dragon_id, 9999, video_id)

    row = await fetch_one("SELECT current_health FROM dragons WHERE id = ?", (dragon_id,))
    assert row["current_health"] == 3
    assert await fetch_all("SELECT id FROM dragon_attacks") == []


@pytest.mark.anyio
async def test_concurrent_final_blows_defeat_once(user_id):
    users = [user_id] + [await create_user(f"u{i}") for i in range(3)]
    dragon_id = await add_dragon(40.0, -74.0, coin_reward=10, health=1)
    video_id = await add_video(user_id, 40.0, -74.0)

    results = await asyncio.gather(
        *(dragon_service.attack_dragon(dragon_id, u, video_id) for u in users),
        return_exceptions=True,
    )
    wins = [r for r in results if isinstance(r, dict)]
    assert len(wins) == 1
    assert all(isinstance(r, Conflict) for r in results if not isinstance(r, dict))
    assert wins[0]["payouts"] == [{"userId": wins[0]["payouts"][0]["userId"], "coinsEarned": 10}]
