"""
Dragon attacks.

Each user may attack a dragon once, by watching a video that lies within
the dragon's radius. An attack removes one health point. The attack that
brings health to zero defeats the dragon and splits its coin reward among
all attackers in proportion to damage dealt.
"""
import logging

import aiosqlite

from jemzy.db.base import fetch_one, transaction
from jemzy.errors import Conflict, InvalidArgument, NotFound
from jemzy.services import xp_service
from jemzy.services.geo_service import DRAGONS, get_entity
from jemzy.utils.geo import GeoPoint, haversine_distance_m, parse_coordinate
from jemzy.utils.time_utils import now_sql

logger = logging.getLogger("jemzy")


async def _defeat(db: aiosqlite.Connection, dragon_id: int, coin_reward: int) -> list[dict]:
    """Mark defeated (at most once) and pay out attackers. Returns payouts."""
    now = now_sql()
    cursor = await db.execute(
        "UPDATE dragons SET is_defeated = 1, defeated_at = ?, current_health = 0 "
        "WHERE id = ? AND COALESCE(is_defeated, 0) = 0",
        (now, dragon_id),
    )
    if cursor.rowcount == 0:
        return []

    cursor = await db.execute(
        "SELECT id, user_id, damage_dealt FROM dragon_attacks WHERE dragon_id = ? ORDER BY id",
        (dragon_id,),
    )
    attackers = [dict(r) for r in await cursor.fetchall()]
    total_damage = sum(a["damage_dealt"] for a in attackers)

    payouts = []
    for attacker in attackers:
        coins = coin_reward * attacker["damage_dealt"] // total_damage
        await db.execute(
            "UPDATE users SET gem_coins = gem_coins + ? WHERE id = ?",
            (coins, attacker["user_id"]),
        )
        await db.execute(
            "UPDATE dragon_attacks SET coins_earned = ? WHERE id = ?",
            (coins, attacker["id"]),
        )
        await xp_service.apply_xp(db, attacker["user_id"],
                                  xp_service.XP_REWARDS["DRAGON_DEFEAT"], "DRAGON_DEFEAT")
        payouts.append({"userId": attacker["user_id"], "coinsEarned": coins})

    logger.info(f"DRAGON: {dragon_id} defeated, {coin_reward} coins split among {len(attackers)} attackers")
    return payouts


async def attack_dragon(dragon_id: int, user_id: int, video_id: int) -> dict:
    dragon = await get_entity(DRAGONS, dragon_id)
    now = now_sql()
    if dragon["is_defeated"]:
        raise Conflict(f"dragon {dragon_id} has already been defeated")
    if dragon["expires_at"] is not None and dragon["expires_at"] <= now:
        raise Conflict(f"dragon {dragon_id} has expired")

    video = await fetch_one("SELECT id, latitude, longitude FROM videos WHERE id = ?", (video_id,))
    if not video or video["latitude"] is None or video["longitude"] is None:
        raise NotFound(f"video {video_id} not found or has no location")

    distance = haversine_distance_m(
        GeoPoint(dragon["latitude"], dragon["longitude"]),
        GeoPoint(parse_coordinate(video["latitude"]), parse_coordinate(video["longitude"])),
    )
    if distance > dragon["radius_meters"]:
        raise InvalidArgument("video is not within the dragon's radius")

    async with transaction() as db:
        try:
            await db.execute(
                "INSERT INTO dragon_attacks (dragon_id, user_id, video_id, damage_dealt) "
                "VALUES (?, ?, ?, 1)",
                (dragon_id, user_id, video_id),
            )
        except aiosqlite.IntegrityError as e:
            if "UNIQUE" not in str(e):
                raise NotFound(f"user {user_id} not found") from None
            raise Conflict(f"user {user_id} has already attacked dragon {dragon_id}") from None

        cursor = await db.execute(
            "UPDATE dragons SET current_health = current_health - 1 "
            "WHERE id = ? AND COALESCE(is_defeated, 0) = 0 AND current_health > 0 "
            "AND (expires_at IS NULL OR expires_at > ?) "
            "RETURNING current_health",
            (dragon_id, now),
        )
        row = await cursor.fetchone()
        await cursor.close()
        if row is None:
            raise Conflict(f"dragon {dragon_id} can no longer be attacked")
        health = row[0]

        xp = await xp_service.apply_xp(db, user_id, xp_service.XP_REWARDS["DRAGON_HELP"], "DRAGON_HELP")
        payouts = await _defeat(db, dragon_id, dragon["coin_reward"]) if health <= 0 else []

    logger.info(f"DRAGON: user {user_id} hit dragon {dragon_id}, health {health}/{dragon['total_health']}")
    return {
        "dragonId": dragon_id,
        "currentHealth": health,
        "totalHealth": dragon["total_health"],
        "dragonDefeated": health <= 0,
        "payouts": payouts,
        "xp": xp.as_json(),
    }
