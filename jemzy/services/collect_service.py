"""Claiming treasure chests and mystery boxes."""
import logging

import aiosqlite

from jemzy.config import COLLECTION_RADIUS_FEET
from jemzy.db.base import transaction
from jemzy.errors import Conflict, InvalidArgument, NotFound
from jemzy.services import user_service, xp_service
from jemzy.services.geo_service import EntityKind, TREASURE_CHESTS, MYSTERY_BOXES, get_entity
from jemzy.utils.geo import GeoPoint, haversine_distance_m, meters_to_feet
from jemzy.utils.time_utils import now_sql

logger = logging.getLogger("jemzy")

COLLECTIBLE = {TREASURE_CHESTS.name: TREASURE_CHESTS, MYSTERY_BOXES.name: MYSTERY_BOXES}


def _reward(kind: EntityKind, entity: dict) -> dict:
    """Reward shape of an entity: coins, lanterns and the XP activity/amount to grant."""
    if kind is TREASURE_CHESTS:
        return {
            "coins": entity["coin_reward"],
            "lanterns": 0,
            "activity": "FIND_TREASURE",
            "xp": xp_service.XP_REWARDS["FIND_TREASURE"],
        }
    return {
        "coins": entity["coin_reward"],
        "lanterns": entity["lantern_reward"],
        "activity": "MYSTERY_BOX",
        "xp": entity["xp_reward"],
    }


async def collect(kind_name: str, entity_id: int, user_id: int, point: GeoPoint) -> dict:
    """
    Claim a chest or box for a user standing at `point`.

    The claim is a conditional UPDATE on is_collected, so of two concurrent
    claims exactly one succeeds; the loser gets Conflict. Coins, lanterns
    and XP are granted in the same transaction as the claim.
    """
    kind = COLLECTIBLE.get(kind_name)
    if kind is None:
        raise InvalidArgument(f"{kind_name} cannot be collected")

    entity = await get_entity(kind, entity_id)
    distance_feet = meters_to_feet(
        haversine_distance_m(point, GeoPoint(entity["latitude"], entity["longitude"]))
    )
    if distance_feet > COLLECTION_RADIUS_FEET:
        logger.info(f"Claim rejected: user {user_id} is {distance_feet:.0f} ft from {kind.name} {entity_id}")
        raise InvalidArgument(
            f"too far: you need to be within {COLLECTION_RADIUS_FEET} feet "
            f"(currently {round(distance_feet)} feet away)"
        )

    await user_service.get_user(user_id)

    reward = _reward(kind, entity)
    now = now_sql()
    async with transaction() as db:
        try:
            cursor = await db.execute(f"""
            UPDATE {kind.table}
            SET is_collected = 1, collected_by = ?, collected_at = ?
            WHERE id = ? AND is_active = 1 AND COALESCE(is_collected, 0) = 0
              AND (expires_at IS NULL OR expires_at > ?)
            """, (user_id, now, entity_id, now))
        except aiosqlite.IntegrityError:
            raise NotFound(f"user {user_id} not found") from None
        if cursor.rowcount == 0:
            raise Conflict(f"{kind.name} {entity_id} already collected or expired")

        cursor = await db.execute(
            "UPDATE users SET gem_coins = gem_coins + ?, lanterns = lanterns + ? WHERE id = ?",
            (reward["coins"], reward["lanterns"], user_id),
        )
        if cursor.rowcount == 0:
            raise NotFound(f"user {user_id} not found")

        xp = await xp_service.apply_xp(db, user_id, reward["xp"], reward["activity"])

    logger.info(f"Claim: user {user_id} collected {kind.name} {entity_id} "
                f"({reward['coins']} coins, {reward['lanterns']} lanterns, {reward['xp']} XP)")
    return {
        "id": entity_id,
        "coinReward": reward["coins"],
        "lanternReward": reward["lanterns"],
        "xpReward": reward["xp"],
        "distanceFeet": distance_feet,
        "xp": xp.as_json(),
    }
