"""
XP and leveling.

Non-linear progression: XP required for level L is 10 * L^2.
Level 1 = 10 XP, level 2 = 40, level 3 = 90, level 4 = 160, level 5 = 250.
"""
import logging
import math
from typing import NamedTuple

import aiosqlite

from jemzy.config import MAX_XP_AWARD
from jemzy.db.base import fetch_one, transaction
from jemzy.errors import InvalidArgument, NotFound
from jemzy.utils.time_utils import now_sql

logger = logging.getLogger("jemzy")

XP_CONSTANT = 10
XP_EXPONENT = 2

XP_REWARDS = {
    "POST_VIDEO": 20,
    "WATCH_VIDEO": 1,
    "TEXT_COMMENT": 2,
    "VIDEO_COMMENT": 5,
    "FLAG_VIDEO": 25,
    "CREATE_GROUP": 10,
    "TRACK_LOCATION_PER_MILE": 5,
    "FIND_TREASURE": 5,
    "QUEST_PARTICIPATION": 10,
    "QUEST_COMPLETION": 20,
    "DRAGON_HELP": 1,
    "DRAGON_DEFEAT": 25,
    "PLAY_VIDEOS_FREE": 1,
    "PLAY_VIDEOS_PAID": 1,
}


class XPResult(NamedTuple):
    leveled_up: bool
    old_level: int
    new_level: int
    current_xp: int
    next_level_xp: int

    def as_json(self) -> dict:
        return {
            "leveledUp": self.leveled_up,
            "oldLevel": self.old_level,
            "newLevel": self.new_level,
            "currentXP": self.current_xp,
            "nextLevelXP": self.next_level_xp,
        }


def xp_required_for_level(level: int) -> int:
    if level <= 0:
        return 0
    return math.floor(XP_CONSTANT * level ** XP_EXPONENT)


def level_from_xp(xp: int) -> int:
    """Largest level whose requirement is <= xp."""
    if xp <= 0:
        return 0
    # isqrt estimate, then settle against xp_required_for_level
    level = math.isqrt(int(xp) // XP_CONSTANT)
    while xp_required_for_level(level + 1) <= xp:
        level += 1
    while level > 0 and xp_required_for_level(level) > xp:
        level -= 1
    return level


def xp_to_next_level(current_xp: int, current_level: int) -> int:
    return max(0, xp_required_for_level(current_level + 1) - current_xp)


def level_progress(current_xp: int, current_level: int) -> float:
    """Percent of the way from current_level to the next one, in [0, 100]."""
    current_level_xp = xp_required_for_level(current_level)
    next_level_xp = xp_required_for_level(current_level + 1)
    if next_level_xp == current_level_xp:
        return 100.0
    progress = (current_xp - current_level_xp) / (next_level_xp - current_level_xp) * 100
    return max(0.0, min(100.0, progress))


def check_level_up(old_xp: int, new_xp: int) -> tuple[bool, int, int]:
    """Returns (leveled_up, old_level, new_level)."""
    old_level = level_from_xp(old_xp)
    new_level = level_from_xp(new_xp)
    return new_level > old_level, old_level, new_level


def level_table(max_level: int = 50) -> list[dict]:
    table = []
    for level in range(max_level + 1):
        xp_required = xp_required_for_level(level)
        xp_to_next = xp_required_for_level(level + 1) - xp_required if level < max_level else 0
        table.append({"level": level, "xpRequired": xp_required, "xpToNext": xp_to_next})
    return table


def resolve_amount(activity: str, custom_amount: int | None = None) -> int:
    if custom_amount is not None:
        if isinstance(custom_amount, bool) or not isinstance(custom_amount, int):
            raise InvalidArgument(f"customAmount must be an integer, got {custom_amount!r}")
        if custom_amount < 0:
            raise InvalidArgument("customAmount must not be negative")
        if custom_amount > MAX_XP_AWARD:
            raise InvalidArgument(f"customAmount must be at most {MAX_XP_AWARD}")
        return custom_amount
    if activity not in XP_REWARDS:
        raise InvalidArgument(f"unknown activity: {activity!r}")
    return XP_REWARDS[activity]


async def apply_xp(db: aiosqlite.Connection, user_id: int, amount: int, activity: str) -> XPResult:
    """
    Add `amount` XP to a user on an open transaction.

    The increment is a single UPDATE ... RETURNING so the old value is never
    read separately; the cached level is rewritten from the new total.
    """
    cursor = await db.execute(
        "UPDATE users SET current_xp = current_xp + ?, updated_at = ? "
        "WHERE id = ? RETURNING current_xp",
        (amount, now_sql(), user_id),
    )
    row = await cursor.fetchone()
    await cursor.close()
    if row is None:
        raise NotFound(f"user {user_id} not found")

    new_xp = row[0]
    old_xp = new_xp - amount
    leveled_up, old_level, new_level = check_level_up(old_xp, new_xp)
    await db.execute(
        "UPDATE users SET current_level = ? WHERE id = ?",
        (new_level, user_id),
    )

    logger.info(f"XP: user {user_id} +{amount} for {activity} ({old_xp} -> {new_xp})")
    if leveled_up:
        logger.info(f"LEVEL UP: user {user_id} {old_level} -> {new_level}")

    return XPResult(
        leveled_up=leveled_up,
        old_level=old_level,
        new_level=new_level,
        current_xp=new_xp,
        next_level_xp=xp_required_for_level(new_level + 1),
    )


async def award_xp(user_id: int, activity: str, custom_amount: int | None = None) -> XPResult:
    """Award XP for an activity, or an explicit custom amount."""
    amount = resolve_amount(activity, custom_amount)
    async with transaction() as db:
        return await apply_xp(db, user_id, amount, activity)


async def award_xp_for_movement(user_id: int, miles: float) -> XPResult:
    """Distance travelled while tracking location, rounded down to whole XP."""
    if not math.isfinite(miles) or miles < 0:
        raise InvalidArgument(f"miles must be a non-negative number, got {miles!r}")
    amount = math.floor(miles * XP_REWARDS["TRACK_LOCATION_PER_MILE"])
    return await award_xp(user_id, "TRACK_LOCATION_PER_MILE", amount)


async def get_user_xp(user_id: int) -> dict:
    """Current XP and level. The level is derived from XP, never read from the cached column."""
    row = await fetch_one("SELECT current_xp, current_level FROM users WHERE id = ?", (user_id,))
    if not row:
        raise NotFound(f"user {user_id} not found")

    xp = row["current_xp"] or 0
    level = level_from_xp(xp)
    if row["current_level"] != level:
        logger.warning(f"Stale cached level for user {user_id}: {row['current_level']} != {level}")
    return {
        "xp": xp,
        "level": level,
        "xpToNextLevel": xp_to_next_level(xp, level),
        "progress": level_progress(xp, level),
    }
