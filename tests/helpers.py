"""Row factories and geometry helpers shared by tests."""
import math

from jemzy.db.base import execute_write_returning
from jemzy.utils.geo import EARTH_RADIUS_M
from jemzy.utils.time_utils import sql_after


def offset(lat: float, lng: float, meters: float, bearing_deg: float = 0.0) -> tuple[float, float]:
    """Point `meters` away along `bearing_deg` on the haversine sphere."""
    delta = meters / EARTH_RADIUS_M
    theta = math.radians(bearing_deg)
    phi1 = math.radians(lat)
    lam1 = math.radians(lng)
    phi2 = math.asin(math.sin(phi1) * math.cos(delta) + math.cos(phi1) * math.sin(delta) * math.cos(theta))
    lam2 = lam1 + math.atan2(
        math.sin(theta) * math.sin(delta) * math.cos(phi1),
        math.cos(delta) - math.sin(phi1) * math.sin(phi2),
    )
    return math.degrees(phi2), math.degrees(lam2)


async def add_chest(lat, lng, coin_reward=10, expires_at=None, **extra) -> int:
    if expires_at is None:
        expires_at = sql_after(hours=2)
    cols = {"latitude": lat, "longitude": lng, "coin_reward": coin_reward,
            "expires_at": expires_at, **extra}
    return await insert_row("treasure_chests", cols)


async def add_box(lat, lng, coin_reward=3, xp_reward=12, lantern_reward=2, expires_at=None, **extra) -> int:
    if expires_at is None:
        expires_at = sql_after(hours=1)
    cols = {"latitude": lat, "longitude": lng, "coin_reward": coin_reward, "xp_reward": xp_reward,
            "lantern_reward": lantern_reward, "rarity": "rare", "expires_at": expires_at, **extra}
    return await insert_row("mystery_boxes", cols)


async def add_video(user_id, lat, lng, title="clip", **extra) -> int:
    cols = {"user_id": user_id, "title": title, "category": "fun",
            "latitude": lat, "longitude": lng, **extra}
    return await insert_row("videos", cols)


async def add_dragon(lat, lng, coin_reward=100, health=2, expires_at=None, **extra) -> int:
    if expires_at is None:
        expires_at = sql_after(hours=24)
    cols = {"latitude": str(lat), "longitude": str(lng), "coin_reward": coin_reward,
            "total_health": health, "current_health": health, "expires_at": expires_at, **extra}
    return await insert_row("dragons", cols)


async def add_quest(creator_id, lat, lng, radius_in_feet=500, end_date=None, **extra) -> int:
    if end_date is None:
        end_date = sql_after(days=1)
    cols = {"creator_id": creator_id, "title": "quest", "latitude": lat, "longitude": lng,
            "radius_in_feet": radius_in_feet, "end_date": end_date, **extra}
    return await insert_row("quests", cols)


async def insert_row(table: str, cols: dict) -> int:
    names = ", ".join(cols)
    marks = ", ".join("?" for _ in cols)
    return await execute_write_returning(
        f"INSERT INTO {table} ({names}) VALUES ({marks})", tuple(cols.values())
    )
