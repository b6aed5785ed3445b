"""
Nearby queries over spawned entities.

Every kind goes through the same pipeline:
1. bounding box pre-filter in SQL (uses the (latitude, longitude) indexes),
2. active-state predicate and row cap in SQL,
3. exact haversine distance on the returned rows only,
4. drop rows farther than the radius, stable sort by distance.
"""
import logging
from dataclasses import dataclass

from jemzy.config import NEARBY_LIMITS, MAX_RADIUS_METERS
from jemzy.db.base import fetch_all, fetch_one
from jemzy.errors import InvalidArgument, NotFound
from jemzy.utils.geo import (
    GeoPoint, BoundingBox, bounding_box, longitude_ranges,
    haversine_distance_m, make_point, parse_coordinate, parse_radius, feet_to_meters,
)
from jemzy.utils.time_utils import now_sql

logger = logging.getLogger("jemzy")

# The 111,320 m/degree box is about 0.11% tighter than the 6,371 km sphere
# along meridians; the SQL pre-filter is widened so it never drops a row
# the exact check would keep.
PREFILTER_MARGIN = 1.01


@dataclass(frozen=True)
class EntityKind:
    """How to find one kind of spawned entity."""
    name: str
    table: str
    columns: str
    active_sql: str
    order_sql: str
    lat_sql: str = "latitude"
    lng_sql: str = "longitude"
    radius_feet_column: str | None = None

    @property
    def limit(self) -> int:
        return NEARBY_LIMITS[self.name]


_NOT_EXPIRED = "(expires_at IS NULL OR expires_at > :now)"

VIDEOS = EntityKind(
    name="videos",
    table="videos",
    columns="id, title, category, latitude, longitude, user_id, created_at",
    active_sql="is_active = 1 AND visibility = 'everyone' "
               "AND latitude IS NOT NULL AND longitude IS NOT NULL",
    order_sql="created_at DESC, id DESC",
)

TREASURE_CHESTS = EntityKind(
    name="treasure_chests",
    table="treasure_chests",
    columns="id, latitude, longitude, coin_reward, difficulty, spawned_at, expires_at",
    active_sql=f"is_active = 1 AND COALESCE(is_collected, 0) = 0 AND {_NOT_EXPIRED}",
    order_sql="spawned_at DESC, id DESC",
)

MYSTERY_BOXES = EntityKind(
    name="mystery_boxes",
    table="mystery_boxes",
    columns="id, latitude, longitude, coin_reward, xp_reward, lantern_reward, rarity, "
            "spawned_at, expires_at",
    active_sql=f"is_active = 1 AND COALESCE(is_collected, 0) = 0 AND {_NOT_EXPIRED}",
    order_sql="spawned_at DESC, id DESC",
)

DRAGONS = EntityKind(
    name="dragons",
    table="dragons",
    columns="id, latitude, longitude, coin_reward, total_health, current_health, "
            "radius_meters, video_count, spawned_at, expires_at",
    active_sql=f"is_active = 1 AND COALESCE(is_defeated, 0) = 0 AND {_NOT_EXPIRED}",
    order_sql="spawned_at DESC, id DESC",
    lat_sql="CAST(latitude AS REAL)",
    lng_sql="CAST(longitude AS REAL)",
)

QUESTS = EntityKind(
    name="quests",
    table="quests",
    columns="id, creator_id, title, description, latitude, longitude, radius_in_feet, "
            "required_participants, reward_per_participant, start_date, end_date, "
            "status, created_at",
    active_sql="is_active = 1 AND status = 'active' AND end_date > :now",
    order_sql="created_at DESC, id DESC",
    radius_feet_column="radius_in_feet",
)

KINDS = {kind.name: kind for kind in (VIDEOS, TREASURE_CHESTS, MYSTERY_BOXES, DRAGONS, QUESTS)}


def search_box(origin: GeoPoint, radius_m: float) -> BoundingBox:
    """Bounding box used for the SQL pre-filter."""
    return bounding_box(origin, radius_m * PREFILTER_MARGIN)


def normalize_row(kind: EntityKind, row: dict) -> dict:
    """Parse stored coordinates to floats; add radius_meters for kinds stored in feet."""
    item = dict(row)
    item["latitude"] = parse_coordinate(item["latitude"])
    item["longitude"] = parse_coordinate(item["longitude"])
    if kind.radius_feet_column:
        item["radius_meters"] = feet_to_meters(item[kind.radius_feet_column])
    return item


def _box_sql(kind: EntityKind, box: BoundingBox) -> tuple[str, dict]:
    params = {"min_lat": box.min_lat, "max_lat": box.max_lat}
    lng_clauses = []
    for i, (lo, hi) in enumerate(longitude_ranges(box)):
        lng_clauses.append(f"{kind.lng_sql} BETWEEN :lng_lo{i} AND :lng_hi{i}")
        params[f"lng_lo{i}"] = lo
        params[f"lng_hi{i}"] = hi
    sql = f"{kind.lat_sql} BETWEEN :min_lat AND :max_lat AND ({' OR '.join(lng_clauses)})"
    return sql, params


def filter_by_distance(origin: GeoPoint, radius_m: float, rows: list[dict]) -> list[dict]:
    """Attach `distance`, drop rows beyond radius_m, sort ascending (stable)."""
    nearby = []
    for row in rows:
        dist = haversine_distance_m(origin, GeoPoint(row["latitude"], row["longitude"]))
        if dist <= radius_m:
            nearby.append({**row, "distance": dist})
    nearby.sort(key=lambda x: x["distance"])
    return nearby


async def find_nearby(kind: EntityKind, origin: GeoPoint, radius_m) -> list[dict]:
    """Active entities of `kind` within radius_m meters of origin, nearest first."""
    origin = make_point(*origin)
    radius_m = parse_radius(radius_m)
    if radius_m > MAX_RADIUS_METERS:
        raise InvalidArgument(f"radius must be at most {MAX_RADIUS_METERS} meters")

    box = search_box(origin, radius_m)
    box_sql, params = _box_sql(kind, box)
    params.update(now=now_sql(), limit=kind.limit)

    rows = await fetch_all(f"""
    SELECT {kind.columns} FROM {kind.table}
    WHERE {kind.active_sql} AND {box_sql}
    ORDER BY {kind.order_sql}
    LIMIT :limit
    """, params)

    nearby = filter_by_distance(origin, radius_m, [normalize_row(kind, r) for r in rows])
    logger.info(f"Nearby {kind.name}: {len(rows)} in box, {len(nearby)} within {radius_m:.0f} m")
    return nearby


async def list_active(kind: EntityKind) -> list[dict]:
    """Active entities of `kind` by time window only, no distance filter."""
    rows = await fetch_all(f"""
    SELECT {kind.columns} FROM {kind.table}
    WHERE {kind.active_sql}
    ORDER BY {kind.order_sql}
    LIMIT :limit
    """, {"now": now_sql(), "limit": kind.limit})
    return [normalize_row(kind, r) for r in rows]


async def get_entity(kind: EntityKind, entity_id: int) -> dict:
    """Load one entity regardless of state."""
    row = await fetch_one(f"SELECT * FROM {kind.table} WHERE id = ?", (entity_id,))
    if not row:
        raise NotFound(f"{kind.name} {entity_id} not found")
    return normalize_row(kind, row)


async def find_quests_at(point: GeoPoint) -> list[dict]:
    """Active quests whose own circle contains `point`, nearest center first."""
    inside = []
    for quest in await list_active(QUESTS):
        dist = haversine_distance_m(point, GeoPoint(quest["latitude"], quest["longitude"]))
        if dist <= quest["radius_meters"]:
            inside.append({**quest, "distance": dist})
    inside.sort(key=lambda x: x["distance"])
    return inside
