"""HTTP JSON endpoints under /api."""
from aiohttp import web

from jemzy.api.middlewares import error_middleware, session_middleware, require_user, read_json
from jemzy.config import DEFAULT_RADIUS_METERS
from jemzy.errors import InvalidArgument
from jemzy.services import collect_service, dragon_service, geo_service, xp_service
from jemzy.utils.geo import make_point

routes = web.RouteTableDef()


def _camel(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part.capitalize() for part in rest)


def to_json(item: dict) -> dict:
    return {_camel(k): v for k, v in item.items()}


def _entity_id(request: web.Request) -> int:
    try:
        return int(request.match_info["id"])
    except ValueError:
        raise InvalidArgument("id must be an integer") from None


async def _nearby_or_active(request: web.Request, kind: geo_service.EntityKind) -> web.Response:
    query = request.query
    if "lat" in query or "lng" in query:
        origin = make_point(query.get("lat"), query.get("lng"))
        items = await geo_service.find_nearby(kind, origin, query.get("radius", DEFAULT_RADIUS_METERS))
    else:
        items = await geo_service.list_active(kind)
    return web.json_response([to_json(i) for i in items])


@routes.get("/api/nearby-videos")
async def nearby_videos(request: web.Request):
    query = request.query
    origin = make_point(query.get("lat"), query.get("lng"))
    items = await geo_service.find_nearby(
        geo_service.VIDEOS, origin, query.get("radius", DEFAULT_RADIUS_METERS)
    )
    return web.json_response([to_json(i) for i in items])


@routes.get("/api/treasure-chests")
async def treasure_chests(request: web.Request):
    return await _nearby_or_active(request, geo_service.TREASURE_CHESTS)


@routes.get("/api/mystery-boxes")
async def mystery_boxes(request: web.Request):
    return await _nearby_or_active(request, geo_service.MYSTERY_BOXES)


@routes.get("/api/dragons")
async def dragons(request: web.Request):
    items = await geo_service.list_active(geo_service.DRAGONS)
    return web.json_response([to_json(i) for i in items])


@routes.get("/api/quests/active")
async def active_quests(request: web.Request):
    items = await geo_service.list_active(geo_service.QUESTS)
    return web.json_response([to_json(i) for i in items])


async def _collect(request: web.Request, kind: geo_service.EntityKind) -> web.Response:
    user_id = require_user(request)
    body = await read_json(request)
    point = make_point(body.get("lat"), body.get("lng"))
    result = await collect_service.collect(kind.name, _entity_id(request), user_id, point)
    return web.json_response(result)


@routes.post("/api/treasure-chests/{id}/collect")
async def collect_treasure_chest(request: web.Request):
    return await _collect(request, geo_service.TREASURE_CHESTS)


@routes.post("/api/mystery-boxes/{id}/collect")
async def collect_mystery_box(request: web.Request):
    return await _collect(request, geo_service.MYSTERY_BOXES)


@routes.post("/api/dragons/{id}/attack")
async def attack_dragon(request: web.Request):
    user_id = require_user(request)
    body = await read_json(request)
    video_id = body.get("videoId")
    if isinstance(video_id, bool) or not isinstance(video_id, int):
        raise InvalidArgument("videoId must be an integer")
    result = await dragon_service.attack_dragon(_entity_id(request), user_id, video_id)
    return web.json_response(result)


@routes.post("/api/xp/award")
async def award_xp(request: web.Request):
    user_id = require_user(request)
    body = await read_json(request)
    activity = body.get("activity")
    if not isinstance(activity, str):
        raise InvalidArgument("activity is required")
    result = await xp_service.award_xp(user_id, activity, body.get("customAmount"))
    return web.json_response(result.as_json())


@routes.get("/api/xp/user")
async def user_xp(request: web.Request):
    user_id = require_user(request)
    return web.json_response(await xp_service.get_user_xp(user_id))


@routes.get("/api/xp/levels")
async def levels(request: web.Request):
    try:
        max_level = int(request.query.get("max", 50))
    except ValueError:
        raise InvalidArgument("max must be an integer") from None
    if not 0 <= max_level <= 1000:
        raise InvalidArgument("max must be between 0 and 1000")
    return web.json_response(xp_service.level_table(max_level))


def create_app() -> web.Application:
    app = web.Application(middlewares=[error_middleware, session_middleware])
    app.add_routes(routes)
    return app
