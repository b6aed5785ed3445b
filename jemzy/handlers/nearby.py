"""Location sharing, nearby summary and claim buttons."""
import html
import logging

from aiogram import Router, F
from aiogram.fsm.context import FSMContext
from aiogram.types import Message, CallbackQuery

from jemzy.config import DEFAULT_RADIUS_METERS, BOT_LIST_SIZE
from jemzy.errors import Conflict, InvalidArgument, Transient
from jemzy.keyboards.inline import claim_keyboard
from jemzy.services import collect_service, geo_service
from jemzy.utils.geo import GeoPoint, make_point

logger = logging.getLogger("jemzy")

router = Router(name="nearby")


def render_nearby(chests: list, boxes: list, videos: list, texts: dict) -> str:
    if not (chests or boxes or videos):
        return texts["nearby_empty"]

    lines = [texts["nearby_title"].format(radius=round(DEFAULT_RADIUS_METERS))]
    for chest in chests:
        lines.append(texts["nearby_chest"].format(coins=chest["coin_reward"], distance=chest["distance"]))
    for box in boxes:
        lines.append(texts["nearby_box"].format(rarity=box["rarity"].title(), distance=box["distance"]))
    for video in videos:
        lines.append(texts["nearby_video"].format(title=html.escape(video["title"]), distance=video["distance"]))
    return "\n".join(lines)


@router.message(F.location)
async def on_location(message: Message, state: FSMContext, texts: dict, user: dict | None, **kwargs):
    if not user:
        await message.answer(texts["not_registered"])
        return

    origin = make_point(message.location.latitude, message.location.longitude)
    await state.update_data(lat=origin.latitude, lng=origin.longitude)
    await state.set_state(None)

    try:
        chests = await geo_service.find_nearby(geo_service.TREASURE_CHESTS, origin, DEFAULT_RADIUS_METERS)
        boxes = await geo_service.find_nearby(geo_service.MYSTERY_BOXES, origin, DEFAULT_RADIUS_METERS)
        videos = await geo_service.find_nearby(geo_service.VIDEOS, origin, DEFAULT_RADIUS_METERS)
    except Transient:
        await message.answer(texts["error_generic"])
        return

    chests, boxes, videos = chests[:BOT_LIST_SIZE], boxes[:BOT_LIST_SIZE], videos[:BOT_LIST_SIZE]
    await message.answer(
        render_nearby(chests, boxes, videos, texts),
        reply_markup=claim_keyboard(chests, boxes, texts),
    )


@router.callback_query(F.data.startswith("claim:"))
async def on_claim(callback: CallbackQuery, state: FSMContext, texts: dict, user: dict | None, **kwargs):
    if not user:
        await callback.answer(texts["not_registered"], show_alert=True)
        return

    _, kind_name, entity_id = callback.data.split(":")
    data = await state.get_data()
    if data.get("lat") is None or data.get("lng") is None:
        await callback.answer(texts["share_location_first"], show_alert=True)
        return

    point = GeoPoint(data["lat"], data["lng"])
    try:
        result = await collect_service.collect(kind_name, int(entity_id), user["id"], point)
    except Conflict:
        await callback.answer(texts["already_claimed"], show_alert=True)
        return
    except InvalidArgument as e:
        await callback.answer(texts["too_far"].format(message=e.message), show_alert=True)
        return
    except Transient:
        await callback.answer(texts["error_generic"], show_alert=True)
        return

    await callback.answer(texts["claimed"].format(
        coins=result["coinReward"], lanterns=result["lanternReward"], xp=result["xpReward"],
    ), show_alert=True)
    if result["xp"]["leveledUp"]:
        await callback.message.answer(texts["level_up"].format(level=result["xp"]["newLevel"]))
