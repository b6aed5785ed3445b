"""/start and /xp."""
import logging

from aiogram import Router
from aiogram.filters import Command, CommandStart
from aiogram.fsm.context import FSMContext
from aiogram.types import Message

from jemzy.keyboards.reply import location_request_keyboard
from jemzy.services import user_service, xp_service
from jemzy.states import NearbySearch

logger = logging.getLogger("jemzy")

router = Router(name="common")


@router.message(CommandStart())
async def cmd_start(message: Message, state: FSMContext, texts: dict, **kwargs):
    tg_user = message.from_user
    user = await user_service.upsert_telegram_user(tg_user.id, tg_user.username)
    logger.info(f"Bot user {tg_user.id} -> user {user['id']}")

    await state.set_state(NearbySearch.waiting_location)
    await message.answer(
        texts["welcome"].format(name=tg_user.first_name or tg_user.username or ""),
        reply_markup=location_request_keyboard(texts),
    )


@router.message(Command("xp"))
async def cmd_xp(message: Message, texts: dict, user: dict | None, **kwargs):
    if not user:
        await message.answer(texts["not_registered"])
        return

    data = await xp_service.get_user_xp(user["id"])
    await message.answer(texts["xp_status"].format(
        level=data["level"],
        xp=data["xp"],
        xp_to_next=data["xpToNextLevel"],
        progress=data["progress"],
    ))
