from typing import Any, Callable, Awaitable

from aiogram import BaseMiddleware
from aiogram.types import Message, CallbackQuery

from jemzy.i18n.en import TEXTS_EN
from jemzy.services.user_service import get_user_by_telegram


class UserMiddleware(BaseMiddleware):
    """
    Injects `texts` and `user` (the users row, or None before /start)
    into handler data.
    """

    async def __call__(
        self,
        handler: Callable[[Message | CallbackQuery, dict[str, Any]], Awaitable[Any]],
        event: Message | CallbackQuery,
        data: dict[str, Any],
    ) -> Any:
        data["texts"] = TEXTS_EN
        data["user"] = await get_user_by_telegram(event.from_user.id)
        return await handler(event, data)
