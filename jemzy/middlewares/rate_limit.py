import time
from collections import defaultdict, deque
from typing import Any, Callable, Awaitable

from aiogram import BaseMiddleware
from aiogram.types import CallbackQuery

from jemzy.config import RATE_LIMIT_WINDOW, RATE_LIMIT_MAX_HITS
from jemzy.i18n.en import TEXTS_EN


class RateLimitMiddleware(BaseMiddleware):
    """
    Sliding-window limit on claim buttons: at most `max_hits` presses
    per user within `window` seconds. Other callbacks pass through.
    """

    def __init__(self, prefixes: tuple = ("claim:",),
                 window: float = RATE_LIMIT_WINDOW, max_hits: int = RATE_LIMIT_MAX_HITS):
        super().__init__()
        self.prefixes = prefixes
        self.window = window
        self.max_hits = max_hits
        self.presses: dict[int, deque] = defaultdict(deque)

    def _allow(self, tg_id: int) -> bool:
        now = time.monotonic()
        presses = self.presses[tg_id]
        while presses and now - presses[0] >= self.window:
            presses.popleft()
        if len(presses) >= self.max_hits:
            return False
        presses.append(now)
        return True

    async def __call__(
        self,
        handler: Callable[[CallbackQuery, dict[str, Any]], Awaitable[Any]],
        event: CallbackQuery,
        data: dict[str, Any],
    ) -> Any:
        if not isinstance(event, CallbackQuery) or not (event.data or "").startswith(self.prefixes):
            return await handler(event, data)

        if not self._allow(event.from_user.id):
            texts = data.get("texts", TEXTS_EN)
            await event.answer(texts["rate_limit"], show_alert=True)
            return None

        return await handler(event, data)
