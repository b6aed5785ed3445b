from aiogram.types import ReplyKeyboardMarkup, KeyboardButton


def location_request_keyboard(texts: dict) -> ReplyKeyboardMarkup:
    """Reply keyboard with a location share button."""
    return ReplyKeyboardMarkup(
        keyboard=[[KeyboardButton(text=texts["share_location_btn"], request_location=True)]],
        resize_keyboard=True,
        is_persistent=True,
    )
