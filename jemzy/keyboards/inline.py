"""Inline keyboards for the bot."""
from aiogram.types import InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder


def claim_keyboard(chests: list, boxes: list, texts: dict) -> InlineKeyboardMarkup | None:
    """One claim button per nearby chest and box."""
    builder = InlineKeyboardBuilder()
    for chest in chests:
        builder.button(
            text=texts["claim_chest_btn"].format(distance=chest["distance"]),
            callback_data=f"claim:treasure_chests:{chest['id']}",
        )
    for box in boxes:
        builder.button(
            text=texts["claim_box_btn"].format(distance=box["distance"]),
            callback_data=f"claim:mystery_boxes:{box['id']}",
        )
    if not chests and not boxes:
        return None
    builder.adjust(1)
    return builder.as_markup()
