from __future__ import annotations

from aiogram.exceptions import TelegramBadRequest
from aiogram.types import CallbackQuery, InlineKeyboardMarkup, Message
from loguru import logger


async def edit_or_answer(
    callback: CallbackQuery,
    text: str,
    reply_markup: InlineKeyboardMarkup | None = None,
) -> None:
    """
    Replace the text of the message the button belongs to.
    Falls back to a new message when the original is no longer accessible.
    """
    message = callback.message
    if isinstance(message, Message):
        try:
            await message.edit_text(text, reply_markup=reply_markup)
            return
        except TelegramBadRequest as exc:
            # "message is not modified" and friends
            logger.debug("edit_text skipped: {}", exc)
            return
    await callback.bot.send_message(callback.from_user.id, text, reply_markup=reply_markup)
