from __future__ import annotations

from aiogram import Router
from aiogram.types import ErrorEvent
from loguru import logger

from premium_bot.constants import MSG_INTERNAL_ERROR

router = Router()


@router.error()
async def error_handler(event: ErrorEvent) -> bool:
    logger.opt(exception=event.exception).error("Unhandled error in update {}", event.update.update_id)

    # User-safe fallback
    if event.update.message:
        await event.update.message.answer(MSG_INTERNAL_ERROR)
    elif event.update.callback_query:
        await event.update.callback_query.answer(MSG_INTERNAL_ERROR, show_alert=True)
    return True
