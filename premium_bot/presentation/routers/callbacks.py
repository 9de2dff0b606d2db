from __future__ import annotations

from aiogram import Router
from aiogram.exceptions import TelegramBadRequest
from aiogram.types import CallbackQuery, Message
from loguru import logger

from premium_bot.config import AppSettings
from premium_bot.domain.models import UserProfile
from premium_bot.presentation import texts
from premium_bot.presentation.callback_data import MenuCb
from premium_bot.presentation.keyboards.menu import back_button, downloads_menu, main_menu, premium_menu
from premium_bot.presentation.replies import edit_or_answer

router = Router()


@router.callback_query(MenuCb.filter())
async def menu_cb(
    callback: CallbackQuery,
    callback_data: MenuCb,
    profile: UserProfile | None,
    is_admin: bool,
    settings: AppSettings,
) -> None:
    section = callback_data.section
    await callback.answer()

    if section == "close":
        if isinstance(callback.message, Message):
            try:
                await callback.message.delete()
            except TelegramBadRequest as exc:
                logger.debug("menu close: {}", exc)
        return

    if section == "main":
        await edit_or_answer(callback, texts.menu_text(profile, settings.download_limits), main_menu())
    elif section == "downloads":
        await edit_or_answer(callback, texts.downloads_text(), downloads_menu())
    elif section == "premium":
        is_premium = profile is not None and profile.is_premium
        await edit_or_answer(callback, texts.premium_text(profile), premium_menu(is_premium))
    elif section == "upgrade":
        await edit_or_answer(callback, texts.upgrade_text(), back_button("premium"))
    elif section == "help":
        await edit_or_answer(callback, texts.help_text(is_admin=is_admin), back_button())
    elif section in texts.USAGE:
        await edit_or_answer(callback, texts.USAGE[section], back_button("downloads"))
    else:
        logger.warning("Unknown menu section: {}", section)
