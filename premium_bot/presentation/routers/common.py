from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command, CommandStart
from aiogram.types import InlineQuery, InlineQueryResultArticle, InputTextMessageContent, Message

from premium_bot.config import AppSettings
from premium_bot.domain.models import UserProfile
from premium_bot.logging_setup import log_bot_action
from premium_bot.presentation import texts
from premium_bot.presentation.keyboards.menu import main_menu

router = Router()

INLINE_RESULTS_MAX = 10


@router.message(CommandStart())
async def start_handler(message: Message, profile: UserProfile | None) -> None:
    user = message.from_user
    await message.answer(
        texts.welcome(profile, user_id=user.id, first_name=user.first_name),
        reply_markup=main_menu(),
    )
    log_bot_action(user.id, user.username, "/start")


@router.message(Command("help"))
async def help_handler(message: Message, is_admin: bool) -> None:
    await message.answer(texts.help_text(is_admin=is_admin))
    log_bot_action(message.from_user.id, message.from_user.username, "/help")


@router.message(Command("menu"))
async def menu_handler(message: Message, profile: UserProfile | None, settings: AppSettings) -> None:
    await message.answer(texts.menu_text(profile, settings.download_limits), reply_markup=main_menu())
    log_bot_action(message.from_user.id, message.from_user.username, "/menu")


@router.inline_query()
async def inline_handler(inline_query: InlineQuery) -> None:
    query = inline_query.query.strip().lower().lstrip("/")
    matches = [
        (cmd, desc)
        for cmd, desc in texts.COMMANDS
        if not query or query in cmd or query in desc.lower()
    ][:INLINE_RESULTS_MAX]

    results = [
        InlineQueryResultArticle(
            id=cmd.lstrip("/"),
            title=cmd,
            description=desc,
            input_message_content=InputTextMessageContent(message_text=f"{cmd} - {desc}"),
        )
        for cmd, desc in matches
    ]
    await inline_query.answer(results, cache_time=60, is_personal=False)
