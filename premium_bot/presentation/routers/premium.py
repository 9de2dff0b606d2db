from __future__ import annotations

from aiogram import F, Router
from aiogram.filters import Command, CommandObject
from aiogram.types import CallbackQuery, Message

from premium_bot.application.use_cases.user_stats import UserStatsUseCase
from premium_bot.config import AppSettings
from premium_bot.constants import MSG_PREMIUM_REQUIRED, MSG_STATE_UNAVAILABLE
from premium_bot.domain.models import UserProfile
from premium_bot.logging_setup import log_bot_action
from premium_bot.presentation import texts
from premium_bot.presentation.callback_data import HistoryCb, MenuCb
from premium_bot.presentation.keyboards.menu import back_button, history_pagination, premium_menu
from premium_bot.presentation.replies import edit_or_answer

router = Router()


def _denial(profile: UserProfile | None, command: str) -> str | None:
    """
    None when the user may use a premium command; otherwise the text to show.
    A missing profile is a denial.
    """
    if profile is None:
        return MSG_STATE_UNAVAILABLE
    if not profile.is_premium:
        return MSG_PREMIUM_REQUIRED.format(command=command)
    return None


def _parse_page(raw: str | None) -> int:
    value = (raw or "").strip()
    return int(value) if value.isdigit() else 1


@router.message(Command("stats"))
async def stats_handler(
    message: Message,
    profile: UserProfile | None,
    user_stats: UserStatsUseCase,
    settings: AppSettings,
) -> None:
    user = message.from_user
    denial = _denial(profile, "/stats")
    if denial is not None:
        await message.answer(denial, reply_markup=premium_menu(False) if profile is not None else None)
        log_bot_action(user.id, user.username, "/stats", success=False)
        return

    report = await user_stats.report(profile)
    await message.answer(texts.user_report(profile, report, settings.download_limits))
    log_bot_action(user.id, user.username, "/stats")


@router.message(Command("history"))
async def history_handler(
    message: Message,
    command: CommandObject,
    profile: UserProfile | None,
    user_stats: UserStatsUseCase,
) -> None:
    user = message.from_user
    denial = _denial(profile, "/history")
    if denial is not None:
        await message.answer(denial, reply_markup=premium_menu(False) if profile is not None else None)
        log_bot_action(user.id, user.username, "/history", success=False)
        return

    page = await user_stats.history(profile, page=_parse_page(command.args))
    await message.answer(texts.history(page), reply_markup=history_pagination(page.page, page.total_pages))
    log_bot_action(user.id, user.username, "/history")


@router.callback_query(HistoryCb.filter())
async def history_page_cb(
    callback: CallbackQuery,
    callback_data: HistoryCb,
    profile: UserProfile | None,
    user_stats: UserStatsUseCase,
) -> None:
    denial = _denial(profile, "/history")
    if denial is not None:
        await callback.answer(denial, show_alert=True)
        return

    page = await user_stats.history(profile, page=callback_data.page)
    await callback.answer()
    await edit_or_answer(callback, texts.history(page), history_pagination(page.page, page.total_pages))


@router.callback_query(MenuCb.filter(F.section.in_({"stats", "history"})))
async def premium_section_cb(
    callback: CallbackQuery,
    callback_data: MenuCb,
    profile: UserProfile | None,
    user_stats: UserStatsUseCase,
    settings: AppSettings,
) -> None:
    denial = _denial(profile, f"/{callback_data.section}")
    if denial is not None:
        await callback.answer()
        await edit_or_answer(callback, denial, premium_menu(False) if profile is not None else back_button())
        return

    await callback.answer()
    if callback_data.section == "stats":
        report = await user_stats.report(profile)
        await edit_or_answer(callback, texts.user_report(profile, report, settings.download_limits), back_button("premium"))
    else:
        page = await user_stats.history(profile, page=1)
        await edit_or_answer(callback, texts.history(page), history_pagination(page.page, page.total_pages))
