from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command, CommandObject
from aiogram.types import Message

from premium_bot.application.use_cases.download_media import DownloadMediaUseCase
from premium_bot.constants import MSG_MAINTENANCE
from premium_bot.domain.errors import DomainError, DownloadLimitError
from premium_bot.domain.models import MediaKind
from premium_bot.domain.policies import is_facebook_url, is_instagram_url
from premium_bot.logging_setup import log_bot_action
from premium_bot.presentation.keyboards.menu import premium_menu
from premium_bot.presentation.texts import USAGE

router = Router()

_KINDS = {"ytmp3": MediaKind.AUDIO, "ytmp4": MediaKind.VIDEO}


@router.message(Command("ytmp3", "ytmp4"))
async def youtube_handler(message: Message, command: CommandObject, download: DownloadMediaUseCase) -> None:
    user = message.from_user
    name = command.command.lower()
    url = (command.args or "").strip()
    if not url:
        await message.answer(USAGE[name])
        return

    try:
        result = await download.execute(
            user_id=user.id,
            chat_id=message.chat.id,
            url=url,
            kind=_KINDS[name],
        )
    except DownloadLimitError as e:
        if e.is_premium:
            await message.answer(f"{e}\n\nContact an admin if you need more.")
        else:
            await message.answer(f"{e}\n\nUpgrade to premium for more downloads!", reply_markup=premium_menu(False))
        log_bot_action(user.id, user.username, f"/{name}", success=False)
        return
    except DomainError as e:
        await message.answer(str(e))
        log_bot_action(user.id, user.username, f"/{name}", success=False)
        return

    log_bot_action(user.id, user.username, f"/{name}", success=result.delivered)


@router.message(Command("fb", "ig"))
async def maintenance_handler(message: Message, command: CommandObject) -> None:
    name = command.command.lower()
    url = (command.args or "").strip()
    if not url:
        await message.answer(USAGE[name])
        return

    if name == "fb":
        platform, valid = "Facebook", is_facebook_url(url)
    else:
        platform, valid = "Instagram", is_instagram_url(url)

    if not valid:
        await message.answer(f"❌ Invalid {platform} URL\n\n{USAGE[name]}")
        return

    await message.answer(MSG_MAINTENANCE.format(platform=platform))
    log_bot_action(message.from_user.id, message.from_user.username, f"/{name}", success=False)
