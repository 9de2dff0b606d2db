from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Awaitable, Callable

from aiogram import Bot
from aiogram.exceptions import (
    TelegramAPIError,
    TelegramBadRequest,
    TelegramForbiddenError,
    TelegramNetworkError,
    TelegramRetryAfter,
)
from aiogram.types import FSInputFile
from loguru import logger

from premium_bot.domain.models import MediaKind


class TelegramSenderError(RuntimeError):
    pass


class TelegramSender:
    """
    Sends messages and files to Telegram.

    Strategy:
      - audio goes as send_audio, video as send_video
      - if Telegram rejects the typed upload, fall back to send_document
      - network errors and flood waits are retried a few times
    """

    def __init__(self, *, bot: Bot, max_upload_bytes: int, attempts: int = 3) -> None:
        self._bot = bot
        self._max_bytes = max_upload_bytes
        self._attempts = attempts

    async def send_status(self, chat_id: int, text: str) -> int:
        msg = await self._bot.send_message(chat_id=chat_id, text=text)
        return msg.message_id

    async def edit_status(self, chat_id: int, message_id: int, text: str) -> None:
        try:
            await self._bot.edit_message_text(chat_id=chat_id, message_id=message_id, text=text)
        except TelegramBadRequest as exc:
            # "message is not modified" and similar
            logger.debug("edit_status skipped: {}", exc)

    async def send_text(self, chat_id: int, text: str) -> None:
        await self._with_retry(lambda: self._bot.send_message(chat_id=chat_id, text=text), what="message")

    async def send_media(self, chat_id: int, file_path: Path, *, kind: MediaKind, caption: str | None = None) -> None:
        if not file_path.exists():
            raise TelegramSenderError("File not found before sending.")
        size = file_path.stat().st_size
        if size <= 0:
            raise TelegramSenderError("File is empty.")
        if size > self._max_bytes:
            raise TelegramSenderError("File exceeds the Telegram bot upload limit.")

        input_file = FSInputFile(path=str(file_path), filename=file_path.name)

        async def typed() -> object:
            if kind == MediaKind.AUDIO:
                return await self._bot.send_audio(chat_id=chat_id, audio=input_file, caption=caption)
            return await self._bot.send_video(chat_id=chat_id, video=input_file, caption=caption)

        try:
            await self._with_retry(typed, what=kind.value)
        except TelegramSenderError:
            await self._with_retry(
                lambda: self._bot.send_document(chat_id=chat_id, document=input_file, caption=caption),
                what="document",
            )

    async def _with_retry(self, call: Callable[[], Awaitable[object]], *, what: str) -> None:
        last_exc: Exception | None = None
        for attempt in range(self._attempts):
            try:
                await call()
                return
            except TelegramRetryAfter as exc:
                last_exc = exc
                await asyncio.sleep(exc.retry_after)
            except TelegramNetworkError as exc:
                last_exc = exc
                await asyncio.sleep(1 + attempt)
            except (TelegramBadRequest, TelegramForbiddenError) as exc:
                raise TelegramSenderError(f"Telegram rejected the {what}.") from exc
            except TelegramAPIError as exc:
                raise TelegramSenderError(f"Telegram API error while sending the {what}.") from exc
        raise TelegramSenderError(f"Could not send the {what} (network error).") from last_exc
