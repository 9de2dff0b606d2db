from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict

from aiogram import BaseMiddleware
from aiogram.types import Message, TelegramObject

from premium_bot.infrastructure.ledger import Ledger


class CommandLogMiddleware(BaseMiddleware):
    def __init__(self, *, ledger: Ledger) -> None:
        self._ledger = ledger

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        if isinstance(event, Message) and event.from_user and event.text and event.text.startswith("/"):
            await self._ledger.log_command(
                event.from_user.id,
                event.text,
                {"chat_id": str(event.chat.id)},
            )
        return await handler(event, data)
