from __future__ import annotations

from typing import Awaitable, Callable

from loguru import logger

from premium_bot.application.dto import BroadcastResultDTO
from premium_bot.infrastructure.ledger import Ledger
from premium_bot.infrastructure.telegram_sender import TelegramSender, TelegramSenderError


ProgressCallback = Callable[[int, int, int, int], Awaitable[None]]

PROGRESS_EVERY = 10


class BroadcastUseCase:
    def __init__(self, *, ledger: Ledger, sender: TelegramSender) -> None:
        self._ledger = ledger
        self._sender = sender

    async def recipients(self) -> list[int]:
        return sorted(await self._ledger.get_all_users())

    async def execute(self, text: str, *, on_progress: ProgressCallback | None = None) -> BroadcastResultDTO:
        """
        Send `text` to every known user, one by one.
        `on_progress(done, total, sent, failed)` fires every few users and at the end.
        """
        user_ids = await self.recipients()
        total = len(user_ids)
        sent = failed = 0

        for i, user_id in enumerate(user_ids, start=1):
            try:
                await self._sender.send_text(user_id, f"📢 Broadcast Message\n\n{text}")
                sent += 1
            except TelegramSenderError as exc:
                logger.warning("Failed to send broadcast to user {}: {}", user_id, exc)
                failed += 1

            if on_progress is not None and (i % PROGRESS_EVERY == 0 or i == total):
                await on_progress(i, total, sent, failed)

        logger.info("Broadcast completed: {}/{} sent successfully", sent, total)
        return BroadcastResultDTO(total=total, sent=sent, failed=failed)
