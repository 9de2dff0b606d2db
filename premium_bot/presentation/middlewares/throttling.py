from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, Iterable

from aiogram import BaseMiddleware
from aiogram.types import CallbackQuery, Message, TelegramObject
from loguru import logger

from premium_bot.constants import MSG_RATE_LIMITED
from premium_bot.infrastructure.rate_limiter import SlidingWindowRateLimiter


class ThrottlingMiddleware(BaseMiddleware):
    """
    Admission control in front of every handler. Exempt ids (admins) skip it.
    """

    def __init__(self, *, limiter: SlidingWindowRateLimiter, exempt_ids: Iterable[int] = ()) -> None:
        self._limiter = limiter
        self._exempt = frozenset(exempt_ids)

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        from_user = getattr(event, "from_user", None)
        if from_user is None or from_user.id in self._exempt:
            return await handler(event, data)

        decision = self._limiter.check(from_user.id)
        if not decision.allowed:
            logger.warning(
                "Rate limit exceeded for user {}. Reset in {}s", from_user.id, decision.reset_after_sec
            )
            text = MSG_RATE_LIMITED.format(
                reset=decision.reset_after_sec,
                max_requests=self._limiter.max_requests,
                window=int(self._limiter.window_sec),
            )
            if isinstance(event, CallbackQuery):
                await event.answer(text, show_alert=True)
            elif isinstance(event, Message):
                await event.answer(text)
            return None

        data["rate_limit"] = decision
        return await handler(event, data)
