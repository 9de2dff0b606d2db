from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, Iterable

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject

from premium_bot.application.use_cases.register_user import RegisterUserUseCase


class UserContextMiddleware(BaseMiddleware):
    """
    Puts `profile` (UserProfile | None) and `is_admin` into handler data.
    A None profile means the ledger could not confirm the user.
    """

    def __init__(self, *, register: RegisterUserUseCase, admin_ids: Iterable[int] = ()) -> None:
        self._register = register
        self._admins = frozenset(admin_ids)

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        from_user = getattr(event, "from_user", None)
        if from_user is None:
            data["profile"] = None
            data["is_admin"] = False
            return await handler(event, data)

        data["profile"] = await self._register.execute(
            user_id=from_user.id,
            username=from_user.username,
            first_name=from_user.first_name,
            last_name=from_user.last_name,
        )
        data["is_admin"] = from_user.id in self._admins
        return await handler(event, data)
