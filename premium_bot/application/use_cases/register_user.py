from __future__ import annotations

from loguru import logger

from premium_bot.domain.models import UserProfile
from premium_bot.infrastructure.ledger import Ledger


class RegisterUserUseCase:
    """
    Resolve the acting user's profile, creating it on first contact.
    Every call refreshes lastSeen and the Telegram identity fields.
    """

    def __init__(self, *, ledger: Ledger) -> None:
        self._ledger = ledger

    async def execute(
        self,
        *,
        user_id: int,
        username: str | None,
        first_name: str | None,
        last_name: str | None,
    ) -> UserProfile | None:
        existing = await self._ledger.get_user(user_id)
        profile = await self._ledger.upsert_user(
            user_id,
            username=username,
            first_name=first_name,
            last_name=last_name,
        )
        if profile is not None and existing is None:
            logger.info("New user registered: {}", username or first_name or user_id)
        return profile
