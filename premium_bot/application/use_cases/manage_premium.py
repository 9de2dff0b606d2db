from __future__ import annotations

from loguru import logger

from premium_bot.application.dto import PremiumChange, PremiumChangeDTO
from premium_bot.infrastructure.ledger import Ledger
from premium_bot.infrastructure.telegram_sender import TelegramSender, TelegramSenderError


_PROMOTED_TEXT = (
    "🎉 Congratulations!\n\n"
    "You have been promoted to Premium status!\n\n"
    "Premium Benefits:\n"
    "• Higher download limits\n"
    "• Advanced statistics\n"
    "• Download history\n"
    "• Priority support"
)
_DEMOTED_TEXT = (
    "ℹ️ Your Premium status has ended.\n\n"
    "You can keep using the bot with the free plan limits."
)


class ChangePremiumUseCase:
    def __init__(self, *, ledger: Ledger, sender: TelegramSender) -> None:
        self._ledger = ledger
        self._sender = sender

    async def inspect(self, *, target_id: int, make_premium: bool) -> PremiumChangeDTO:
        """
        Check whether the change would do anything, without applying it.
        """
        profile = await self._ledger.get_user(target_id)
        if profile is None:
            return PremiumChangeDTO(outcome=PremiumChange.NOT_FOUND, target_id=target_id)
        if profile.is_premium == make_premium:
            return PremiumChangeDTO(outcome=PremiumChange.UNCHANGED, target_id=target_id, profile=profile)
        return PremiumChangeDTO(outcome=PremiumChange.READY, target_id=target_id, profile=profile)

    async def execute(self, *, target_id: int, make_premium: bool, admin_id: int) -> PremiumChangeDTO:
        if not await self._ledger.set_premium_status(target_id, make_premium):
            # absent user and failed write look the same from here
            profile = await self._ledger.get_user(target_id)
            outcome = PremiumChange.NOT_FOUND if profile is None else PremiumChange.FAILED
            return PremiumChangeDTO(outcome=outcome, target_id=target_id, profile=profile)

        action = "promoted to premium" if make_premium else "demoted to free"
        logger.info("User {} {} by admin {}", target_id, action, admin_id)

        try:
            await self._sender.send_text(target_id, _PROMOTED_TEXT if make_premium else _DEMOTED_TEXT)
        except TelegramSenderError as exc:
            logger.warning("Could not notify user {} about premium change: {}", target_id, exc)

        profile = await self._ledger.get_user(target_id)
        return PremiumChangeDTO(outcome=PremiumChange.CHANGED, target_id=target_id, profile=profile)
