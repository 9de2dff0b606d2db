from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command, CommandObject
from aiogram.types import CallbackQuery, Message
from loguru import logger

from premium_bot.application.dto import PremiumChange, PremiumChangeDTO
from premium_bot.application.use_cases.admin_stats import AdminStatsUseCase
from premium_bot.application.use_cases.broadcast import BroadcastUseCase
from premium_bot.application.use_cases.manage_premium import ChangePremiumUseCase
from premium_bot.constants import MSG_NO_PERMISSION, MSG_STATE_UNAVAILABLE
from premium_bot.domain.errors import PersistenceError, ValidationError
from premium_bot.domain.policies import parse_user_id
from premium_bot.infrastructure.pending_actions import PendingActionStore
from premium_bot.logging_setup import log_bot_action
from premium_bot.presentation import texts
from premium_bot.presentation.callback_data import ConfirmCb
from premium_bot.presentation.keyboards.menu import confirm_action
from premium_bot.presentation.replies import edit_or_answer

router = Router()


def _change_text(result: PremiumChangeDTO, *, make_premium: bool) -> str:
    target = result.target_id
    name = result.profile.display_name if result.profile else str(target)
    if result.outcome is PremiumChange.NOT_FOUND:
        return f"❌ User {target} not found. They need to /start the bot first."
    if result.outcome is PremiumChange.UNCHANGED:
        state = "already premium" if make_premium else "not premium"
        return f"ℹ️ User {name} is {state}."
    if result.outcome is PremiumChange.FAILED:
        return MSG_STATE_UNAVAILABLE
    action = "promoted to premium" if make_premium else "demoted to free"
    return f"✅ User {name} ({target}) has been {action}."


@router.message(Command("promote"))
async def promote_handler(
    message: Message,
    command: CommandObject,
    is_admin: bool,
    change_premium: ChangePremiumUseCase,
) -> None:
    admin = message.from_user
    if not is_admin:
        await message.answer(MSG_NO_PERMISSION)
        return

    try:
        target_id = parse_user_id(command.args)
    except ValidationError as e:
        await message.answer(f"{e}\n\n{texts.USAGE['promote']}")
        return

    check = await change_premium.inspect(target_id=target_id, make_premium=True)
    if check.outcome is not PremiumChange.READY:
        await message.answer(_change_text(check, make_premium=True))
        return

    result = await change_premium.execute(target_id=target_id, make_premium=True, admin_id=admin.id)
    await message.answer(_change_text(result, make_premium=True))
    log_bot_action(admin.id, admin.username, f"/promote {target_id}", success=result.outcome is PremiumChange.CHANGED)


@router.message(Command("demote"))
async def demote_handler(
    message: Message,
    command: CommandObject,
    is_admin: bool,
    change_premium: ChangePremiumUseCase,
    pending: PendingActionStore,
) -> None:
    admin = message.from_user
    if not is_admin:
        await message.answer(MSG_NO_PERMISSION)
        return

    try:
        target_id = parse_user_id(command.args)
    except ValidationError as e:
        await message.answer(f"{e}\n\n{texts.USAGE['demote']}")
        return

    check = await change_premium.inspect(target_id=target_id, make_premium=False)
    if check.outcome is not PremiumChange.READY:
        await message.answer(_change_text(check, make_premium=False))
        return

    version = pending.put(user_id=admin.id, action="demote", payload=str(target_id))
    await message.answer(
        f"⚠️ Remove premium from {check.profile.display_name} ({target_id})?",
        reply_markup=confirm_action("demote", version),
    )


@router.message(Command("broadcast"))
async def broadcast_handler(
    message: Message,
    command: CommandObject,
    is_admin: bool,
    broadcast: BroadcastUseCase,
    pending: PendingActionStore,
) -> None:
    admin = message.from_user
    if not is_admin:
        await message.answer(MSG_NO_PERMISSION)
        return

    text = (command.args or "").strip()
    if not text:
        await message.answer(texts.USAGE["broadcast"])
        return

    recipients = await broadcast.recipients()
    version = pending.put(user_id=admin.id, action="broadcast", payload=text)
    await message.answer(
        f"📢 Broadcast Preview\n\n{text}\n\nThis will be sent to {len(recipients)} users.",
        reply_markup=confirm_action("broadcast", version),
    )


@router.message(Command("adminstats"))
async def adminstats_handler(message: Message, is_admin: bool, admin_stats: AdminStatsUseCase) -> None:
    admin = message.from_user
    if not is_admin:
        await message.answer(MSG_NO_PERMISSION)
        return

    try:
        dto = await admin_stats.execute()
    except PersistenceError as e:
        await message.answer(str(e))
        log_bot_action(admin.id, admin.username, "/adminstats", success=False)
        return

    await message.answer(texts.admin_stats(dto))
    log_bot_action(admin.id, admin.username, "/adminstats")


@router.callback_query(ConfirmCb.filter())
async def confirm_cb(
    callback: CallbackQuery,
    callback_data: ConfirmCb,
    is_admin: bool,
    pending: PendingActionStore,
    change_premium: ChangePremiumUseCase,
    broadcast: BroadcastUseCase,
) -> None:
    admin = callback.from_user
    if not is_admin:
        await callback.answer(MSG_NO_PERMISSION, show_alert=True)
        return

    if not callback_data.ok:
        pending.discard(user_id=admin.id, action=callback_data.action)
        await callback.answer()
        await edit_or_answer(callback, "❌ Cancelled.")
        return

    try:
        payload = pending.pop(user_id=admin.id, action=callback_data.action, version=callback_data.version)
    except KeyError:
        await callback.answer("This confirmation has expired.", show_alert=True)
        return

    await callback.answer()

    if callback_data.action == "demote":
        target_id = int(payload)
        result = await change_premium.execute(target_id=target_id, make_premium=False, admin_id=admin.id)
        await edit_or_answer(callback, _change_text(result, make_premium=False))
        log_bot_action(admin.id, admin.username, f"/demote {target_id}", success=result.outcome is PremiumChange.CHANGED)
        return

    if callback_data.action == "broadcast":
        async def progress(done: int, total: int, sent: int, failed: int) -> None:
            await edit_or_answer(callback, texts.broadcast_progress(done, total, sent, failed))

        result = await broadcast.execute(payload, on_progress=progress)
        await edit_or_answer(callback, texts.broadcast_done(result))
        log_bot_action(admin.id, admin.username, "/broadcast")
        return

    logger.warning("Unknown confirm action: {}", callback_data.action)
