from __future__ import annotations

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

from premium_bot.presentation.callback_data import ConfirmCb, HistoryCb, MenuCb


def _btn(text: str, section: str) -> InlineKeyboardButton:
    return InlineKeyboardButton(text=text, callback_data=MenuCb(section=section).pack())


def main_menu() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [_btn("📥 Downloads", "downloads"), _btn("📊 Stats", "stats")],
            [_btn("❓ Help", "help"), _btn("👑 Premium", "premium")],
        ]
    )


def downloads_menu() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [_btn("🎵 YouTube Audio", "ytmp3"), _btn("🎬 YouTube Video", "ytmp4")],
            [_btn("📘 Facebook Video", "fb"), _btn("📸 Instagram Reels", "ig")],
            [_btn("⬅️ Back to Menu", "main")],
        ]
    )


def premium_menu(is_premium: bool) -> InlineKeyboardMarkup:
    if is_premium:
        first_row = [_btn("📈 Premium Stats", "stats"), _btn("📋 History", "history")]
    else:
        first_row = [_btn("💎 How to upgrade", "upgrade")]
    return InlineKeyboardMarkup(inline_keyboard=[first_row, [_btn("⬅️ Back to Menu", "main")]])


def back_button(section: str = "main") -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[[_btn("⬅️ Back", section)]])


def close_button() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[[_btn("❌ Close", "close")]])


def confirm_action(action: str, version: int) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [
                InlineKeyboardButton(
                    text="✅ Confirm",
                    callback_data=ConfirmCb(action=action, version=version, ok=True).pack(),
                ),
                InlineKeyboardButton(
                    text="❌ Cancel",
                    callback_data=ConfirmCb(action=action, version=version, ok=False).pack(),
                ),
            ]
        ]
    )


def history_pagination(page: int, total_pages: int) -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    if page > 1:
        kb.button(text="⬅️ Previous", callback_data=HistoryCb(page=page - 1))
    kb.button(text=f"{page}/{total_pages}", callback_data=HistoryCb(page=page))
    if page < total_pages:
        kb.button(text="Next ➡️", callback_data=HistoryCb(page=page + 1))
    kb.adjust(3)
    kb.row(_btn("⬅️ Back to Menu", "main"))
    return kb.as_markup()
