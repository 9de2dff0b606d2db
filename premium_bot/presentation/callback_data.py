from __future__ import annotations

from aiogram.filters.callback_data import CallbackData


class MenuCb(CallbackData, prefix="menu"):
    section: str


class ConfirmCb(CallbackData, prefix="confirm"):
    action: str
    version: int
    ok: bool


class HistoryCb(CallbackData, prefix="hist"):
    page: int
