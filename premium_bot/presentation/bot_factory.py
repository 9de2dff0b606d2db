from __future__ import annotations

from aiogram import Bot, Dispatcher

from premium_bot.di import Container
from premium_bot.presentation.middlewares.command_log import CommandLogMiddleware
from premium_bot.presentation.middlewares.logging import LoggingMiddleware
from premium_bot.presentation.middlewares.throttling import ThrottlingMiddleware
from premium_bot.presentation.middlewares.user_context import UserContextMiddleware
from premium_bot.presentation.routers.admin import router as admin_router
from premium_bot.presentation.routers.callbacks import router as callbacks_router
from premium_bot.presentation.routers.common import router as common_router
from premium_bot.presentation.routers.download import router as download_router
from premium_bot.presentation.routers.errors import router as errors_router
from premium_bot.presentation.routers.premium import router as premium_router


def build_dispatcher_and_bot(container: Container) -> tuple[Bot, Dispatcher]:
    settings = container.settings

    bot: Bot = container.get("bot")
    dp = Dispatcher()

    logging_mw = LoggingMiddleware()
    user_context = UserContextMiddleware(register=container.get("register_user_uc"), admin_ids=settings.admin_ids)
    throttling = ThrottlingMiddleware(limiter=container.get("rate_limiter"), exempt_ids=settings.admin_ids)

    # Middlewares: admit, then identify the user, then record the command
    for observer in (dp.message, dp.callback_query, dp.inline_query):
        observer.middleware(logging_mw)
        observer.middleware(throttling)
        observer.middleware(user_context)
    dp.message.middleware(CommandLogMiddleware(ledger=container.get("ledger")))

    # Routers (premium before callbacks: it owns the stats/history menu sections)
    dp.include_router(common_router)
    dp.include_router(download_router)
    dp.include_router(premium_router)
    dp.include_router(admin_router)
    dp.include_router(callbacks_router)
    dp.include_router(errors_router)

    # Dependencies injection (aiogram 3: put in workflow data)
    dp.workflow_data.update(
        settings=settings,
        pending=container.get("pending_actions"),
        download=container.get("download_media_uc"),
        user_stats=container.get("user_stats_uc"),
        admin_stats=container.get("admin_stats_uc"),
        change_premium=container.get("change_premium_uc"),
        broadcast=container.get("broadcast_uc"),
    )

    return bot, dp
