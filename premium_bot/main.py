from __future__ import annotations

import asyncio
import signal
from types import FrameType
from typing import Callable

from loguru import logger

from .di import Container
from .lifecycle import AppLifecycle
from .logging_setup import setup_logging


def _install_signal_handlers(loop: asyncio.AbstractEventLoop, stop: Callable[[], None]) -> None:
    def _handler(signum: int, _frame: FrameType | None) -> None:
        logger.info("signal received: {}", signum)
        stop()

    for s in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(s, stop)
        except NotImplementedError:
            # Fallback for platforms where add_signal_handler is not supported
            signal.signal(s, _handler)


async def _run_polling(container: Container) -> None:
    from .presentation.bot_factory import build_dispatcher_and_bot

    bot, dp = build_dispatcher_and_bot(container)
    me = await bot.get_me()
    logger.info("Bot started as @{}", me.username)
    await dp.start_polling(bot, handle_signals=False)


async def amain() -> None:
    container = Container.build()
    setup_logging(level=container.settings.log_level)

    lifecycle = AppLifecycle(container=container)

    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()
    _install_signal_handlers(loop, stop_event.set)

    await lifecycle.startup()

    polling_task = asyncio.create_task(_run_polling(container), name="polling")
    stop_task = asyncio.create_task(stop_event.wait(), name="stop_event")

    done, _ = await asyncio.wait({polling_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)

    if stop_task in done and not polling_task.done():
        logger.info("stop requested; cancelling polling")
        polling_task.cancel()
    stop_task.cancel()

    try:
        await polling_task
    except asyncio.CancelledError:
        logger.info("polling cancelled")
    finally:
        await lifecycle.shutdown()
        bot = container.get("bot")
        await bot.session.close()
