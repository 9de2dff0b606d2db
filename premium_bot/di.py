from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from aiogram import Bot

from .application.use_cases.admin_stats import AdminStatsUseCase
from .application.use_cases.broadcast import BroadcastUseCase
from .application.use_cases.download_media import DownloadMediaUseCase
from .application.use_cases.manage_premium import ChangePremiumUseCase
from .application.use_cases.register_user import RegisterUserUseCase
from .application.use_cases.user_stats import UserStatsUseCase
from .config import AppSettings, get_settings
from .infrastructure.ledger import Ledger
from .infrastructure.pending_actions import PendingActionStore
from .infrastructure.rate_limiter import SlidingWindowRateLimiter
from .infrastructure.telegram_sender import TelegramSender
from .infrastructure.temp_storage import TempStorage
from .infrastructure.yt import YdlClient, YdlConfig


class DIError(RuntimeError):
    pass


@runtime_checkable
class AsyncStartStop(Protocol):
    async def start(self) -> None: ...
    async def stop(self) -> None: ...


@dataclass(slots=True)
class Container:
    settings: AppSettings
    _components: dict[str, Any]

    @classmethod
    def build(cls, settings: AppSettings | None = None) -> "Container":
        return cls(settings=settings or get_settings(), _components={})

    def register(self, name: str, component: Any) -> None:
        if not name or not name.strip():
            raise DIError("Component name must be non-empty")
        if name in self._components:
            raise DIError(f"Component already registered: {name}")
        self._components[name] = component

    def get(self, name: str) -> Any:
        try:
            return self._components[name]
        except KeyError as exc:
            raise DIError(f"Unknown component: {name}") from exc

    def all_components(self) -> list[tuple[str, Any]]:
        return list(self._components.items())


def build_graph(container: Container) -> None:
    """
    Build the whole dependency graph.
    Any init error must crash at startup.
    """

    s = container.settings

    # Core singletons
    ledger = Ledger(data_dir=s.data_dir, limits=s.download_limits, log_retention=s.log_retention)
    rate_limiter = SlidingWindowRateLimiter(
        max_requests=s.rate_limit_max_requests,
        window_sec=s.rate_limit_window_sec,
        cleanup_interval_sec=s.rate_limit_cleanup_interval_sec,
    )
    temp_storage = TempStorage(root=s.temp_root)
    pending = PendingActionStore()

    # Media
    ydl = YdlClient(cfg=YdlConfig())

    # Bot / sender
    bot = Bot(token=s.bot_token)
    sender = TelegramSender(bot=bot, max_upload_bytes=s.max_upload_bytes)

    # Use cases
    register_user = RegisterUserUseCase(ledger=ledger)
    download = DownloadMediaUseCase(
        ledger=ledger,
        ydl=ydl,
        temp_storage=temp_storage,
        sender=sender,
        max_upload_bytes=s.max_upload_bytes,
    )
    user_stats = UserStatsUseCase(ledger=ledger)
    admin_stats = AdminStatsUseCase(ledger=ledger, limiter=rate_limiter)
    change_premium = ChangePremiumUseCase(ledger=ledger, sender=sender)
    broadcast = BroadcastUseCase(ledger=ledger, sender=sender)

    # Register (storage first: lifecycle starts components in this order)
    container.register("ledger", ledger)
    container.register("rate_limiter", rate_limiter)
    container.register("temp_storage", temp_storage)
    container.register("pending_actions", pending)

    container.register("bot", bot)
    container.register("telegram_sender", sender)

    container.register("register_user_uc", register_user)
    container.register("download_media_uc", download)
    container.register("user_stats_uc", user_stats)
    container.register("admin_stats_uc", admin_stats)
    container.register("change_premium_uc", change_premium)
    container.register("broadcast_uc", broadcast)
