from __future__ import annotations

import time

from premium_bot.application.dto import AdminStatsDTO
from premium_bot.domain.errors import PersistenceError
from premium_bot.domain.stats import build_admin_report
from premium_bot.infrastructure.ledger import Clock, Ledger, utc_now
from premium_bot.infrastructure.rate_limiter import SlidingWindowRateLimiter


class AdminStatsUseCase:
    def __init__(
        self,
        *,
        ledger: Ledger,
        limiter: SlidingWindowRateLimiter,
        clock: Clock = utc_now,
    ) -> None:
        self._ledger = ledger
        self._limiter = limiter
        self._clock = clock
        self._started = time.monotonic()

    async def execute(self) -> AdminStatsDTO:
        user_stats = await self._ledger.get_user_stats()
        command_stats = await self._ledger.get_command_stats()
        if user_stats is None or command_stats is None:
            raise PersistenceError("⚠️ Statistics are unavailable right now. Check the data files.")

        users = await self._ledger.get_all_users()
        logs = await self._ledger.get_all_logs()

        report = build_admin_report(users.values(), user_stats, command_stats, logs, now=self._clock())
        return AdminStatsDTO(
            report=report,
            uptime_sec=int(time.monotonic() - self._started),
            limiter=self._limiter.stats(),
            stats_consistent=await self._ledger.verify_stats(),
        )
