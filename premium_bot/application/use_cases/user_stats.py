from __future__ import annotations

from premium_bot.constants import HISTORY_PAGE_SIZE, STATS_LOG_SCAN
from premium_bot.domain.models import UserProfile
from premium_bot.domain.stats import HistoryPage, UserUsageReport, build_history_page, build_user_report
from premium_bot.infrastructure.ledger import Clock, Ledger, utc_now


class UserStatsUseCase:
    def __init__(self, *, ledger: Ledger, clock: Clock = utc_now) -> None:
        self._ledger = ledger
        self._clock = clock

    async def report(self, profile: UserProfile) -> UserUsageReport:
        logs = await self._ledger.get_user_logs(profile.id, STATS_LOG_SCAN)
        return build_user_report(profile, logs, now=self._clock())

    async def history(self, profile: UserProfile, *, page: int = 1) -> HistoryPage:
        logs = await self._ledger.get_user_logs(profile.id, STATS_LOG_SCAN)
        return build_history_page(logs, page=page, page_size=HISTORY_PAGE_SIZE, now=self._clock())
