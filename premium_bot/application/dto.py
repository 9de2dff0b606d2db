from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from premium_bot.domain.models import RateLimiterStats, UserProfile
from premium_bot.domain.stats import AdminReport


class PremiumChange(str, Enum):
    NOT_FOUND = "not_found"
    UNCHANGED = "unchanged"
    READY = "ready"
    CHANGED = "changed"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class PremiumChangeDTO:
    outcome: PremiumChange
    target_id: int
    profile: UserProfile | None = None


@dataclass(frozen=True, slots=True)
class DownloadResultDTO:
    delivered: bool
    message: str
    title: str | None = None
    size_mb: float | None = None


@dataclass(frozen=True, slots=True)
class BroadcastResultDTO:
    total: int
    sent: int
    failed: int

    @property
    def success_rate(self) -> int:
        return round(self.sent / self.total * 100) if self.total else 0


@dataclass(frozen=True, slots=True)
class AdminStatsDTO:
    report: AdminReport
    uptime_sec: int
    limiter: RateLimiterStats
    stats_consistent: bool
