from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterable, Mapping

from .models import CommandLogEntry, CommandStats, UserProfile, UserStats
from .policies import command_name, youtube_video_id


DOWNLOAD_COMMANDS = frozenset({"/ytmp3", "/ytmp4", "/fb", "/ig"})


def derive_user_stats(users: Iterable[UserProfile], *, now: datetime) -> UserStats:
    """
    Aggregates over the users collection. Always a pure fold, never patched incrementally.
    """
    total = 0
    premium = 0
    for u in users:
        total += 1
        if u.is_premium:
            premium += 1
    return UserStats(total_users=total, premium_users=premium, last_updated=now)


def count_commands(logs: Iterable[CommandLogEntry]) -> Counter[str]:
    return Counter(command_name(entry.command) for entry in logs)


def command_stats_consistent(stats: CommandStats, logs: list[CommandLogEntry]) -> bool:
    """
    Lifetime counters must cover the retained window and sum to the total.
    """
    if sum(stats.command_stats.values()) != stats.total_commands:
        return False
    if stats.total_commands < len(logs):
        return False
    retained = count_commands(logs)
    return all(stats.command_stats.get(name, 0) >= count for name, count in retained.items())


def is_download_command(command: str) -> bool:
    return command_name(command) in DOWNLOAD_COMMANDS


def _same_day(a: datetime, b: datetime) -> bool:
    return a.date() == b.date()


def _same_week(a: datetime, b: datetime) -> bool:
    return a.isocalendar()[:2] == b.isocalendar()[:2]


def _same_month(a: datetime, b: datetime) -> bool:
    return (a.year, a.month) == (b.year, b.month)


def _previous_month(now: datetime) -> tuple[int, int]:
    first = now.replace(day=1)
    prev = first - timedelta(days=1)
    return prev.year, prev.month


def _percent(part: int, whole: int) -> int:
    return round(part / whole * 100) if whole > 0 else 0


def top_commands(counts: Mapping[str, int]) -> list[tuple[str, int]]:
    return sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))


@dataclass(frozen=True, slots=True)
class UserUsageReport:
    total_downloads: int
    member_since: datetime
    last_activity: datetime
    total_commands: int
    monthly_commands: int
    monthly_downloads: int
    today_commands: int
    weekly_commands: int
    most_used_command: str | None
    top_commands: list[tuple[str, int]]
    avg_per_day: float


def build_user_report(profile: UserProfile, logs: list[CommandLogEntry], *, now: datetime) -> UserUsageReport:
    counts: Counter[str] = Counter()
    monthly = monthly_downloads = today = weekly = 0

    for entry in logs:
        name = command_name(entry.command)
        counts[name] += 1
        ts = entry.timestamp
        if _same_month(ts, now):
            monthly += 1
            if name in DOWNLOAD_COMMANDS:
                monthly_downloads += 1
        if _same_day(ts, now):
            today += 1
        if _same_week(ts, now):
            weekly += 1

    ranked = top_commands(counts)
    days = max((now - profile.joined_at).days, 1)

    return UserUsageReport(
        total_downloads=profile.download_count,
        member_since=profile.joined_at,
        last_activity=profile.last_seen,
        total_commands=len(logs),
        monthly_commands=monthly,
        monthly_downloads=monthly_downloads,
        today_commands=today,
        weekly_commands=weekly,
        most_used_command=ranked[0][0] if ranked else None,
        top_commands=ranked,
        avg_per_day=round(len(logs) / days, 1),
    )


@dataclass(frozen=True, slots=True)
class HistoryItem:
    command: str
    title: str
    timestamp: datetime


@dataclass(frozen=True, slots=True)
class HistoryPage:
    page: int
    total_pages: int
    total_downloads: int
    this_month: int
    most_used: tuple[str, int] | None
    first_download: datetime | None
    items: list[HistoryItem] = field(default_factory=list)


def _history_title(entry: CommandLogEntry) -> str:
    title = entry.metadata.get("title")
    if title:
        return title
    parts = entry.command.split()
    url = parts[1] if len(parts) > 1 else ""
    if "youtube.com" in url or "youtu.be" in url:
        video_id = youtube_video_id(url)
        return f"Video: {video_id}" if video_id else "YouTube Video"
    if "facebook.com" in url:
        return "Facebook Video"
    if "instagram.com" in url:
        return "Instagram Content"
    return "Unknown"


def build_history_page(
    logs: list[CommandLogEntry],
    *,
    page: int,
    page_size: int,
    now: datetime,
) -> HistoryPage:
    """
    `logs` are most-recent-first, as returned by the ledger.
    Out-of-range pages are clamped.
    """
    downloads = [e for e in logs if is_download_command(e.command)]
    total_pages = max(1, -(-len(downloads) // page_size))
    page = min(max(page, 1), total_pages)
    start = (page - 1) * page_size

    items = [
        HistoryItem(command=command_name(e.command), title=_history_title(e), timestamp=e.timestamp)
        for e in downloads[start : start + page_size]
    ]
    ranked = top_commands(count_commands(downloads))

    return HistoryPage(
        page=page,
        total_pages=total_pages,
        total_downloads=len(downloads),
        this_month=sum(1 for e in downloads if _same_month(e.timestamp, now)),
        most_used=ranked[0] if ranked else None,
        first_download=downloads[-1].timestamp if downloads else None,
        items=items,
    )


@dataclass(frozen=True, slots=True)
class AdminReport:
    total_users: int
    premium_users: int
    free_users: int
    premium_percentage: int
    active_today: int
    active_week: int
    new_today: int
    users_this_month: int
    total_commands: int
    commands_today: int
    commands_week: int
    total_downloads: int
    downloads_today: int
    avg_commands_per_user: int
    top_commands: list[tuple[str, int]]
    growth_rate: int
    retention_rate: int
    users_updated: datetime | None
    commands_updated: datetime | None


def build_admin_report(
    users: Iterable[UserProfile],
    user_stats: UserStats,
    command_stats: CommandStats,
    logs: list[CommandLogEntry],
    *,
    now: datetime,
) -> AdminReport:
    profiles = list(users)
    prev_year, prev_month = _previous_month(now)
    week_ago = now - timedelta(weeks=1)
    two_weeks_ago = now - timedelta(weeks=2)

    premium = active_today = active_week = new_today = this_month = prev_month_joins = 0
    total_downloads = 0
    active_last_week = still_active = 0

    for u in profiles:
        if u.is_premium:
            premium += 1
        if _same_day(u.last_seen, now):
            active_today += 1
        if _same_week(u.last_seen, now):
            active_week += 1
        if _same_day(u.joined_at, now):
            new_today += 1
        if _same_month(u.joined_at, now):
            this_month += 1
        elif (u.joined_at.year, u.joined_at.month) == (prev_year, prev_month):
            prev_month_joins += 1
        if two_weeks_ago <= u.last_seen < week_ago:
            active_last_week += 1
        elif u.last_seen >= week_ago:
            still_active += 1
        total_downloads += u.download_count

    commands_today = sum(1 for e in logs if _same_day(e.timestamp, now))
    commands_week = sum(1 for e in logs if _same_week(e.timestamp, now))
    downloads_today = sum(1 for e in logs if _same_day(e.timestamp, now) and is_download_command(e.command))

    if prev_month_joins == 0:
        growth = 100 if this_month > 0 else 0
    else:
        growth = round((this_month - prev_month_joins) / prev_month_joins * 100)

    total = len(profiles)
    return AdminReport(
        total_users=total,
        premium_users=premium,
        free_users=total - premium,
        premium_percentage=_percent(premium, total),
        active_today=active_today,
        active_week=active_week,
        new_today=new_today,
        users_this_month=this_month,
        total_commands=command_stats.total_commands,
        commands_today=commands_today,
        commands_week=commands_week,
        total_downloads=total_downloads,
        downloads_today=downloads_today,
        avg_commands_per_user=round(command_stats.total_commands / total) if total else 0,
        top_commands=top_commands(command_stats.command_stats),
        growth_rate=growth,
        retention_rate=_percent(still_active, active_last_week + still_active),
        users_updated=user_stats.last_updated,
        commands_updated=command_stats.last_updated,
    )
