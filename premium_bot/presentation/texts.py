from __future__ import annotations

from datetime import datetime

from premium_bot.application.dto import AdminStatsDTO, BroadcastResultDTO
from premium_bot.domain.models import UserProfile
from premium_bot.domain.policies import DownloadLimits
from premium_bot.domain.stats import HistoryPage, UserUsageReport


# (command, description) pairs, also used by inline mode
COMMANDS: list[tuple[str, str]] = [
    ("/start", "Start the bot"),
    ("/help", "Show all commands"),
    ("/menu", "Open the main menu"),
    ("/ytmp3", "Download YouTube audio as MP3"),
    ("/ytmp4", "Download YouTube video as MP4"),
    ("/fb", "Download a Facebook video"),
    ("/ig", "Download Instagram reels and posts"),
    ("/stats", "Your usage statistics (premium)"),
    ("/history", "Your download history (premium)"),
]

ADMIN_COMMANDS: list[tuple[str, str]] = [
    ("/promote", "Grant premium to a user"),
    ("/demote", "Revoke premium from a user"),
    ("/adminstats", "Bot statistics"),
    ("/broadcast", "Message every user"),
]

USAGE: dict[str, str] = {
    "ytmp3": "🎵 YouTube Audio\n\nUsage: /ytmp3 <youtube_url>\nExample: /ytmp3 https://youtu.be/dQw4w9WgXcQ",
    "ytmp4": "🎬 YouTube Video\n\nUsage: /ytmp4 <youtube_url>\nExample: /ytmp4 https://youtu.be/dQw4w9WgXcQ",
    "fb": "📘 Facebook Video\n\nUsage: /fb <facebook_video_url>",
    "ig": "📸 Instagram\n\nUsage: /ig <instagram_url>",
    "promote": "Usage: /promote <user_id>",
    "demote": "Usage: /demote <user_id>",
    "broadcast": "Usage: /broadcast <message>",
}


def _dt(value: datetime | None) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else "never"


def _status(profile: UserProfile | None) -> str:
    if profile is None:
        return "❔ Unknown"
    return "👑 Premium" if profile.is_premium else "🆓 Free"


def welcome(profile: UserProfile | None, *, user_id: int, first_name: str | None) -> str:
    return (
        f"👋 Welcome, {first_name or 'there'}!\n\n"
        "I can download audio and video for you and keep track of your usage.\n\n"
        f"Status: {_status(profile)}\n"
        f"Your ID: {user_id}\n\n"
        "Use the menu below or /help to see every command."
    )


def help_text(*, is_admin: bool) -> str:
    lines = ["📖 Available Commands", "", "General:"]
    lines += [f"{cmd} - {desc}" for cmd, desc in COMMANDS[:3]]
    lines += ["", "Downloads:"]
    lines += [f"{cmd} <url> - {desc}" for cmd, desc in COMMANDS[3:7]]
    lines += ["", "Premium:"]
    lines += [f"{cmd} - {desc}" for cmd, desc in COMMANDS[7:]]
    if is_admin:
        lines += ["", "Admin:"]
        lines += [f"{cmd} - {desc}" for cmd, desc in ADMIN_COMMANDS]
    return "\n".join(lines)


def menu_text(profile: UserProfile | None, limits: DownloadLimits) -> str:
    if profile is None:
        return "🏠 Main Menu\n\nAccount information is unavailable right now."
    limit = limits.for_user(profile.is_premium)
    return (
        "🏠 Main Menu\n\n"
        f"Account: {profile.display_name}\n"
        f"Status: {_status(profile)}\n"
        f"Downloads: {profile.download_count}/{limit}"
    )


def downloads_text() -> str:
    return "📥 Downloads\n\nPick a source to see how to use it."


def premium_text(profile: UserProfile | None) -> str:
    if profile is not None and profile.is_premium:
        return (
            "👑 Premium\n\n"
            "You are a premium user.\n"
            f"Premium since: {_dt(profile.premium_updated)}"
        )
    return "👑 Premium\n\nYou are on the free plan."


def upgrade_text() -> str:
    return (
        "💎 Upgrade to Premium\n\n"
        "• Higher download limits\n"
        "• Longer videos\n"
        "• Advanced statistics\n"
        "• Download history\n\n"
        "Contact an admin to upgrade."
    )


def user_report(profile: UserProfile, report: UserUsageReport, limits: DownloadLimits) -> str:
    lines = [
        "📈 Your Premium Statistics",
        "",
        f"Downloads: {report.total_downloads}/{limits.for_user(profile.is_premium)}",
        f"Member since: {_dt(report.member_since)}",
        f"Last activity: {_dt(report.last_activity)}",
        "",
        f"Commands today: {report.today_commands}",
        f"Commands this week: {report.weekly_commands}",
        f"Commands this month: {report.monthly_commands}",
        f"Downloads this month: {report.monthly_downloads}",
        f"Total commands: {report.total_commands}",
        f"Average per day: {report.avg_per_day}",
    ]
    if report.most_used_command:
        lines += ["", f"Most used: {report.most_used_command}"]
    if report.top_commands:
        lines += ["", "Top commands:"]
        lines += [f"{i}. {cmd}: {count}" for i, (cmd, count) in enumerate(report.top_commands[:5], start=1)]
    return "\n".join(lines)


def history(page: HistoryPage) -> str:
    if not page.items:
        return "📋 Download History\n\nNo downloads yet."
    lines = [f"📋 Download History (page {page.page}/{page.total_pages})", ""]
    for item in page.items:
        lines.append(f"• {item.command} {item.title}")
        lines.append(f"  {_dt(item.timestamp)}")
    lines += [
        "",
        f"Total downloads: {page.total_downloads}",
        f"This month: {page.this_month}",
    ]
    if page.most_used:
        cmd, count = page.most_used
        lines.append(f"Most used: {cmd} ({count})")
    lines.append(f"First download: {_dt(page.first_download)}")
    return "\n".join(lines)


def _uptime(seconds: int) -> str:
    days, rem = divmod(seconds, 86400)
    hours, rem = divmod(rem, 3600)
    return f"{days}d {hours}h {rem // 60}m"


def admin_stats(dto: AdminStatsDTO) -> str:
    r = dto.report
    lines = [
        "📊 Bot Statistics",
        "",
        "Users:",
        f"• Total: {r.total_users}",
        f"• Premium: {r.premium_users} ({r.premium_percentage}%)",
        f"• Free: {r.free_users}",
        f"• Active today: {r.active_today}",
        f"• Active this week: {r.active_week}",
        f"• New today: {r.new_today}",
        f"• Joined this month: {r.users_this_month}",
        "",
        "Activity:",
        f"• Total commands: {r.total_commands}",
        f"• Commands today: {r.commands_today}",
        f"• Commands this week: {r.commands_week}",
        f"• Avg commands per user: {r.avg_commands_per_user}",
        f"• Total downloads: {r.total_downloads}",
        f"• Downloads today: {r.downloads_today}",
        "",
        f"Growth: {r.growth_rate}%",
        f"Retention: {r.retention_rate}%",
    ]
    if r.top_commands:
        lines += ["", "Top commands:"]
        lines += [f"{i}. {cmd}: {count}" for i, (cmd, count) in enumerate(r.top_commands[:5], start=1)]
    lines += [
        "",
        "System:",
        f"• Uptime: {_uptime(dto.uptime_sec)}",
        f"• Rate limiter: {dto.limiter.active_users} active users, "
        f"{dto.limiter.max_requests} per {int(dto.limiter.window_sec)}s",
        f"• Stats consistent: {'yes' if dto.stats_consistent else 'NO'}",
        f"• Users updated: {_dt(r.users_updated)}",
        f"• Commands updated: {_dt(r.commands_updated)}",
    ]
    return "\n".join(lines)


def broadcast_progress(done: int, total: int, sent: int, failed: int) -> str:
    return f"📤 Broadcasting...\n\nProgress: {done}/{total}\nSent: {sent}\nFailed: {failed}"


def broadcast_done(result: BroadcastResultDTO) -> str:
    return (
        "✅ Broadcast Complete\n\n"
        f"Total users: {result.total}\n"
        f"Sent: {result.sent}\n"
        f"Failed: {result.failed}\n"
        f"Success rate: {result.success_rate}%"
    )
