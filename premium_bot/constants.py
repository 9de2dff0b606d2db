from __future__ import annotations


APP_NAME: str = "premium_bot"

USERS_FILE: str = "users.json"
LOGS_FILE: str = "logs.json"

HISTORY_PAGE_SIZE: int = 10
STATS_LOG_SCAN: int = 1000

# User-facing, short, user-safe messages (no stack traces)
MSG_INTERNAL_ERROR: str = "❌ An error occurred. Please try again later."
MSG_NO_PERMISSION: str = "⛔ You don't have permission to use this command."
MSG_STATE_UNAVAILABLE: str = "⚠️ Could not load your account right now. Please try again in a moment."
MSG_PREMIUM_REQUIRED: str = (
    "🔒 Premium Required\n\n"
    "{command} is available only for premium users.\n\n"
    "Premium Benefits:\n"
    "• Higher download limits\n"
    "• Advanced statistics\n"
    "• Download history\n"
    "• Priority support\n\n"
    "Contact admin to upgrade to premium."
)
MSG_RATE_LIMITED: str = (
    "⚠️ Rate limit exceeded\n\n"
    "Please wait {reset} seconds before sending another command.\n\n"
    "Limit: {max_requests} requests per {window} seconds"
)
MSG_MAINTENANCE: str = (
    "⚠️ {platform} downloads are temporarily unavailable\n\n"
    "{platform} downloads are currently under maintenance due to platform changes.\n\n"
    "Alternative options:\n"
    "• Try YouTube downloads (/ytmp4)\n"
    "• Check back later for updates\n"
    "• Contact admin for assistance"
)
