from __future__ import annotations

from .models import (
    CommandLogEntry,
    CommandStats,
    MediaInfo,
    MediaKind,
    RateLimitDecision,
    RateLimiterStats,
    UserProfile,
    UserStats,
)
from .errors import (
    DomainError,
    DownloadError,
    DownloadLimitError,
    ExtractionError,
    FileTooLargeError,
    MediaTooLongError,
    PersistenceError,
    ValidationError,
)

__all__ = [
    "CommandLogEntry",
    "CommandStats",
    "MediaInfo",
    "MediaKind",
    "RateLimitDecision",
    "RateLimiterStats",
    "UserProfile",
    "UserStats",
    "DomainError",
    "DownloadError",
    "DownloadLimitError",
    "ExtractionError",
    "FileTooLargeError",
    "MediaTooLongError",
    "PersistenceError",
    "ValidationError",
]
