from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class MediaKind(str, Enum):
    AUDIO = "audio"
    VIDEO = "video"


class _Document(BaseModel):
    """
    Base for everything persisted in the JSON ledger files.
    Keys are camelCase on disk, snake_case in Python.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )


class UserProfile(_Document):
    id: int
    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None

    is_premium: bool = False
    download_count: int = Field(default=0, ge=0)

    joined_at: datetime
    last_seen: datetime
    premium_updated: datetime | None = None
    last_download: datetime | None = None

    @property
    def display_name(self) -> str:
        return self.first_name or self.username or "N/A"


class CommandLogEntry(_Document):
    user_id: int
    command: str
    timestamp: datetime
    metadata: dict[str, str] = Field(default_factory=dict)


class UserStats(_Document):
    total_users: int = 0
    premium_users: int = 0
    last_updated: datetime | None = None


class CommandStats(_Document):
    total_commands: int = 0
    command_stats: dict[str, int] = Field(default_factory=dict)
    last_updated: datetime | None = None


class UsersDocument(_Document):
    users: dict[str, UserProfile] = Field(default_factory=dict)
    stats: UserStats = Field(default_factory=UserStats)


class LogsDocument(_Document):
    logs: list[CommandLogEntry] = Field(default_factory=list)
    stats: CommandStats = Field(default_factory=CommandStats)


@dataclass(frozen=True, slots=True)
class RateLimitDecision:
    allowed: bool
    remaining: int
    reset_after_sec: int | None = None


@dataclass(frozen=True, slots=True)
class RateLimiterStats:
    active_users: int
    window_sec: float
    max_requests: int


@dataclass(frozen=True, slots=True)
class MediaInfo:
    """
    Subset of extractor metadata the bot shows to users.
    """
    url: str
    title: str
    duration_sec: int | None
    view_count: int | None
    uploader: str | None
