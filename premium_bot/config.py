from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from premium_bot.domain.policies import DownloadLimits


class SettingsError(RuntimeError):
    pass


_ALLOWED_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    bot_token: str = Field(alias="BOT_TOKEN")
    admin_id: str = Field(default="", alias="ADMIN_ID")

    # Rate limiting
    rate_limit_window_ms: int = Field(default=60_000, alias="RATE_LIMIT_WINDOW", ge=1000)
    rate_limit_max_requests: int = Field(default=10, alias="RATE_LIMIT_MAX_REQUESTS", ge=1)
    rate_limit_cleanup_interval_sec: int = Field(default=300, alias="RATE_LIMIT_CLEANUP_INTERVAL_SEC", ge=1)

    # Quotas
    free_download_limit: int = Field(default=5, alias="FREE_DOWNLOAD_LIMIT", ge=0)
    premium_download_limit: int = Field(default=50, alias="PREMIUM_DOWNLOAD_LIMIT", ge=0)

    # Storage
    data_dir: Path = Field(default=Path("./data"), alias="DATA_DIR")
    temp_root: Path = Field(default=Path("./.tmp"), alias="TEMP_ROOT")
    log_retention: int = Field(default=10_000, alias="LOG_RETENTION", ge=1)

    # Telegram
    max_upload_mb: int = Field(default=50, alias="MAX_UPLOAD_MB", ge=1)

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @field_validator("log_level")
    @classmethod
    def _check_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in _ALLOWED_LEVELS:
            raise ValueError(f"Invalid LOG_LEVEL={value!r}. Allowed: {sorted(_ALLOWED_LEVELS)}")
        return level

    @field_validator("bot_token")
    @classmethod
    def _check_token(cls, value: str) -> str:
        token = value.strip()
        if ":" not in token:
            raise ValueError("BOT_TOKEN looks invalid (expected Telegram token format)")
        return token

    @field_validator("admin_id")
    @classmethod
    def _check_admins(cls, value: str) -> str:
        for part in value.split(","):
            part = part.strip()
            if part and not part.lstrip("-").isdigit():
                raise ValueError(f"ADMIN_ID must be a comma-separated list of ids, got {part!r}")
        return value

    @model_validator(mode="after")
    def _check_limits(self) -> "AppSettings":
        if self.premium_download_limit < self.free_download_limit:
            raise ValueError("PREMIUM_DOWNLOAD_LIMIT must be >= FREE_DOWNLOAD_LIMIT")
        return self

    @property
    def admin_ids(self) -> frozenset[int]:
        return frozenset(int(p.strip()) for p in self.admin_id.split(",") if p.strip())

    @property
    def rate_limit_window_sec(self) -> float:
        return self.rate_limit_window_ms / 1000

    @property
    def download_limits(self) -> DownloadLimits:
        return DownloadLimits(free=self.free_download_limit, premium=self.premium_download_limit)

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    try:
        return AppSettings()
    except ValueError as exc:
        raise SettingsError(f"Invalid configuration: {exc}") from exc
