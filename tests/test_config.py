from pathlib import Path

import pytest
from pydantic import ValidationError

from premium_bot.config import AppSettings


def _settings(**env: object) -> AppSettings:
    env.setdefault("BOT_TOKEN", "123:abc")
    return AppSettings(_env_file=None, **env)


def test_defaults() -> None:
    s = _settings()

    assert s.rate_limit_window_sec == 60
    assert s.rate_limit_max_requests == 10
    assert s.rate_limit_cleanup_interval_sec == 300
    assert s.download_limits.free == 5
    assert s.download_limits.premium == 50
    assert s.data_dir == Path("./data")
    assert s.log_retention == 10_000
    assert s.max_upload_bytes == 50 * 1024 * 1024
    assert s.log_level == "INFO"
    assert s.admin_ids == frozenset()


def test_reads_environment(monkeypatch) -> None:
    monkeypatch.setenv("BOT_TOKEN", "42:secret")
    monkeypatch.setenv("RATE_LIMIT_WINDOW", "30000")
    monkeypatch.setenv("ADMIN_ID", "1, 2,3")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    s = AppSettings(_env_file=None)

    assert s.bot_token == "42:secret"
    assert s.rate_limit_window_sec == 30
    assert s.admin_ids == frozenset({1, 2, 3})
    assert s.log_level == "DEBUG"


@pytest.mark.parametrize(
    "env",
    [
        {"BOT_TOKEN": "no-colon"},
        {"LOG_LEVEL": "LOUD"},
        {"ADMIN_ID": "1,abc"},
        {"RATE_LIMIT_WINDOW": "10"},
        {"RATE_LIMIT_MAX_REQUESTS": "0"},
        {"FREE_DOWNLOAD_LIMIT": "10", "PREMIUM_DOWNLOAD_LIMIT": "5"},
    ],
)
def test_rejects_invalid_values(env: dict) -> None:
    with pytest.raises(ValidationError):
        _settings(**env)
