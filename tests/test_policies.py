from datetime import datetime, timezone

import pytest

from premium_bot.domain.errors import ValidationError
from premium_bot.domain.models import MediaKind, UserProfile
from premium_bot.domain.policies import (
    DownloadLimits,
    can_download,
    command_args,
    command_name,
    is_facebook_url,
    is_instagram_url,
    is_youtube_url,
    max_duration_sec,
    parse_user_id,
    youtube_video_id,
)


NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _profile(count: int, premium: bool = False) -> UserProfile:
    return UserProfile(id=1, joined_at=NOW, last_seen=NOW, download_count=count, is_premium=premium)


@pytest.mark.parametrize(
    ("count", "premium", "expected"),
    [
        (0, False, True),
        (4, False, True),
        (5, False, False),
        (5, True, True),
        (49, True, True),
        (50, True, False),
    ],
)
def test_can_download(count: int, premium: bool, expected: bool) -> None:
    assert can_download(_profile(count, premium), DownloadLimits(free=5, premium=50)) is expected


def test_can_download_denies_missing_profile() -> None:
    assert can_download(None, DownloadLimits(free=5, premium=50)) is False


def test_max_duration() -> None:
    assert max_duration_sec(MediaKind.AUDIO, is_premium=False) == 3600
    assert max_duration_sec(MediaKind.AUDIO, is_premium=True) == 3 * 3600
    assert max_duration_sec(MediaKind.VIDEO, is_premium=False) == 1800
    assert max_duration_sec(MediaKind.VIDEO, is_premium=True) == 2 * 3600


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("/start", "/start"),
        ("/YTMP3@my_bot https://youtu.be/x", "/ytmp3"),
        ("  /history 2 ", "/history"),
        ("", ""),
    ],
)
def test_command_name(text: str, expected: str) -> None:
    assert command_name(text) == expected


def test_command_args() -> None:
    assert command_args("/broadcast hello world") == ["hello", "world"]
    assert command_args("/start") == []


def test_parse_user_id() -> None:
    assert parse_user_id(" 12345 ") == 12345
    assert parse_user_id("-100") == -100

    for raw in (None, "", "  ", "abc", "12a"):
        with pytest.raises(ValidationError):
            parse_user_id(raw)


@pytest.mark.parametrize(
    "url",
    [
        "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
        "https://youtu.be/dQw4w9WgXcQ",
        "https://m.youtube.com/watch?v=dQw4w9WgXcQ&t=10",
        "youtube.com/shorts/abc_DEF-123",
    ],
)
def test_youtube_urls(url: str) -> None:
    assert is_youtube_url(url)


@pytest.mark.parametrize("url", ["https://vimeo.com/1", "not a url", "https://youtube.com/"])
def test_non_youtube_urls(url: str) -> None:
    assert not is_youtube_url(url)


def test_other_platforms() -> None:
    assert is_facebook_url("https://www.facebook.com/watch/?v=123")
    assert is_facebook_url("https://fb.watch/abc/")
    assert not is_facebook_url("https://instagram.com/p/abc")

    assert is_instagram_url("https://www.instagram.com/reel/Cabc123/")
    assert not is_instagram_url("https://instagram.com/someone")


def test_youtube_video_id() -> None:
    assert youtube_video_id("https://www.youtube.com/watch?v=dQw4w9WgXcQ&t=1") == "dQw4w9WgXcQ"
    assert youtube_video_id("https://youtu.be/abc123") == "abc123"
    assert youtube_video_id("https://example.com") is None
