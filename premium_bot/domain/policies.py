from __future__ import annotations

import re
from dataclasses import dataclass

from .errors import ValidationError
from .models import MediaKind, UserProfile


_YOUTUBE_RX = re.compile(
    r"^(https?://)?(www\.|m\.)?(youtube\.com/(watch\?v=|shorts/)|youtu\.be/)[\w-]+([?&][\w=&.-]*)?$"
)
_FACEBOOK_RX = re.compile(
    r"^(https?://)?(www\.|m\.)?(facebook\.com|fb\.watch)/\S+$"
)
_INSTAGRAM_RX = re.compile(
    r"^(https?://)?(www\.)?instagram\.com/(p|reel|tv)/[\w-]+/?"
)


# (free, premium), seconds
MAX_DURATION_SEC: dict[MediaKind, tuple[int, int]] = {
    MediaKind.AUDIO: (60 * 60, 3 * 60 * 60),
    MediaKind.VIDEO: (30 * 60, 2 * 60 * 60),
}


@dataclass(frozen=True, slots=True)
class DownloadLimits:
    free: int
    premium: int

    def for_user(self, is_premium: bool) -> int:
        return self.premium if is_premium else self.free


def can_download(profile: UserProfile | None, limits: DownloadLimits) -> bool:
    # Unknown user => deny.
    if profile is None:
        return False
    return profile.download_count < limits.for_user(profile.is_premium)


def max_duration_sec(kind: MediaKind, *, is_premium: bool) -> int:
    free, premium = MAX_DURATION_SEC[kind]
    return premium if is_premium else free


def command_name(text: str) -> str:
    """
    "/ytmp3@my_bot https://..." -> "/ytmp3"
    """
    parts = text.strip().split(maxsplit=1)
    if not parts:
        return ""
    return parts[0].split("@", 1)[0].lower()


def command_args(text: str) -> list[str]:
    return text.strip().split()[1:]


def parse_user_id(raw: str | None) -> int:
    if raw is None or not raw.strip():
        raise ValidationError("User id is missing.")
    value = raw.strip()
    if not value.lstrip("-").isdigit():
        raise ValidationError(f"Invalid user id: {value}")
    return int(value)


def is_youtube_url(url: str) -> bool:
    return bool(_YOUTUBE_RX.match(url.strip()))


def is_facebook_url(url: str) -> bool:
    return bool(_FACEBOOK_RX.match(url.strip()))


def is_instagram_url(url: str) -> bool:
    return bool(_INSTAGRAM_RX.match(url.strip()))


def youtube_video_id(url: str) -> str | None:
    m = re.search(r"(?:youtube\.com/watch\?v=|youtu\.be/|youtube\.com/shorts/)([^&\n?#]+)", url)
    return m.group(1) if m else None
