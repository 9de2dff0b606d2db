from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class YdlConfig:
    """
    Centralized yt-dlp config.
    """

    # Networking / robustness
    socket_timeout_sec: int = 30
    retries: int = 3

    # Behavior
    quiet: bool = True
    no_warnings: bool = True

    # Output
    restrict_filenames: bool = True

    # Audio extraction (needs ffmpeg on PATH)
    audio_codec: str = "mp3"
    audio_quality_kbps: int = 192
