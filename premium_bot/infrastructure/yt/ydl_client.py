from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

from loguru import logger
from yt_dlp import YoutubeDL

from premium_bot.domain.errors import DownloadError, ExtractionError, FileTooLargeError
from premium_bot.domain.models import MediaInfo, MediaKind

from .ydl_config import YdlConfig


def _safe_int(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class YdlClient:
    cfg: YdlConfig

    def _base_opts(self) -> Dict[str, Any]:
        return {
            "quiet": self.cfg.quiet,
            "no_warnings": self.cfg.no_warnings,
            "noplaylist": True,
            "socket_timeout": self.cfg.socket_timeout_sec,
            "retries": self.cfg.retries,
            "nocheckcertificate": False,
            "ignoreerrors": False,
            "restrictfilenames": self.cfg.restrict_filenames,
        }

    def _download_opts(self, kind: MediaKind, target_dir: Path, max_bytes: int) -> Dict[str, Any]:
        opts = self._base_opts()
        opts["outtmpl"] = str(target_dir / "%(id)s.%(ext)s")
        opts["max_filesize"] = max_bytes
        if kind == MediaKind.AUDIO:
            opts["format"] = "bestaudio/best"
            opts["postprocessors"] = [
                {
                    "key": "FFmpegExtractAudio",
                    "preferredcodec": self.cfg.audio_codec,
                    "preferredquality": str(self.cfg.audio_quality_kbps),
                }
            ]
        else:
            opts["format"] = "best[ext=mp4][vcodec!=none][acodec!=none]/best[ext=mp4]/best"
        return opts

    async def extract_info(self, url: str) -> MediaInfo:
        def _extract() -> Dict[str, Any]:
            with YoutubeDL(self._base_opts()) as ydl:
                info = ydl.extract_info(url, download=False)
                if not isinstance(info, dict):
                    raise ExtractionError("Could not read video metadata.")
                return info

        try:
            info = await asyncio.to_thread(_extract)
        except ExtractionError:
            raise
        except Exception as e:
            logger.exception("yt-dlp extract failed: {}", url)
            raise ExtractionError("Could not process the link. The video may be unavailable.") from e

        return MediaInfo(
            url=url,
            title=str(info.get("title") or "Untitled"),
            duration_sec=_safe_int(info.get("duration")),
            view_count=_safe_int(info.get("view_count")),
            uploader=info.get("uploader"),
        )

    async def download(self, url: str, *, kind: MediaKind, target_dir: Path, max_bytes: int) -> Path:
        """
        Download into `target_dir` and return the resulting file.
        """
        opts = self._download_opts(kind, target_dir, max_bytes)

        def _download() -> None:
            with YoutubeDL(opts) as ydl:
                ydl.download([url])

        try:
            await asyncio.to_thread(_download)
        except Exception as e:
            logger.exception("yt-dlp download failed: {}", url)
            raise DownloadError("Download failed. Please try again later.") from e

        files = [p for p in target_dir.iterdir() if p.is_file() and not p.name.endswith((".part", ".ytdl"))]
        if not files:
            # yt-dlp skips files above max_filesize without raising
            raise FileTooLargeError("The file is too large to send via Telegram.")
        return max(files, key=lambda p: p.stat().st_mtime)
