from __future__ import annotations

import asyncio
from typing import Dict

from loguru import logger

from premium_bot.application.dto import DownloadResultDTO
from premium_bot.constants import MSG_STATE_UNAVAILABLE
from premium_bot.domain.errors import DomainError, DownloadLimitError, MediaTooLongError, ValidationError
from premium_bot.domain.models import MediaInfo, MediaKind
from premium_bot.domain.policies import can_download, is_youtube_url, max_duration_sec
from premium_bot.infrastructure.ledger import Ledger
from premium_bot.infrastructure.telegram_sender import TelegramSender, TelegramSenderError
from premium_bot.infrastructure.temp_storage import TempStorage
from premium_bot.infrastructure.yt import YdlClient


def format_duration(seconds: int | None) -> str:
    if seconds is None:
        return "unknown"
    hrs, rem = divmod(seconds, 3600)
    mins, secs = divmod(rem, 60)
    if hrs:
        return f"{hrs}:{mins:02d}:{secs:02d}"
    return f"{mins}:{secs:02d}"


def _limit_label(seconds: int) -> str:
    if seconds % 3600 == 0:
        hours = seconds // 3600
        return f"{hours} hour" + ("s" if hours > 1 else "")
    return f"{seconds // 60} minutes"


class DownloadMediaUseCase:
    """
    /ytmp3 and /ytmp4: quota check, metadata, download, upload, count.

    The quota is checked against a fresh ledger read and the counter is bumped
    only after the file reached the chat. Unknown ledger state denies the download.
    One user's downloads run one at a time, so parallel requests cannot
    all pass the same quota check.
    """

    def __init__(
        self,
        *,
        ledger: Ledger,
        ydl: YdlClient,
        temp_storage: TempStorage,
        sender: TelegramSender,
        max_upload_bytes: int,
    ) -> None:
        self._ledger = ledger
        self._ydl = ydl
        self._temp = temp_storage
        self._sender = sender
        self._max_bytes = max_upload_bytes
        self._user_locks: Dict[int, asyncio.Lock] = {}

    async def ensure_allowed(self, *, user_id: int, url: str) -> bool:
        """
        Raises DomainError when the request must be refused before any network work.
        Returns the user's premium flag.
        """
        if not is_youtube_url(url):
            raise ValidationError(
                "❌ Invalid YouTube URL\n\n"
                "Supported formats:\n"
                "• https://youtube.com/watch?v=VIDEO_ID\n"
                "• https://youtu.be/VIDEO_ID\n"
                "• https://m.youtube.com/watch?v=VIDEO_ID"
            )

        profile = await self._ledger.get_user(user_id)
        if profile is None:
            raise DomainError(MSG_STATE_UNAVAILABLE)

        limits = self._ledger.limits
        if not can_download(profile, limits):
            limit = limits.for_user(profile.is_premium)
            raise DownloadLimitError(
                f"🚫 Download Limit Reached\n\nYou have reached your download limit of {limit} files.",
                limit=limit,
                is_premium=profile.is_premium,
            )
        return profile.is_premium

    async def execute(self, *, user_id: int, chat_id: int, url: str, kind: MediaKind) -> DownloadResultDTO:
        lock = self._user_locks.setdefault(user_id, asyncio.Lock())
        async with lock:
            return await self._run(user_id=user_id, chat_id=chat_id, url=url, kind=kind)

    async def _run(self, *, user_id: int, chat_id: int, url: str, kind: MediaKind) -> DownloadResultDTO:
        is_premium = await self.ensure_allowed(user_id=user_id, url=url)

        status_id = await self._sender.send_status(chat_id, "⏳ Processing your request...\n\n🔍 Analyzing video...")
        try:
            info = await self._ydl.extract_info(url)
            self._check_duration(info, kind=kind, is_premium=is_premium)

            await self._sender.edit_status(
                chat_id,
                status_id,
                f"⏳ Processing your request...\n\n"
                f"🎵 {info.title}\n"
                f"⏱️ Duration: {format_duration(info.duration_sec)}\n\n"
                f"📥 Downloading {kind.value}...",
            )
            size_mb = await self._download_and_send(user_id=user_id, chat_id=chat_id, info=info, kind=kind)
        except (DomainError, TelegramSenderError) as exc:
            await self._sender.edit_status(chat_id, status_id, str(exc))
            return DownloadResultDTO(delivered=False, message=str(exc))

        if not await self._ledger.increment_download_count(user_id):
            logger.warning("Delivered but could not count download for user {}", user_id)

        message = f"✅ Download complete ({size_mb:.1f}MB)\n\n{info.title}"
        await self._sender.edit_status(chat_id, status_id, message)
        logger.info("Delivered {} '{}' to user {}", kind.value, info.title, user_id)
        return DownloadResultDTO(delivered=True, message=message, title=info.title, size_mb=size_mb)

    def _check_duration(self, info: MediaInfo, *, kind: MediaKind, is_premium: bool) -> None:
        cap = max_duration_sec(kind, is_premium=is_premium)
        if info.duration_sec is not None and info.duration_sec > cap:
            hint = "" if is_premium else (
                f"\n\nPremium users can download up to "
                f"{_limit_label(max_duration_sec(kind, is_premium=True))}!"
            )
            raise MediaTooLongError(f"❌ Video Too Long\n\nThe video is longer than {_limit_label(cap)}.{hint}")

    async def _download_and_send(self, *, user_id: int, chat_id: int, info: MediaInfo, kind: MediaKind) -> float:
        job_id, workdir = self._temp.allocate(user_id)
        try:
            path = await self._ydl.download(info.url, kind=kind, target_dir=workdir, max_bytes=self._max_bytes)
            size_mb = path.stat().st_size / (1024 * 1024)
            await self._sender.send_media(chat_id, path, kind=kind, caption=info.title)
            return size_mb
        finally:
            self._temp.cleanup(job_id)
