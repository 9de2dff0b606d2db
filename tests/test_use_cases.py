"""Use case tests with a real ledger and fake media/Telegram adapters."""

import asyncio
from pathlib import Path

import pytest

from premium_bot.application.dto import PremiumChange
from premium_bot.application.use_cases.admin_stats import AdminStatsUseCase
from premium_bot.application.use_cases.broadcast import BroadcastUseCase
from premium_bot.application.use_cases.download_media import DownloadMediaUseCase, format_duration
from premium_bot.application.use_cases.manage_premium import ChangePremiumUseCase
from premium_bot.application.use_cases.register_user import RegisterUserUseCase
from premium_bot.application.use_cases.user_stats import UserStatsUseCase
from premium_bot.constants import MSG_STATE_UNAVAILABLE
from premium_bot.domain.errors import DomainError, DownloadLimitError, ExtractionError, PersistenceError, ValidationError
from premium_bot.domain.models import MediaInfo, MediaKind
from premium_bot.infrastructure.ledger import Ledger
from premium_bot.infrastructure.rate_limiter import SlidingWindowRateLimiter
from premium_bot.infrastructure.telegram_sender import TelegramSenderError
from premium_bot.infrastructure.temp_storage import TempStorage


URL = "https://youtu.be/dQw4w9WgXcQ"


class FakeYdl:
    def __init__(self, *, duration: int | None = 200, fail: Exception | None = None) -> None:
        self.duration = duration
        self.fail = fail
        self.extracted: list[str] = []
        self.downloaded: list[Path] = []

    async def extract_info(self, url: str) -> MediaInfo:
        self.extracted.append(url)
        if self.fail is not None:
            raise self.fail
        return MediaInfo(url=url, title="Never Gonna", duration_sec=self.duration, view_count=1, uploader="Rick")

    async def download(self, url: str, *, kind: MediaKind, target_dir: Path, max_bytes: int) -> Path:
        path = target_dir / ("song.mp3" if kind == MediaKind.AUDIO else "clip.mp4")
        path.write_bytes(b"x" * 1024)
        self.downloaded.append(path)
        return path


class FakeSender:
    def __init__(self, *, fail_for: set[int] = frozenset(), fail_media: bool = False) -> None:
        self.fail_for = fail_for
        self.fail_media = fail_media
        self.statuses: list[str] = []
        self.texts: list[tuple[int, str]] = []
        self.media: list[tuple[int, Path, MediaKind]] = []

    async def send_status(self, chat_id: int, text: str) -> int:
        self.statuses.append(text)
        return 100

    async def edit_status(self, chat_id: int, message_id: int, text: str) -> None:
        self.statuses.append(text)

    async def send_text(self, chat_id: int, text: str) -> None:
        if chat_id in self.fail_for:
            raise TelegramSenderError("blocked")
        self.texts.append((chat_id, text))

    async def send_media(self, chat_id: int, file_path: Path, *, kind: MediaKind, caption: str | None = None) -> None:
        if self.fail_media:
            raise TelegramSenderError("upload failed")
        assert file_path.exists()
        self.media.append((chat_id, file_path, kind))


def _download_uc(ledger: Ledger, tmp_path: Path, ydl: FakeYdl, sender: FakeSender) -> DownloadMediaUseCase:
    return DownloadMediaUseCase(
        ledger=ledger,
        ydl=ydl,
        temp_storage=TempStorage(root=tmp_path / "tmp"),
        sender=sender,
        max_upload_bytes=50 * 1024 * 1024,
    )


def test_format_duration() -> None:
    assert format_duration(None) == "unknown"
    assert format_duration(65) == "1:05"
    assert format_duration(3725) == "1:02:05"


async def test_download_delivers_and_counts(ledger: Ledger, tmp_path) -> None:
    await ledger.upsert_user(1)
    ydl, sender = FakeYdl(), FakeSender()

    result = await _download_uc(ledger, tmp_path, ydl, sender).execute(
        user_id=1, chat_id=1, url=URL, kind=MediaKind.AUDIO
    )

    assert result.delivered is True
    assert result.title == "Never Gonna"
    assert len(sender.media) == 1
    assert await ledger.get_download_count(1) == 1
    # scratch dir is gone after upload
    assert not ydl.downloaded[0].parent.exists()


async def test_download_limit_checked_before_network(ledger: Ledger, tmp_path) -> None:
    await ledger.upsert_user(1, download_count=5)
    ydl, sender = FakeYdl(), FakeSender()

    with pytest.raises(DownloadLimitError) as exc_info:
        await _download_uc(ledger, tmp_path, ydl, sender).execute(user_id=1, chat_id=1, url=URL, kind=MediaKind.VIDEO)

    assert exc_info.value.limit == 5
    assert exc_info.value.is_premium is False
    assert ydl.extracted == []
    assert sender.statuses == []


async def test_parallel_downloads_respect_quota(ledger: Ledger, tmp_path) -> None:
    await ledger.upsert_user(1, download_count=4)
    uc = _download_uc(ledger, tmp_path, FakeYdl(), FakeSender())

    results = await asyncio.gather(
        *(uc.execute(user_id=1, chat_id=1, url=URL, kind=MediaKind.AUDIO) for _ in range(3)),
        return_exceptions=True,
    )

    delivered = [r for r in results if not isinstance(r, Exception) and r.delivered]
    refused = [r for r in results if isinstance(r, DownloadLimitError)]
    assert len(delivered) == 1
    assert len(refused) == 2
    assert await ledger.get_download_count(1) == 5


async def test_download_denied_for_unknown_user(ledger: Ledger, tmp_path) -> None:
    ydl = FakeYdl()

    with pytest.raises(DomainError) as exc_info:
        await _download_uc(ledger, tmp_path, ydl, FakeSender()).execute(
            user_id=9, chat_id=9, url=URL, kind=MediaKind.AUDIO
        )

    assert str(exc_info.value) == MSG_STATE_UNAVAILABLE
    assert ydl.extracted == []


async def test_download_rejects_non_youtube_url(ledger: Ledger, tmp_path) -> None:
    await ledger.upsert_user(1)

    with pytest.raises(ValidationError):
        await _download_uc(ledger, tmp_path, FakeYdl(), FakeSender()).execute(
            user_id=1, chat_id=1, url="https://vimeo.com/1", kind=MediaKind.AUDIO
        )


async def test_download_too_long_is_not_counted(ledger: Ledger, tmp_path) -> None:
    await ledger.upsert_user(1)
    ydl, sender = FakeYdl(duration=2 * 3600), FakeSender()

    result = await _download_uc(ledger, tmp_path, ydl, sender).execute(
        user_id=1, chat_id=1, url=URL, kind=MediaKind.AUDIO
    )

    assert result.delivered is False
    assert "Too Long" in sender.statuses[-1]
    assert "3 hours" in sender.statuses[-1]
    assert ydl.downloaded == []
    assert await ledger.get_download_count(1) == 0


async def test_premium_gets_longer_media(ledger: Ledger, tmp_path) -> None:
    await ledger.upsert_user(1, is_premium=True)

    result = await _download_uc(ledger, tmp_path, FakeYdl(duration=2 * 3600), FakeSender()).execute(
        user_id=1, chat_id=1, url=URL, kind=MediaKind.AUDIO
    )

    assert result.delivered is True


async def test_failed_upload_is_not_counted(ledger: Ledger, tmp_path) -> None:
    await ledger.upsert_user(1)
    ydl, sender = FakeYdl(), FakeSender(fail_media=True)

    result = await _download_uc(ledger, tmp_path, ydl, sender).execute(
        user_id=1, chat_id=1, url=URL, kind=MediaKind.VIDEO
    )

    assert result.delivered is False
    assert await ledger.get_download_count(1) == 0
    assert not ydl.downloaded[0].parent.exists()


async def test_extraction_error_reported(ledger: Ledger, tmp_path) -> None:
    await ledger.upsert_user(1)
    sender = FakeSender()

    result = await _download_uc(ledger, tmp_path, FakeYdl(fail=ExtractionError("nope")), sender).execute(
        user_id=1, chat_id=1, url=URL, kind=MediaKind.AUDIO
    )

    assert result.delivered is False
    assert sender.statuses[-1] == "nope"


async def test_register_user(ledger: Ledger) -> None:
    uc = RegisterUserUseCase(ledger=ledger)

    first = await uc.execute(user_id=3, username="bob", first_name="Bob", last_name=None)
    again = await uc.execute(user_id=3, username="bobby", first_name="Bob", last_name="B")

    assert first.username == "bob"
    assert again.username == "bobby"
    assert again.joined_at == first.joined_at


async def test_promote_flow(ledger: Ledger) -> None:
    await ledger.upsert_user(2)
    sender = FakeSender()
    uc = ChangePremiumUseCase(ledger=ledger, sender=sender)

    assert (await uc.inspect(target_id=404, make_premium=True)).outcome is PremiumChange.NOT_FOUND
    assert (await uc.inspect(target_id=2, make_premium=False)).outcome is PremiumChange.UNCHANGED
    assert (await uc.inspect(target_id=2, make_premium=True)).outcome is PremiumChange.READY

    result = await uc.execute(target_id=2, make_premium=True, admin_id=1)
    assert result.outcome is PremiumChange.CHANGED
    assert result.profile.is_premium is True
    assert sender.texts[0][0] == 2


async def test_demote_survives_notification_failure(ledger: Ledger) -> None:
    await ledger.upsert_user(2, is_premium=True)
    uc = ChangePremiumUseCase(ledger=ledger, sender=FakeSender(fail_for={2}))

    result = await uc.execute(target_id=2, make_premium=False, admin_id=1)

    assert result.outcome is PremiumChange.CHANGED
    assert await ledger.is_premium_user(2) is False


async def test_change_premium_unknown_user(ledger: Ledger) -> None:
    uc = ChangePremiumUseCase(ledger=ledger, sender=FakeSender())

    result = await uc.execute(target_id=404, make_premium=True, admin_id=1)
    assert result.outcome is PremiumChange.NOT_FOUND


async def test_broadcast_counts_failures(ledger: Ledger) -> None:
    for uid in range(1, 13):
        await ledger.upsert_user(uid)
    sender = FakeSender(fail_for={3})
    progress: list[tuple[int, int, int, int]] = []

    async def on_progress(done: int, total: int, sent: int, failed: int) -> None:
        progress.append((done, total, sent, failed))

    result = await BroadcastUseCase(ledger=ledger, sender=sender).execute("hello", on_progress=on_progress)

    assert (result.total, result.sent, result.failed) == (12, 11, 1)
    assert result.success_rate == 92
    assert progress == [(10, 12, 9, 1), (12, 12, 11, 1)]
    assert all("hello" in text for _, text in sender.texts)


async def test_user_stats_history(ledger: Ledger, utc_clock) -> None:
    profile = await ledger.upsert_user(1, is_premium=True)
    for i in range(3):
        await ledger.log_command(1, f"/ytmp3 https://youtu.be/v{i}")
    await ledger.log_command(1, "/stats")

    uc = UserStatsUseCase(ledger=ledger, clock=utc_clock)
    page = await uc.history(profile)
    report = await uc.report(profile)

    assert page.total_downloads == 3
    assert page.items[0].title == "Video: v2"
    assert report.total_commands == 4


async def test_admin_stats(ledger: Ledger) -> None:
    await ledger.upsert_user(1, is_premium=True)
    await ledger.upsert_user(2)
    await ledger.log_command(1, "/start")
    limiter = SlidingWindowRateLimiter(max_requests=10, window_sec=60)

    dto = await AdminStatsUseCase(ledger=ledger, limiter=limiter).execute()

    assert dto.report.total_users == 2
    assert dto.report.premium_users == 1
    assert dto.report.total_commands == 1
    assert dto.stats_consistent is True
    assert dto.limiter.max_requests == 10


async def test_admin_stats_unavailable(ledger: Ledger, tmp_path) -> None:
    (tmp_path / "logs.json").write_text("oops", encoding="utf-8")
    limiter = SlidingWindowRateLimiter(max_requests=10, window_sec=60)

    with pytest.raises(PersistenceError):
        await AdminStatsUseCase(ledger=ledger, limiter=limiter).execute()
