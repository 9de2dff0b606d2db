from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

from loguru import logger

from premium_bot.constants import LOGS_FILE, USERS_FILE
from premium_bot.domain.errors import PersistenceError
from premium_bot.domain.models import (
    CommandLogEntry,
    CommandStats,
    LogsDocument,
    UserProfile,
    UsersDocument,
    UserStats,
)
from premium_bot.domain.policies import DownloadLimits, can_download, command_name
from premium_bot.domain.stats import command_stats_consistent, derive_user_stats
from premium_bot.infrastructure.json_store import JsonDocumentStore


Clock = Callable[[], datetime]

_IMMUTABLE_FIELDS = frozenset({"id", "joined_at"})


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Ledger:
    """
    Durable user profiles, premium flags, download counters and the command log.

    Two JSON files back it: users.json and logs.json. Every mutation is one
    serialized read-modify-write on its store. Aggregates in users.json are
    recomputed from the users map on every write.

    Persistence problems never escape: they are logged and reported as
    None / False / empty, and callers treat that as "state unknown".
    """

    def __init__(
        self,
        *,
        data_dir: Path,
        limits: DownloadLimits,
        log_retention: int = 10_000,
        clock: Clock = utc_now,
    ) -> None:
        if log_retention < 1:
            raise ValueError("log_retention must be >= 1")

        self._limits = limits
        self._retention = log_retention
        self._clock = clock
        self._users = JsonDocumentStore(path=data_dir / USERS_FILE, model=UsersDocument, default=self._empty_users)
        self._logs = JsonDocumentStore(path=data_dir / LOGS_FILE, model=LogsDocument, default=self._empty_logs)

    def _empty_users(self) -> UsersDocument:
        return UsersDocument(stats=UserStats(last_updated=self._clock()))

    def _empty_logs(self) -> LogsDocument:
        return LogsDocument(stats=CommandStats(last_updated=self._clock()))

    @property
    def limits(self) -> DownloadLimits:
        return self._limits

    async def start(self) -> None:
        await self._users.ensure()
        await self._logs.ensure()

    async def stop(self) -> None:
        return None

    # Users

    async def get_user(self, user_id: int) -> UserProfile | None:
        try:
            doc = await self._users.read()
        except PersistenceError:
            logger.exception("get_user failed: {}", user_id)
            return None
        return doc.users.get(str(user_id))

    async def get_all_users(self) -> dict[int, UserProfile]:
        try:
            doc = await self._users.read()
        except PersistenceError:
            logger.exception("get_all_users failed")
            return {}
        return {int(k): v for k, v in doc.users.items()}

    async def get_user_stats(self) -> UserStats | None:
        try:
            doc = await self._users.read()
        except PersistenceError:
            logger.exception("get_user_stats failed")
            return None
        return doc.stats

    async def upsert_user(self, user_id: int, **fields: Any) -> UserProfile | None:
        """
        Merge `fields` into the profile, creating it with defaults when missing.
        `last_seen` is always refreshed.

        Raises ValueError for fields that cannot be changed (id, joined_at, unknown
        names) or for an attempt to lower download_count.
        """
        bad = (set(fields) & _IMMUTABLE_FIELDS) | (set(fields) - set(UserProfile.model_fields))
        if bad:
            raise ValueError(f"Fields cannot be upserted: {sorted(bad)}")

        def mutate(doc: UsersDocument) -> UserProfile:
            return self._apply(doc, user_id, fields)

        try:
            return await self._users.update(mutate)
        except PersistenceError:
            logger.exception("upsert_user failed: {}", user_id)
            return None

    async def set_premium_status(self, user_id: int, is_premium: bool) -> bool:
        return await self._update_existing(
            user_id,
            lambda now, _current: {"is_premium": is_premium, "premium_updated": now},
            op="set_premium_status",
        )

    async def increment_download_count(self, user_id: int) -> bool:
        return await self._update_existing(
            user_id,
            lambda now, current: {"download_count": current.download_count + 1, "last_download": now},
            op="increment_download_count",
        )

    async def is_premium_user(self, user_id: int) -> bool:
        user = await self.get_user(user_id)
        return user.is_premium if user is not None else False

    async def get_download_count(self, user_id: int) -> int:
        user = await self.get_user(user_id)
        return user.download_count if user is not None else 0

    async def can_download(self, user_id: int) -> bool:
        return can_download(await self.get_user(user_id), self._limits)

    async def _update_existing(
        self,
        user_id: int,
        build: Callable[[datetime, UserProfile], dict[str, Any]],
        *,
        op: str,
    ) -> bool:
        key = str(user_id)

        def mutate(doc: UsersDocument) -> bool:
            current = doc.users.get(key)
            if current is None:
                return False
            now = self._clock()
            self._apply(doc, user_id, build(now, current), now=now)
            return True

        try:
            return await self._users.update(mutate)
        except PersistenceError:
            logger.exception("{} failed: {}", op, user_id)
            return False

    def _apply(
        self,
        doc: UsersDocument,
        user_id: int,
        fields: dict[str, Any],
        *,
        now: datetime | None = None,
    ) -> UserProfile:
        now = now or self._clock()
        key = str(user_id)
        current = doc.users.get(key)

        if current is None:
            data: dict[str, Any] = {"id": user_id, "joined_at": now, "last_seen": now}
            data.update(fields)
            if data.get("is_premium") and "premium_updated" not in fields:
                data["premium_updated"] = now
            profile = UserProfile.model_validate(data)
        else:
            new_count = fields.get("download_count")
            if new_count is not None and new_count < current.download_count:
                raise ValueError("download_count never decreases")

            data = current.model_dump()
            data.update(fields)
            flipped = "is_premium" in fields and fields["is_premium"] != current.is_premium
            if flipped and "premium_updated" not in fields:
                data["premium_updated"] = now
            # lastSeen is non-decreasing even if the wall clock steps back
            data["last_seen"] = max(current.last_seen, now)
            profile = UserProfile.model_validate(data)

        doc.users[key] = profile
        doc.stats = derive_user_stats(doc.users.values(), now=now)
        return profile

    # Command log

    async def log_command(self, user_id: int, command: str, metadata: dict[str, str] | None = None) -> bool:
        name = command_name(command)

        def mutate(doc: LogsDocument) -> None:
            now = self._clock()
            doc.logs.append(
                CommandLogEntry(user_id=user_id, command=command, timestamp=now, metadata=dict(metadata or {}))
            )
            stats = doc.stats
            stats.total_commands += 1
            stats.command_stats[name] = stats.command_stats.get(name, 0) + 1
            stats.last_updated = now

            overflow = len(doc.logs) - self._retention
            if overflow > 0:
                del doc.logs[:overflow]

        try:
            await self._logs.update(mutate)
        except PersistenceError:
            logger.exception("log_command failed: {} {}", user_id, name)
            return False
        return True

    async def get_user_logs(self, user_id: int, limit: int = 100) -> list[CommandLogEntry]:
        if limit <= 0:
            return []
        try:
            doc = await self._logs.read()
        except PersistenceError:
            logger.exception("get_user_logs failed: {}", user_id)
            return []
        own = [entry for entry in doc.logs if entry.user_id == user_id]
        return list(reversed(own[-limit:]))

    async def get_all_logs(self) -> list[CommandLogEntry]:
        try:
            doc = await self._logs.read()
        except PersistenceError:
            logger.exception("get_all_logs failed")
            return []
        return doc.logs

    async def get_command_stats(self) -> CommandStats | None:
        try:
            doc = await self._logs.read()
        except PersistenceError:
            logger.exception("get_command_stats failed")
            return None
        return doc.stats

    async def verify_stats(self) -> bool:
        """
        Recompute every aggregate from the primary collections and compare.
        """
        try:
            users = await self._users.read()
            logs = await self._logs.read()
        except PersistenceError:
            logger.exception("verify_stats failed")
            return False

        derived = derive_user_stats(users.users.values(), now=self._clock())
        users_ok = (derived.total_users, derived.premium_users) == (
            users.stats.total_users,
            users.stats.premium_users,
        )
        logs_ok = command_stats_consistent(logs.stats, logs.logs)
        if not (users_ok and logs_ok):
            logger.warning("Ledger aggregates drifted: users_ok={} logs_ok={}", users_ok, logs_ok)
        return users_ok and logs_ok
