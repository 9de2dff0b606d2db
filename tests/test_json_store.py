"""Tests for the atomic JSON document store."""

import asyncio
import json

import pytest

from premium_bot.domain.errors import PersistenceError
from premium_bot.domain.models import UserStats, UsersDocument
from premium_bot.infrastructure.json_store import JsonDocumentStore


def _store(tmp_path) -> JsonDocumentStore[UsersDocument]:
    return JsonDocumentStore(path=tmp_path / "sub" / "users.json", model=UsersDocument, default=UsersDocument)


async def test_ensure_creates_default_document(tmp_path) -> None:
    store = _store(tmp_path)
    await store.ensure()

    data = json.loads(store.path.read_text(encoding="utf-8"))
    assert data == {"users": {}, "stats": {"totalUsers": 0, "premiumUsers": 0, "lastUpdated": None}}


async def test_ensure_keeps_existing_document(tmp_path) -> None:
    store = _store(tmp_path)
    await store.ensure()
    await store.update(lambda doc: setattr(doc, "stats", UserStats(total_users=3)))

    await store.ensure()
    assert (await store.read()).stats.total_users == 3


async def test_update_returns_mutator_result(tmp_path) -> None:
    store = _store(tmp_path)
    await store.ensure()

    result = await store.update(lambda doc: len(doc.users))
    assert result == 0


async def test_failed_mutation_writes_nothing(tmp_path) -> None:
    store = _store(tmp_path)
    await store.ensure()
    before = store.path.read_text(encoding="utf-8")

    def boom(doc: UsersDocument) -> None:
        doc.stats = UserStats(total_users=99)
        raise ValueError("no")

    with pytest.raises(ValueError):
        await store.update(boom)

    assert store.path.read_text(encoding="utf-8") == before


async def test_concurrent_updates_serialize(tmp_path) -> None:
    store = _store(tmp_path)
    await store.ensure()

    def bump(doc: UsersDocument) -> None:
        doc.stats = UserStats(total_users=doc.stats.total_users + 1)

    await asyncio.gather(*(store.update(bump) for _ in range(40)))
    assert (await store.read()).stats.total_users == 40


async def test_no_temp_files_left_behind(tmp_path) -> None:
    store = _store(tmp_path)
    await store.ensure()
    await store.update(lambda doc: None)

    assert [p.name for p in store.path.parent.iterdir()] == ["users.json"]


async def test_missing_file_raises_persistence_error(tmp_path) -> None:
    store = _store(tmp_path)

    with pytest.raises(PersistenceError):
        await store.read()


async def test_invalid_document_raises_persistence_error(tmp_path) -> None:
    store = _store(tmp_path)
    await store.ensure()
    store.path.write_text('{"users": {"1": {"id": "x"}}}', encoding="utf-8")

    with pytest.raises(PersistenceError):
        await store.read()
