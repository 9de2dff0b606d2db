from __future__ import annotations

import asyncio
import json
import os
import tempfile
from pathlib import Path
from typing import Callable, Generic, Type, TypeVar

import pydantic
from loguru import logger

from premium_bot.domain.errors import PersistenceError


DocT = TypeVar("DocT", bound=pydantic.BaseModel)
ResultT = TypeVar("ResultT")


class JsonDocumentStore(Generic[DocT]):
    """
    One human-readable JSON document on disk, validated through a pydantic model.

    Writers are serialized with an asyncio.Lock: `update()` reads, mutates and writes
    the whole document while holding it, so two concurrent updates never interleave.
    Writes land in a temp file that replaces the target, so readers always see a
    complete document.
    """

    def __init__(self, *, path: Path, model: Type[DocT], default: Callable[[], DocT]) -> None:
        self._path = path
        self._model = model
        self._default = default
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    async def ensure(self) -> None:
        async with self._lock:
            exists = await asyncio.to_thread(self._path.exists)
            if exists:
                return
            await asyncio.to_thread(self._path.parent.mkdir, parents=True, exist_ok=True)
            await self._write(self._default())
            logger.info("Initialized data file {}", self._path)

    async def read(self) -> DocT:
        return await self._read()

    async def update(self, mutate: Callable[[DocT], ResultT]) -> ResultT:
        """
        Run `mutate` on the current document and persist the result as one transaction.
        If `mutate` raises, nothing is written.
        """
        async with self._lock:
            doc = await self._read()
            result = mutate(doc)
            await self._write(doc)
            return result

    async def _read(self) -> DocT:
        try:
            raw = await asyncio.to_thread(self._path.read_text, "utf-8")
        except OSError as exc:
            raise PersistenceError(f"Failed to read {self._path}") from exc
        except UnicodeDecodeError as exc:
            raise PersistenceError(f"Corrupt data in {self._path}") from exc

        try:
            return self._model.model_validate_json(raw)
        except pydantic.ValidationError as exc:
            raise PersistenceError(f"Corrupt data in {self._path}") from exc

    async def _write(self, doc: DocT) -> None:
        payload = json.dumps(doc.model_dump(mode="json", by_alias=True), indent=2, ensure_ascii=False)
        try:
            await asyncio.to_thread(_atomic_write, self._path, payload)
        except OSError as exc:
            raise PersistenceError(f"Failed to write {self._path}") from exc


def _atomic_write(path: Path, payload: str) -> None:
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(payload)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise
