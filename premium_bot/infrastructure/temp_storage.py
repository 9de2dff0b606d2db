from __future__ import annotations

import shutil
import uuid
from pathlib import Path
from typing import Dict


class TempStorageError(RuntimeError):
    pass


class TempStorage:
    """
    Manages scratch directories per download.
    """

    def __init__(self, *, root: Path) -> None:
        self._root = root
        self._allocated: Dict[str, Path] = {}

    async def start(self) -> None:
        self._root.mkdir(parents=True, exist_ok=True)

    async def stop(self) -> None:
        # best-effort cleanup
        for p in list(self._allocated.values()):
            shutil.rmtree(p, ignore_errors=True)
        self._allocated.clear()

    def allocate(self, user_id: int) -> tuple[str, Path]:
        job_id = f"{user_id}_{uuid.uuid4().hex[:12]}"
        path = self._root / job_id
        try:
            path.mkdir(parents=True, exist_ok=False)
        except OSError as exc:
            raise TempStorageError(f"Cannot allocate temp dir {path}") from exc
        self._allocated[job_id] = path
        return job_id, path

    def cleanup(self, job_id: str) -> None:
        path = self._allocated.pop(job_id, None)
        if path is not None:
            shutil.rmtree(path, ignore_errors=True)
