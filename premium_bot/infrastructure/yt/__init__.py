from __future__ import annotations

from .ydl_client import YdlClient
from .ydl_config import YdlConfig

__all__ = ["YdlClient", "YdlConfig"]
