from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Dict, Tuple


@dataclass(slots=True)
class PendingAction:
    action: str
    payload: str
    version: int


class PendingActionStore:
    """
    Admin actions waiting for a confirm button press (broadcast, demote).

    Callback data only carries (action, version); the payload stays here, so
    a long broadcast text never hits the 64-byte callback limit. A newer
    request of the same kind invalidates the older button. Versions come from
    one store-wide counter and are never reused.
    """

    def __init__(self) -> None:
        self._pending: Dict[Tuple[int, str], PendingAction] = {}
        self._versions = itertools.count(1)

    def put(self, *, user_id: int, action: str, payload: str) -> int:
        version = next(self._versions)
        self._pending[(user_id, action)] = PendingAction(action=action, payload=payload, version=version)
        return version

    def pop(self, *, user_id: int, action: str, version: int) -> str:
        key = (user_id, action)
        pending = self._pending.get(key)
        if pending is None or pending.version != version:
            raise KeyError("action expired")
        del self._pending[key]
        return pending.payload

    def discard(self, *, user_id: int, action: str) -> None:
        self._pending.pop((user_id, action), None)
