from __future__ import annotations

import asyncio
import contextlib
import math
import threading
import time
from collections import deque
from typing import Callable, Deque, Dict

from loguru import logger

from premium_bot.domain.models import RateLimitDecision, RateLimiterStats


class SlidingWindowRateLimiter:
    """
    Per-user sliding-window rate limiter.

    Keeps the timestamps of accepted requests for each user; a request is
    admitted while fewer than `max_requests` of them are younger than the window.
    State is process-local and never persisted.
    """

    def __init__(
        self,
        *,
        max_requests: int,
        window_sec: float,
        cleanup_interval_sec: float = 300,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        if window_sec <= 0:
            raise ValueError("window_sec must be > 0")
        if cleanup_interval_sec <= 0:
            raise ValueError("cleanup_interval_sec must be > 0")

        self._limit = max_requests
        self._window = window_sec
        self._cleanup_interval = cleanup_interval_sec
        self._clock = clock
        self._lock = threading.Lock()
        self._events: Dict[int, Deque[float]] = {}
        self._cleanup_task: asyncio.Task[None] | None = None

    @property
    def max_requests(self) -> int:
        return self._limit

    @property
    def window_sec(self) -> float:
        return self._window

    def _expire(self, q: Deque[float], now: float) -> None:
        while q and now - q[0] >= self._window:
            q.popleft()

    def check(self, user_id: int) -> RateLimitDecision:
        now = self._clock()
        with self._lock:
            q = self._events.setdefault(user_id, deque())
            self._expire(q, now)

            if len(q) >= self._limit:
                wait = math.ceil(q[0] + self._window - now)
                return RateLimitDecision(allowed=False, remaining=0, reset_after_sec=max(1, wait))

            q.append(now)
            return RateLimitDecision(allowed=True, remaining=self._limit - len(q))

    def compact(self) -> int:
        """
        Drop users whose window is empty. Returns how many were dropped.
        """
        now = self._clock()
        with self._lock:
            stale = []
            for user_id, q in self._events.items():
                self._expire(q, now)
                if not q:
                    stale.append(user_id)
            for user_id in stale:
                del self._events[user_id]

        if stale:
            logger.debug("Cleaned up {} rate limit entries", len(stale))
        return len(stale)

    def stats(self) -> RateLimiterStats:
        with self._lock:
            active = len(self._events)
        return RateLimiterStats(active_users=active, window_sec=self._window, max_requests=self._limit)

    async def start(self) -> None:
        if self._cleanup_task is not None:
            return
        self._cleanup_task = asyncio.create_task(self._cleanup_loop(), name="rate_limiter_cleanup")

    async def stop(self) -> None:
        task, self._cleanup_task = self._cleanup_task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _cleanup_loop(self) -> None:
        while True:
            await asyncio.sleep(self._cleanup_interval)
            try:
                self.compact()
            except Exception:
                logger.exception("rate limiter cleanup failed")
