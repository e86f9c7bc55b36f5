# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import threading
import time
from collections import deque
from collections.abc import Callable
from functools import wraps

from flask import Request, request

from userauth.shared.config import SecurityConfig
from userauth.shared.errors import RateLimitedError
from userauth.shared.logging import logger


class InMemoryRateLimiter:
    """Sliding-window limiter keyed by an arbitrary string.

    State lives in the process, so each worker keeps its own counters. Keys
    whose window has fully elapsed are swept at most once per window, so the
    table only holds clients seen recently.
    """

    def __init__(
        self,
        limit: int,
        window_seconds: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._limit = max(1, int(limit))
        self._window = max(0.1, float(window_seconds))
        self._clock = clock
        self._buckets: dict[str, deque[float]] = {}
        self._next_sweep = clock() + self._window
        self._lock = threading.Lock()

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._buckets)

    def hit(self, key: str) -> float:
        """Record a request; returns 0 if allowed, otherwise seconds until a slot frees."""
        now = self._clock()
        with self._lock:
            if now >= self._next_sweep:
                self._sweep(now)
            timestamps = self._buckets.setdefault(key, deque())
            self._expire(timestamps, now)
            if len(timestamps) >= self._limit:
                return max(0.1, self._window - (now - timestamps[0]))
            timestamps.append(now)
            return 0.0

    def allow(self, key: str) -> bool:
        return self.hit(key) == 0.0

    def reset(self) -> None:
        with self._lock:
            self._buckets.clear()

    def _expire(self, timestamps: deque[float], now: float) -> None:
        while timestamps and (now - timestamps[0]) >= self._window:
            timestamps.popleft()

    def _sweep(self, now: float) -> None:
        for key in list(self._buckets):
            timestamps = self._buckets[key]
            self._expire(timestamps, now)
            if not timestamps:
                del self._buckets[key]
        self._next_sweep = now + self._window


def client_key(req: Request) -> str:
    # Forwarded headers only count once ProxyFix has vouched for them
    return req.remote_addr or "unknown"


def build_rate_limiter(config: SecurityConfig) -> InMemoryRateLimiter | None:
    if not config.enable_rate_limit:
        return None
    return InMemoryRateLimiter(config.rate_limit_requests, config.rate_limit_window)


def rate_limit(limiter: InMemoryRateLimiter | None):
    """Wrap a view so each client gets ``limiter.limit`` calls per window on that path."""

    def decorator(f: Callable):
        if limiter is None:
            return f

        @wraps(f)
        def wrapper(*args, **kwargs):
            key = f"{request.path}:{client_key(request)}"
            retry_after = limiter.hit(key)
            if retry_after:
                logger.warning(f"Rate limit exceeded on {request.method} {request.path}")
                raise RateLimitedError(retry_after)
            return f(*args, **kwargs)

        return wrapper

    return decorator


__all__ = ["InMemoryRateLimiter", "build_rate_limiter", "client_key", "rate_limit"]
