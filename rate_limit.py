"""Process-local rate limiting keyed by client IP and window bucket.

Counts live in memory and reset on restart; every worker process keeps its own budget.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Mapping, Optional

import config


@dataclass
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_time: float


@dataclass
class _Bucket:
    count: int
    timestamp: float


def client_ip(headers: Mapping[str, str], peer: Optional[str] = None) -> str:
    forwarded = headers.get("x-forwarded-for") or ""
    first = forwarded.split(",")[0].strip()
    return first or headers.get("x-real-ip") or peer or "unknown"


class RateLimiter:
    def __init__(
        self,
        max_requests: int = config.RATE_LIMIT_MAX_REQUESTS,
        window_seconds: int = config.RATE_LIMIT_WINDOW_SECONDS,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._buckets: dict[str, _Bucket] = {}
        self._lock = threading.Lock()

    def _key(self, ip: str, now: float) -> str:
        return f"{ip}:{int(now // self.window_seconds)}"

    def _purge(self, now: float) -> None:
        cutoff = now - 2 * self.window_seconds
        stale = [key for key, bucket in self._buckets.items() if bucket.timestamp < cutoff]
        for key in stale:
            del self._buckets[key]

    def check(self, ip: str, now: Optional[float] = None) -> RateLimitResult:
        now = time.time() if now is None else now
        with self._lock:
            self._purge(now)
            key = self._key(ip, now)
            bucket = self._buckets.get(key)
            if bucket is None:
                self._buckets[key] = _Bucket(count=1, timestamp=now)
                return RateLimitResult(True, self.max_requests - 1, now + self.window_seconds)

            reset_time = bucket.timestamp + self.window_seconds
            if bucket.count >= self.max_requests:
                return RateLimitResult(False, 0, reset_time)

            bucket.count += 1
            return RateLimitResult(True, self.max_requests - bucket.count, reset_time)

    def reset(self) -> None:
        with self._lock:
            self._buckets.clear()

    def __len__(self) -> int:
        return len(self._buckets)
