"""
Per-Client Request Rate Limiting.

A fixed-window counter per client: the first request of a client opens a
window of ``window_seconds``; requests beyond ``max_requests`` inside that
window are rejected until it ends. Windows are kept in memory, so limits
apply per server process.

Expired windows are dropped every ``cleanup_interval`` seconds, on the next
request after the interval has passed.
"""

import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from fastapi import Request

from empire_ai.core.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_CLEANUP_INTERVAL_SECONDS = 60.0


@dataclass
class RateLimitWindow:
    count: int
    reset_at: float


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of counting one request against its client's window."""

    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    retry_after: int

    @property
    def headers(self) -> Dict[str, str]:
        """``X-RateLimit-*`` headers; ``Retry-After`` too when the request is rejected."""
        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(int(self.reset_at * 1000)),
        }
        if not self.allowed:
            headers["Retry-After"] = str(self.retry_after)
        return headers


class FixedWindowRateLimiter:
    """
    Count requests per client key in fixed windows.

    Args:
        max_requests: Requests allowed per window (>= 1).
        window_seconds: Window length in seconds (> 0).
        cleanup_interval: Seconds between sweeps of expired windows.
        clock: Source of the current UNIX time; injectable for tests.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        *,
        cleanup_interval: float = DEFAULT_CLEANUP_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")
        self._max_requests = max_requests
        self._window_seconds = window_seconds
        self._cleanup_interval = cleanup_interval
        self._clock = clock
        self._windows: Dict[str, RateLimitWindow] = {}
        self._last_cleanup = clock()

    @property
    def max_requests(self) -> int:
        return self._max_requests

    @property
    def window_seconds(self) -> float:
        return self._window_seconds

    def hit(self, key: str) -> RateLimitDecision:
        """Count one request of ``key`` and decide whether it may proceed."""
        now = self._clock()
        if now - self._last_cleanup >= self._cleanup_interval:
            self.cleanup()

        window = self._windows.get(key)
        if window is None or now > window.reset_at:
            window = RateLimitWindow(count=0, reset_at=now + self._window_seconds)
            self._windows[key] = window
        window.count += 1

        allowed = window.count <= self._max_requests
        if not allowed:
            logger.warning(f"Rate limit exceeded for client {key} ({window.count}/{self._max_requests})")
        return RateLimitDecision(
            allowed=allowed,
            limit=self._max_requests,
            remaining=max(self._max_requests - window.count, 0),
            reset_at=window.reset_at,
            retry_after=math.ceil(window.reset_at - now),
        )

    def cleanup(self) -> int:
        """Drop windows that have ended; returns how many were removed."""
        now = self._clock()
        expired = [key for key, window in self._windows.items() if now > window.reset_at]
        for key in expired:
            del self._windows[key]
        self._last_cleanup = now
        if expired:
            logger.debug(f"Dropped {len(expired)} expired rate limit windows")
        return len(expired)

    def __len__(self) -> int:
        return len(self._windows)


def client_key(request: Request) -> str:
    """Identify the client: first ``X-Forwarded-For`` hop, then ``X-Real-IP``, then the peer address."""
    forwarded: Optional[str] = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    if request.client is not None:
        return request.client.host
    return "unknown"
