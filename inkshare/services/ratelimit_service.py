"""
inkshare/services/ratelimit_service.py

Purpose: Per-sender rate limiting

- Fixed window per key: the first hit opens a window of `window_seconds`
- At most `limit` interactions are admitted per window
- Excess interactions are rejected, never queued
"""

import time
from dataclasses import dataclass
from typing import Callable, Dict, Tuple

from inkshare.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    retry_after_seconds: float = 0.0


class RateLimiter:
    """
    In-memory fixed-window limiter keyed by sender.
    State is process-local and does not survive a restart.
    """

    def __init__(
        self,
        *,
        limit: int = 1,
        window_seconds: float = 3.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: Dict[str, Tuple[float, int]] = {}

    def hit(self, key: str) -> RateLimitResult:
        """Records one interaction for `key` and says whether to process it."""
        now = self._clock()
        self._evict_expired(now)

        started, count = self._windows.get(key, (now, 0))
        count += 1
        self._windows[key] = (started, count)

        if count > self.limit:
            retry_after = max(0.0, started + self.window_seconds - now)
            logger.warning(
                "Rate limit exceeded",
                extra={"session_key": key, "count": count, "max": self.limit}
            )
            return RateLimitResult(allowed=False, remaining=0, retry_after_seconds=retry_after)

        return RateLimitResult(allowed=True, remaining=self.limit - count)

    def _evict_expired(self, now: float) -> None:
        expired = [
            key for key, (started, _) in self._windows.items()
            if now - started >= self.window_seconds
        ]
        for key in expired:
            del self._windows[key]
