from __future__ import annotations

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Optional

logger = logging.getLogger(__name__)

WINDOW_SEC = 60.0
# floor for a single wait so a fractional remainder still moves the clock
_MIN_SLEEP_SEC = 0.001


@dataclass(frozen=True)
class RateLimitStatus:
    requests_in_last_minute: int
    max_requests_per_minute: int
    remaining_requests: int
    seconds_since_last_request: Optional[float]


class RateLimiter:
    """
    Blocking admission gate enforcing two limits at once:
      1) at most `max_requests_per_minute` admissions in any trailing 60 s window;
      2) at least `min_request_interval_ms` between two admissions.

    Callers never get rejected, they wait. After every wait the whole check
    runs again, so several threads may share one limiter.
    """

    def __init__(
        self,
        *,
        max_requests_per_minute: int = 12,
        min_request_interval_ms: float = 5000.0,
        buffer_ms: float = 1000.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_requests_per_minute <= 0:
            raise ValueError("max_requests_per_minute must be > 0")
        if min_request_interval_ms < 0:
            raise ValueError("min_request_interval_ms must be >= 0")
        if buffer_ms < 0:
            raise ValueError("buffer_ms must be >= 0")

        self.max_requests_per_minute = int(max_requests_per_minute)
        self.min_interval_sec = float(min_request_interval_ms) / 1000.0
        self.buffer_sec = float(buffer_ms) / 1000.0
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._window: Deque[float] = deque()
        self._last: Optional[float] = None

    def _purge(self, now: float) -> None:
        while self._window and now - self._window[0] >= WINDOW_SEC:
            self._window.popleft()

    def _wait_needed(self, now: float) -> tuple[float, str]:
        if len(self._window) >= self.max_requests_per_minute:
            oldest = self._window[0]
            return WINDOW_SEC - (now - oldest) + self.buffer_sec, "window_full"
        if self._last is not None:
            elapsed = now - self._last
            if elapsed < self.min_interval_sec:
                return self.min_interval_sec - elapsed, "min_interval"
        return 0.0, ""

    def admit(self) -> float:
        """Block until a request may be sent, record it, and return its timestamp."""
        while True:
            with self._lock:
                now = self._clock()
                self._purge(now)
                wait, reason = self._wait_needed(now)
                if wait <= 0:
                    self._window.append(now)
                    self._last = now
                    return now
                in_window = len(self._window)
            logger.info(
                "rate_limit_wait",
                extra={"reason": reason, "wait_sec": round(wait, 3), "in_window": in_window},
            )
            self._sleep(max(wait, _MIN_SLEEP_SEC))

    def status(self) -> RateLimitStatus:
        with self._lock:
            now = self._clock()
            recent = sum(1 for t in self._window if now - t < WINDOW_SEC)
            since_last = None if self._last is None else now - self._last
        return RateLimitStatus(
            requests_in_last_minute=recent,
            max_requests_per_minute=self.max_requests_per_minute,
            remaining_requests=max(0, self.max_requests_per_minute - recent),
            seconds_since_last_request=since_last,
        )

    def __len__(self) -> int:
        with self._lock:
            return len(self._window)
