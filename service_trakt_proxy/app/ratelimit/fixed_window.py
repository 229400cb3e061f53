"""
Fixed-window rate limiter for the edge gateway.

Each client gets a window of ``window_ms`` milliseconds opened by its first
request and a budget of ``limit`` requests inside it. Bursts near a window
boundary can admit up to ``2 * limit`` requests in a span approaching
``2 * window_ms``; this keeps memory at one record per client.

The table is process-local. Behind several horizontally scaled instances the
limit bounds load per instance, not globally.
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from shared.logging import get_logger

DEFAULT_LIMIT = 100
DEFAULT_WINDOW_MS = 60_000


def monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


@dataclass
class ClientRateRecord:
    """Request count for one client inside its current window."""

    count: int
    window_reset_at: int


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a single rate-limit check."""

    allowed: bool
    remaining: int
    reset_in_ms: int
    limit: int

    @property
    def reset_in_seconds(self) -> int:
        """Whole seconds until the window resets, rounded up."""
        return -(-self.reset_in_ms // 1000)


class FixedWindowRateLimiter:
    """Per-client fixed-window counter guarded by a lock."""

    def __init__(
        self,
        limit: int = DEFAULT_LIMIT,
        window_ms: int = DEFAULT_WINDOW_MS,
        clock: Optional[Callable[[], int]] = None,
        name: str = "default",
    ):
        self.limit = limit
        self.window_ms = window_ms
        self.name = name
        self._clock = clock or monotonic_ms
        self._records: Dict[str, ClientRateRecord] = {}
        self._lock = threading.Lock()
        self.logger = get_logger(f"trakt_proxy.rate_limiter.{name}")

    def check(self, client_id: str) -> RateLimitDecision:
        """Count one request from ``client_id`` and decide whether to admit it."""
        with self._lock:
            now = self._clock()
            record = self._records.get(client_id)

            if record is None or now > record.window_reset_at:
                self._records[client_id] = ClientRateRecord(count=1, window_reset_at=now + self.window_ms)
                return RateLimitDecision(
                    allowed=True,
                    remaining=max(0, self.limit - 1),
                    reset_in_ms=self.window_ms,
                    limit=self.limit,
                )

            reset_in_ms = record.window_reset_at - now

            if record.count >= self.limit:
                self.logger.warning(
                    "Rate limit exceeded",
                    client_id=client_id,
                    count=record.count,
                    limit=self.limit,
                    reset_in_ms=reset_in_ms,
                )
                return RateLimitDecision(allowed=False, remaining=0, reset_in_ms=reset_in_ms, limit=self.limit)

            record.count += 1
            return RateLimitDecision(
                allowed=True,
                remaining=max(0, self.limit - record.count),
                reset_in_ms=reset_in_ms,
                limit=self.limit,
            )

    def sweep(self) -> int:
        """Drop every record whose window has already passed; return how many."""
        with self._lock:
            now = self._clock()
            expired = [client_id for client_id, record in self._records.items() if now > record.window_reset_at]
            for client_id in expired:
                del self._records[client_id]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
