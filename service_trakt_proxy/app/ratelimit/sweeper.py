"""
Background eviction of expired rate-limit records.
"""

import asyncio
from typing import Iterable, List, Optional

from shared.logging import get_logger
from shared.metrics import MetricsCollector
from service_trakt_proxy.app.ratelimit.fixed_window import FixedWindowRateLimiter


class IdleRecordSweeper:
    """Periodically sweeps one or more rate limiters."""

    def __init__(
        self,
        limiters: Iterable[FixedWindowRateLimiter],
        interval_ms: int = 60_000,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.limiters: List[FixedWindowRateLimiter] = list(limiters)
        self.interval_ms = interval_ms
        self.metrics = metrics
        self.logger = get_logger("trakt_proxy.sweeper")
        self._task: Optional[asyncio.Task] = None
        self.running = False

    async def start(self):
        """Start the sweep loop."""
        if self._task is not None:
            return
        self.running = True
        self._task = asyncio.create_task(self._sweep_loop())
        self.logger.info("Idle-record sweeper started", interval_ms=self.interval_ms)

    async def stop(self):
        """Cancel the sweep loop and wait for it to finish."""
        self.running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        self.logger.info("Idle-record sweeper stopped")

    def sweep_once(self) -> int:
        """Run a single sweep over all limiters."""
        removed = 0
        for limiter in self.limiters:
            evicted = limiter.sweep()
            removed += evicted
            if self.metrics:
                self.metrics.set_gauge("rate_limit_tracked_clients", len(limiter), upstream=limiter.name)
            if evicted:
                self.logger.debug("Evicted idle rate-limit records", limiter=limiter.name, evicted=evicted)
        return removed

    async def _sweep_loop(self):
        while self.running:
            await asyncio.sleep(self.interval_ms / 1000)
            try:
                self.sweep_once()
            except Exception as e:
                self.logger.error("Rate-limit sweep failed", error=str(e), exc_info=True)
