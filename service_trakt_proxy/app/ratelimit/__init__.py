"""
Rate limiting package for the edge gateway.

Holds the per-client fixed-window limiter and the background sweeper that
evicts records whose window has closed.
"""

from service_trakt_proxy.app.ratelimit.fixed_window import (
    ClientRateRecord,
    FixedWindowRateLimiter,
    RateLimitDecision,
)
from service_trakt_proxy.app.ratelimit.sweeper import IdleRecordSweeper

__all__ = ["ClientRateRecord", "FixedWindowRateLimiter", "RateLimitDecision", "IdleRecordSweeper"]
