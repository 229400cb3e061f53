"""
Unit tests for the fixed-window rate limiter.
"""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from service_trakt_proxy.app.ratelimit.fixed_window import FixedWindowRateLimiter, RateLimitDecision


class TestFixedWindowRateLimiter:
    """Test cases for FixedWindowRateLimiter."""

    @pytest.fixture
    def rate_limiter(self, fake_clock):
        return FixedWindowRateLimiter(limit=100, window_ms=60_000, clock=fake_clock)

    def test_first_request_opens_window(self, rate_limiter):
        decision = rate_limiter.check("10.0.0.1")

        assert decision.allowed is True
        assert decision.remaining == 99
        assert decision.reset_in_ms == 60_000
        assert rate_limiter._records["10.0.0.1"].count == 1

    def test_limit_request_is_last_admitted(self, rate_limiter):
        decisions = [rate_limiter.check("10.0.0.1") for _ in range(100)]

        assert all(d.allowed for d in decisions)
        assert decisions[-1].remaining == 0

        rejected = rate_limiter.check("10.0.0.1")
        assert rejected.allowed is False
        assert rejected.remaining == 0

    def test_rejections_continue_and_do_not_increment(self, rate_limiter):
        for _ in range(100):
            rate_limiter.check("10.0.0.1")

        for _ in range(5):
            assert rate_limiter.check("10.0.0.1").allowed is False

        assert rate_limiter._records["10.0.0.1"].count == 100

    def test_reset_in_reported_on_rejection(self, rate_limiter, fake_clock):
        for _ in range(100):
            rate_limiter.check("10.0.0.1")
        fake_clock.advance(15_500)

        decision = rate_limiter.check("10.0.0.1")

        assert decision.allowed is False
        assert decision.reset_in_ms == 44_500
        assert decision.reset_in_seconds == 45

    def test_window_reset_starts_new_window(self, rate_limiter, fake_clock):
        for _ in range(101):
            rate_limiter.check("10.0.0.1")

        fake_clock.advance(60_001)
        decision = rate_limiter.check("10.0.0.1")

        assert decision.allowed is True
        assert decision.remaining == 99
        assert rate_limiter._records["10.0.0.1"].count == 1

    def test_window_boundary_is_inclusive(self, rate_limiter, fake_clock):
        for _ in range(100):
            rate_limiter.check("10.0.0.1")

        fake_clock.advance(60_000)
        assert rate_limiter.check("10.0.0.1").allowed is False

    def test_clients_are_independent(self, rate_limiter):
        for _ in range(100):
            rate_limiter.check("10.0.0.1")

        assert rate_limiter.check("10.0.0.1").allowed is False
        assert rate_limiter.check("10.0.0.2").allowed is True
        assert len(rate_limiter) == 2

    def test_sweep_removes_only_expired(self, rate_limiter, fake_clock):
        rate_limiter.check("old")
        fake_clock.advance(30_000)
        rate_limiter.check("fresh")
        fake_clock.advance(30_001)

        assert rate_limiter.sweep() == 1
        assert "old" not in rate_limiter._records
        assert "fresh" in rate_limiter._records

    def test_reset_in_seconds_rounds_up(self):
        decision = RateLimitDecision(allowed=False, remaining=0, reset_in_ms=1, limit=10)
        assert decision.reset_in_seconds == 1

    def test_concurrent_checks_at_boundary_admit_one(self, fake_clock):
        limiter = FixedWindowRateLimiter(limit=2, window_ms=60_000, clock=fake_clock)
        limiter.check("10.0.0.1")
        barrier = threading.Barrier(2)

        def contend():
            barrier.wait()
            return limiter.check("10.0.0.1")

        with ThreadPoolExecutor(max_workers=2) as pool:
            results = list(pool.map(lambda _: contend(), range(2)))

        assert sorted(r.allowed for r in results) == [False, True]
        assert limiter._records["10.0.0.1"].count == 2
