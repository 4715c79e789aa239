"""Unit tests for the per-client fixed-window rate limiter."""

from unittest.mock import Mock

import pytest

from empire_ai.server.services.rate_limit import FixedWindowRateLimiter, RateLimitDecision, client_key


class _Clock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> _Clock:
    return _Clock()


def _limiter(clock: _Clock, max_requests: int = 2, window_seconds: float = 60, **kwargs) -> FixedWindowRateLimiter:
    return FixedWindowRateLimiter(max_requests, window_seconds, clock=clock, **kwargs)


class TestFixedWindowRateLimiter:
    def test_counts_requests_within_window(self, clock):
        limiter = _limiter(clock)

        first = limiter.hit("1.2.3.4")
        second = limiter.hit("1.2.3.4")

        assert (first.allowed, first.remaining) == (True, 1)
        assert (second.allowed, second.remaining) == (True, 0)
        assert first.reset_at == second.reset_at == clock.now + 60

    def test_rejects_requests_over_the_limit(self, clock):
        limiter = _limiter(clock)
        limiter.hit("1.2.3.4")
        limiter.hit("1.2.3.4")
        clock.advance(20.5)

        decision = limiter.hit("1.2.3.4")

        assert decision.allowed is False
        assert decision.remaining == 0
        assert decision.retry_after == 40

    def test_clients_have_separate_windows(self, clock):
        limiter = _limiter(clock, max_requests=1)
        limiter.hit("1.2.3.4")

        assert limiter.hit("5.6.7.8").allowed is True
        assert limiter.hit("1.2.3.4").allowed is False

    def test_new_window_after_reset(self, clock):
        limiter = _limiter(clock, max_requests=1)
        limiter.hit("1.2.3.4")
        assert limiter.hit("1.2.3.4").allowed is False

        clock.advance(61)
        decision = limiter.hit("1.2.3.4")

        assert decision.allowed is True
        assert decision.reset_at == clock.now + 60

    def test_expired_windows_are_swept_periodically(self, clock):
        limiter = _limiter(clock, cleanup_interval=120)
        limiter.hit("1.2.3.4")
        limiter.hit("5.6.7.8")
        clock.advance(61)

        limiter.hit("9.9.9.9")
        assert len(limiter) == 3

        clock.advance(60)
        limiter.hit("9.9.9.9")
        assert len(limiter) == 1

    def test_cleanup_returns_number_removed(self, clock):
        limiter = _limiter(clock)
        limiter.hit("1.2.3.4")
        clock.advance(30)
        limiter.hit("5.6.7.8")
        clock.advance(31)

        assert limiter.cleanup() == 1
        assert len(limiter) == 1

    @pytest.mark.parametrize(("max_requests", "window_seconds"), [(0, 60), (1, 0)])
    def test_invalid_limits(self, clock, max_requests, window_seconds):
        with pytest.raises(ValueError):
            _limiter(clock, max_requests=max_requests, window_seconds=window_seconds)


class TestRateLimitDecision:
    def test_headers_of_allowed_request(self):
        decision = RateLimitDecision(allowed=True, limit=60, remaining=59, reset_at=1_700_000_060.0, retry_after=60)

        assert decision.headers == {
            "X-RateLimit-Limit": "60",
            "X-RateLimit-Remaining": "59",
            "X-RateLimit-Reset": "1700000060000",
        }

    def test_rejected_request_adds_retry_after(self):
        decision = RateLimitDecision(allowed=False, limit=60, remaining=0, reset_at=1_700_000_060.0, retry_after=7)

        assert decision.headers["Retry-After"] == "7"


class TestClientKey:
    @staticmethod
    def _request(headers: dict, host: str = "10.0.0.1"):
        request = Mock()
        request.headers = headers
        request.client = Mock(host=host) if host else None
        return request

    def test_first_forwarded_hop(self):
        assert client_key(self._request({"x-forwarded-for": "203.0.113.7, 10.0.0.2"})) == "203.0.113.7"

    def test_real_ip_header(self):
        assert client_key(self._request({"x-real-ip": "198.51.100.4"})) == "198.51.100.4"

    def test_peer_address(self):
        assert client_key(self._request({})) == "10.0.0.1"

    def test_unknown_client(self):
        assert client_key(self._request({}, host="")) == "unknown"
