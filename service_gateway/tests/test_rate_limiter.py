"""
Unit tests for Gateway Rate Limiter.
"""

import threading

import pytest
from unittest.mock import MagicMock

from service_gateway.app.pipeline.chain import PipelineRequest, PipelineResponse
from service_gateway.app.ratelimit.cooldown import CooldownRateLimiter, RateLimitMiddleware
from shared.errors import RateLimitError
from shared.metrics import MetricsCollector


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class TestCooldownRateLimiter:
    """Test cases for CooldownRateLimiter."""

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def rate_limiter(self, clock):
        """Create CooldownRateLimiter instance with a 5 second window."""
        return CooldownRateLimiter(cooldown_seconds=5.0, clock=clock)

    def test_first_request_is_admitted(self, rate_limiter):
        """Never-seen identifiers are always admitted."""
        assert rate_limiter.admit("198.51.100.1") is True
        assert rate_limiter.admit("198.51.100.2") is True

    def test_second_request_inside_window_is_rejected(self, rate_limiter, clock):
        assert rate_limiter.admit("198.51.100.1") is True
        clock.advance(4.999)
        assert rate_limiter.admit("198.51.100.1") is False

    def test_second_request_after_window_is_admitted(self, rate_limiter, clock):
        assert rate_limiter.admit("198.51.100.1") is True
        clock.advance(5.001)
        assert rate_limiter.admit("198.51.100.1") is True

    def test_request_exactly_at_window_boundary_is_admitted(self, rate_limiter, clock):
        assert rate_limiter.admit("198.51.100.1") is True
        clock.advance(5.0)
        assert rate_limiter.admit("198.51.100.1") is True

    def test_rejection_does_not_extend_window(self, rate_limiter, clock):
        """Only admitted requests update the recorded timestamp."""
        assert rate_limiter.admit("198.51.100.1") is True
        clock.advance(3)
        assert rate_limiter.admit("198.51.100.1") is False
        clock.advance(2.5)
        assert rate_limiter.admit("198.51.100.1") is True

    def test_identifiers_are_independent(self, rate_limiter):
        assert rate_limiter.admit("198.51.100.1") is True
        assert rate_limiter.admit("198.51.100.1") is False
        assert rate_limiter.admit("198.51.100.2") is True

    def test_retry_after(self, rate_limiter, clock):
        assert rate_limiter.retry_after("198.51.100.1") == 0.0
        rate_limiter.admit("198.51.100.1")
        clock.advance(1.5)
        assert rate_limiter.retry_after("198.51.100.1") == pytest.approx(3.5)
        clock.advance(10)
        assert rate_limiter.retry_after("198.51.100.1") == 0.0

    def test_evict_expired_drops_only_stale_entries(self, rate_limiter, clock):
        rate_limiter.admit("old")
        clock.advance(4)
        rate_limiter.admit("fresh")
        clock.advance(1.5)

        assert rate_limiter.evict_expired() == 1
        assert rate_limiter.tracked_clients == 1
        # "fresh" is still cooling down after the sweep
        assert rate_limiter.admit("fresh") is False
        assert rate_limiter.admit("old") is True

    def test_periodic_sweep(self, clock):
        rate_limiter = CooldownRateLimiter(cooldown_seconds=5.0, clock=clock, sweep_interval=3)
        rate_limiter.admit("a")
        rate_limiter.admit("b")
        clock.advance(6)
        assert rate_limiter.tracked_clients == 2

        # Third admission triggers the sweep, which only keeps "c"
        rate_limiter.admit("c")
        assert rate_limiter.tracked_clients == 1

    def test_sweep_disabled(self, clock):
        rate_limiter = CooldownRateLimiter(cooldown_seconds=5.0, clock=clock, sweep_interval=0)
        for index in range(50):
            rate_limiter.admit(f"client-{index}")
            clock.advance(10)
        assert rate_limiter.tracked_clients == 50

    def test_reset(self, rate_limiter):
        rate_limiter.admit("198.51.100.1")
        assert rate_limiter.reset("198.51.100.1") is True
        assert rate_limiter.reset("198.51.100.1") is False
        assert rate_limiter.admit("198.51.100.1") is True

    def test_invalid_arguments(self):
        with pytest.raises(ValueError):
            CooldownRateLimiter(cooldown_seconds=0)
        with pytest.raises(ValueError):
            CooldownRateLimiter(sweep_interval=-1)

    def test_concurrent_requests_admit_exactly_one(self):
        """Check and update share one critical section, so racing threads cannot double-admit."""
        rate_limiter = CooldownRateLimiter(cooldown_seconds=60.0)
        thread_count = 32
        barrier = threading.Barrier(thread_count)
        results = []
        results_lock = threading.Lock()

        def worker():
            barrier.wait()
            admitted = rate_limiter.admit("203.0.113.9")
            with results_lock:
                results.append(admitted)

        threads = [threading.Thread(target=worker) for _ in range(thread_count)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(results) == thread_count
        assert results.count(True) == 1


class TestRateLimitMiddleware:
    """Test cases for RateLimitMiddleware."""

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def metrics(self):
        return MetricsCollector("gateway")

    @pytest.fixture
    def rate_limit_middleware(self, clock, metrics):
        """Create RateLimitMiddleware instance."""
        rate_limiter = CooldownRateLimiter(cooldown_seconds=5.0, clock=clock)
        return RateLimitMiddleware(rate_limiter, metrics)

    @pytest.fixture
    def mock_request(self):
        return PipelineRequest.build("GET", "/hello", {}, remote_addr="127.0.0.1:54321")

    def test_request_allowed(self, rate_limit_middleware, mock_request):
        call_next = MagicMock(return_value=PipelineResponse(body="ok"))

        response = rate_limit_middleware.handle(mock_request, call_next)

        assert response.body == "ok"
        call_next.assert_called_once_with(mock_request)

    def test_request_blocked(self, rate_limit_middleware, mock_request, clock, metrics):
        call_next = MagicMock(return_value=PipelineResponse(body="ok"))
        rate_limit_middleware.handle(mock_request, call_next)
        clock.advance(1.2)

        with pytest.raises(RateLimitError) as exc_info:
            rate_limit_middleware.handle(mock_request, call_next)

        assert exc_info.value.status_code == 429
        assert exc_info.value.retry_after == 4
        assert call_next.call_count == 1
        assert metrics.get_sample_value("rate_limit_rejections_total") == 1.0

    def test_uses_resolved_client_identity(self, rate_limit_middleware, clock):
        """Requests sharing a forwarded client IP share a cooldown."""
        call_next = MagicMock(return_value=PipelineResponse())
        first = PipelineRequest.build("GET", "/hello", {"X-Forwarded-For": "10.0.0.1, 10.0.0.2"},
                                      remote_addr="192.0.2.1:1000")
        second = PipelineRequest.build("GET", "/hello", {"x-real-ip": "10.0.0.1"},
                                       remote_addr="192.0.2.2:2000")

        rate_limit_middleware.handle(first, call_next)
        with pytest.raises(RateLimitError):
            rate_limit_middleware.handle(second, call_next)

        assert rate_limit_middleware.rate_limiter.tracked_clients == 1

    def test_tracked_clients_gauge(self, rate_limit_middleware, metrics):
        call_next = MagicMock(return_value=PipelineResponse())
        for port, host in enumerate(["192.0.2.1", "192.0.2.2", "192.0.2.3"]):
            request = PipelineRequest.build("GET", "/hello", remote_addr=f"{host}:{port + 1}")
            rate_limit_middleware.handle(request, call_next)

        assert metrics.get_sample_value("rate_limit_tracked_clients") == 3.0
