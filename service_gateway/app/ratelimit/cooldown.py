"""
Per-client cooldown rate limiter for Gateway service.
"""

import math
import threading
import time
from typing import Callable, Dict, Optional

from service_gateway.app.domain.client_identity import resolve_client_identity
from service_gateway.app.pipeline.chain import Handler, Middleware, PipelineRequest, PipelineResponse
from shared.errors import RateLimitError
from shared.logging import get_logger, set_client_context
from shared.metrics import MetricsCollector

DEFAULT_COOLDOWN_SECONDS = 5.0
DEFAULT_SWEEP_INTERVAL = 1000


class CooldownRateLimiter:
    """In-memory limiter admitting one request per client per cooldown window.

    The map of last-admitted timestamps is owned by the instance and guarded
    by a single lock. The lookup, the window check and the timestamp update
    run in one critical section, so two concurrent requests from the same
    client can never both be admitted inside the window.
    """

    def __init__(self, cooldown_seconds: float = DEFAULT_COOLDOWN_SECONDS,
                 clock: Callable[[], float] = time.monotonic,
                 sweep_interval: int = DEFAULT_SWEEP_INTERVAL):
        if cooldown_seconds <= 0:
            raise ValueError("cooldown_seconds must be positive")
        if sweep_interval < 0:
            raise ValueError("sweep_interval must be >= 0")
        self.cooldown_seconds = cooldown_seconds
        self.sweep_interval = sweep_interval
        self._clock = clock
        self._last_admitted: Dict[str, float] = {}
        self._admits_since_sweep = 0
        self._lock = threading.Lock()
        self.logger = get_logger("gateway.rate_limiter")

    def admit(self, identifier: str) -> bool:
        """Admit ``identifier`` and record the time, or reject it inside the window."""
        with self._lock:
            now = self._clock()
            last = self._last_admitted.get(identifier)
            if last is not None and now - last < self.cooldown_seconds:
                return False

            self._last_admitted[identifier] = now

            self._admits_since_sweep += 1
            if self.sweep_interval and self._admits_since_sweep >= self.sweep_interval:
                self._evict_expired_locked(now)
            return True

    def retry_after(self, identifier: str) -> float:
        """Seconds until ``identifier`` would be admitted again."""
        with self._lock:
            last = self._last_admitted.get(identifier)
            if last is None:
                return 0.0
            return max(0.0, self.cooldown_seconds - (self._clock() - last))

    def evict_expired(self) -> int:
        """Drop clients whose last admission is outside the window."""
        with self._lock:
            return self._evict_expired_locked(self._clock())

    def _evict_expired_locked(self, now: float) -> int:
        stale = [
            identifier for identifier, last in self._last_admitted.items()
            if now - last >= self.cooldown_seconds
        ]
        for identifier in stale:
            del self._last_admitted[identifier]
        self._admits_since_sweep = 0
        if stale:
            self.logger.debug("Evicted stale rate limit entries", evicted=len(stale),
                              remaining=len(self._last_admitted))
        return len(stale)

    def reset(self, identifier: str) -> bool:
        """Forget ``identifier``; returns whether it was tracked."""
        with self._lock:
            return self._last_admitted.pop(identifier, None) is not None

    @property
    def tracked_clients(self) -> int:
        with self._lock:
            return len(self._last_admitted)


class RateLimitMiddleware(Middleware):
    """Pipeline stage rejecting clients that are still cooling down."""

    def __init__(self, rate_limiter: CooldownRateLimiter, metrics: Optional[MetricsCollector] = None):
        self.rate_limiter = rate_limiter
        self.metrics = metrics
        self.logger = get_logger("gateway.rate_limit_middleware")

    def handle(self, request: PipelineRequest, call_next: Handler) -> PipelineResponse:
        client_id = resolve_client_identity(request.headers, request.remote_addr)
        set_client_context(client_id)

        admitted = self.rate_limiter.admit(client_id)
        if self.metrics:
            self.metrics.set_tracked_clients(self.rate_limiter.tracked_clients)

        if not admitted:
            retry_after = math.ceil(self.rate_limiter.retry_after(client_id))
            self.logger.warning("Rate limit exceeded", client_id=client_id, path=request.path,
                                retry_after=retry_after)
            if self.metrics:
                self.metrics.record_rate_limit_rejection()
            raise RateLimitError(retry_after=max(1, retry_after))

        return call_next(request)
