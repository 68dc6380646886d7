"""
Request logging middleware for Gateway.
"""

import time
from typing import Optional

from service_gateway.app.pipeline.chain import Handler, Middleware, PipelineRequest, PipelineResponse
from shared.logging import clear_context, get_logger, set_request_id
from shared.metrics import MetricsCollector


class RequestLoggingMiddleware(Middleware):
    """Log the start and duration of every request, whatever its outcome."""

    def __init__(self, metrics: Optional[MetricsCollector] = None):
        self.metrics = metrics
        self.logger = get_logger("gateway.request_logging")

    def handle(self, request: PipelineRequest, call_next: Handler) -> PipelineResponse:
        set_request_id(request.headers.get("X-Request-ID"))
        start_time = time.perf_counter()
        status_code = 500

        self.logger.info(f"Started {request.method} {request.path}")
        try:
            response = call_next(request)
            status_code = response.status_code
            return response
        finally:
            duration = time.perf_counter() - start_time
            self.logger.info(
                f"Completed in {duration * 1000:.3f}ms",
                method=request.method,
                path=request.path,
                status_code=status_code,
                duration_ms=round(duration * 1000, 3)
            )
            if self.metrics:
                self.metrics.record_http_request(
                    method=request.method,
                    endpoint=request.path,
                    status_code=status_code,
                    duration=duration
                )
            clear_context()
