"""
API Gateway service: a single endpoint behind the logging, authentication
and rate limiting pipeline.
"""

from typing import Optional

from fastapi import Request, Response

from service_gateway.app.auth.static_key import StaticKeyAuthenticator
from service_gateway.app.domain.auth_middleware import AuthMiddleware
from service_gateway.app.domain.hello import HelloHandler
from service_gateway.app.domain.request_logging import RequestLoggingMiddleware
from service_gateway.app.pipeline.chain import MiddlewareChain, PipelineRequest
from service_gateway.app.ratelimit.cooldown import CooldownRateLimiter, RateLimitMiddleware
from shared.base_service import BaseService
from shared.config import ServiceConfig
from shared.metrics import MetricsCollector

SERVICE_NAME = "gateway"
DEFAULT_PORT = 8080


def build_pipeline(config: ServiceConfig, rate_limiter: CooldownRateLimiter,
                   metrics: Optional[MetricsCollector] = None) -> MiddlewareChain:
    """Compose Logger(Authenticator(RateLimiter(HelloHandler)))."""
    authenticator = StaticKeyAuthenticator(config.api_key, header_name=config.api_key_header)
    return MiddlewareChain(
        [
            RequestLoggingMiddleware(metrics),
            AuthMiddleware(authenticator, metrics),
            RateLimitMiddleware(rate_limiter, metrics),
        ],
        HelloHandler(),
    )


class GatewayService(BaseService):
    """API Gateway service implementation."""

    def __init__(self, config: Optional[ServiceConfig] = None,
                 rate_limiter: Optional[CooldownRateLimiter] = None):
        super().__init__(SERVICE_NAME, DEFAULT_PORT, config=config)
        self.rate_limiter = rate_limiter or CooldownRateLimiter(
            cooldown_seconds=self.config.rate_limit_cooldown_seconds,
            sweep_interval=self.config.rate_limit_sweep_interval,
        )
        self.pipeline = build_pipeline(self.config, self.rate_limiter, self.metrics)

        self._setup_gateway_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.gateway_service = self

    def _to_pipeline_request(self, request: Request) -> PipelineRequest:
        """Adapt a starlette request to the pipeline's read-only view."""
        remote_addr = ""
        if request.client:
            remote_addr = f"{request.client.host}:{request.client.port}"
        return PipelineRequest(
            method=request.method,
            path=request.url.path,
            headers=request.headers,
            remote_addr=remote_addr,
        )

    def _setup_gateway_routes(self):
        """Set up gateway-specific routes."""

        # Sync endpoint: starlette runs each call on its worker thread pool.
        @self.app.api_route(self.config.hello_path, methods=["GET", "POST"])
        def hello(request: Request):
            """Run the request through the middleware pipeline."""
            result = self.pipeline.handle(self._to_pipeline_request(request))
            return Response(
                content=result.body,
                status_code=result.status_code,
                headers=result.headers,
                media_type=result.media_type,
            )

    async def _check_dependencies(self):
        return {"rate_limiter": "ok"}


def create_app(config: Optional[ServiceConfig] = None):
    """Create the gateway FastAPI application."""
    service = GatewayService(config=config)
    return service.app


def main():
    GatewayService().run()


if __name__ == "__main__":
    main()
