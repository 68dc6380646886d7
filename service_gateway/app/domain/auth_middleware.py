"""
Authentication middleware for Gateway.
"""

from typing import Optional

from service_gateway.app.auth.static_key import StaticKeyAuthenticator
from service_gateway.app.pipeline.chain import Handler, Middleware, PipelineRequest, PipelineResponse
from shared.errors import AuthenticationError
from shared.logging import get_logger
from shared.metrics import MetricsCollector


class AuthMiddleware(Middleware):
    """Authentication middleware for Gateway."""

    def __init__(self, authenticator: StaticKeyAuthenticator, metrics: Optional[MetricsCollector] = None):
        self.authenticator = authenticator
        self.metrics = metrics
        self.logger = get_logger("gateway.auth_middleware")

    def handle(self, request: PipelineRequest, call_next: Handler) -> PipelineResponse:
        api_key = self.authenticator.credential(request.headers)

        if not self.authenticator.authenticate(request.headers):
            reason = "missing" if api_key is None else "mismatch"
            self.logger.warning(
                "API key authentication failed",
                header=self.authenticator.header_name,
                reason=reason,
                path=request.path
            )
            if self.metrics:
                self.metrics.record_authentication_failure(reason)
            raise AuthenticationError()

        self.logger.debug(
            "Request authenticated with API key",
            header=self.authenticator.header_name
        )
        return call_next(request)
