"""
Request pipeline package for the Gateway.

Holds the request/response types and the middleware chain that the
logging, authentication and rate limiting stages plug into.
"""

from service_gateway.app.pipeline.chain import (
    Handler,
    Middleware,
    MiddlewareChain,
    PipelineRequest,
    PipelineResponse,
)

__all__ = [
    "Handler",
    "Middleware",
    "MiddlewareChain",
    "PipelineRequest",
    "PipelineResponse",
]
