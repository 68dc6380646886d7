"""
Domain utilities for the Gateway Service.

Includes the pipeline stages (request logging, authentication), client
identity resolution and the terminal handler.
"""

from .auth_middleware import AuthMiddleware
from .client_identity import resolve_client_identity
from .hello import HelloHandler
from .request_logging import RequestLoggingMiddleware

__all__ = [
    "AuthMiddleware",
    "HelloHandler",
    "RequestLoggingMiddleware",
    "resolve_client_identity",
]
