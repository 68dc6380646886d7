"""
Authentication helpers for the Access Gateway service.
"""

from .static_key import StaticKeyAuthenticator

__all__ = [
    "StaticKeyAuthenticator",
]
