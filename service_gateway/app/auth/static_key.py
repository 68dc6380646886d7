"""
Static shared-secret authentication for the Gateway.
"""

from typing import Mapping

DEFAULT_API_KEY_HEADER = "X-API-Key"


class StaticKeyAuthenticator:
    """Compare a request credential header against one configured secret."""

    def __init__(self, secret: str, header_name: str = DEFAULT_API_KEY_HEADER):
        if not secret:
            raise ValueError("secret must not be empty")
        self.secret = secret
        self.header_name = header_name

    def credential(self, headers: Mapping[str, str]):
        """Return the supplied credential, or None when the header is absent.

        ``headers`` is expected to be a case-insensitive mapping such as
        starlette ``Headers``.
        """
        return headers.get(self.header_name)

    def authenticate(self, headers: Mapping[str, str]) -> bool:
        """Admit iff the credential exactly equals the secret."""
        return self.credential(headers) == self.secret
