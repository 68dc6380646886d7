"""
Client identity resolution for the Gateway.

The identity is the caller IP address, taken from trust headers when a proxy
supplied them. Header values are not validated or checked against a proxy
allowlist, so a client talking to the gateway directly can spoof them.
"""

from typing import Mapping

REAL_IP_HEADER = "X-Real-IP"
FORWARDED_FOR_HEADER = "X-Forwarded-For"


def resolve_client_identity(headers: Mapping[str, str], remote_addr: str) -> str:
    """Extract the caller IP from trust headers or the connection address.

    ``headers`` must do case-insensitive lookups (starlette ``Headers``).
    Precedence: ``X-Real-IP`` as-is, then the leftmost non-empty entry of
    ``X-Forwarded-For``, then ``remote_addr`` with its ``:port`` suffix cut.
    """
    real_ip = headers.get(REAL_IP_HEADER)
    if real_ip:
        return real_ip

    forwarded_for = headers.get(FORWARDED_FOR_HEADER)
    if forwarded_for:
        for candidate in forwarded_for.split(","):
            candidate = candidate.strip()
            if candidate:
                return candidate

    return remote_addr.split(":", 1)[0]
