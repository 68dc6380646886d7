"""
Middleware chain for the Gateway request pipeline.

Stages are plain objects exposing ``handle(request, call_next)``. The chain
is composed once from an ordered list, outermost first, and then invoked
per request. Every stage runs synchronously and returns only after the
downstream stages have returned.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from starlette.datastructures import Headers

from shared.errors import GatewayError


@dataclass(frozen=True)
class PipelineRequest:
    """Read-only view of an inbound request."""

    method: str
    path: str
    headers: Headers
    remote_addr: str = ""

    @classmethod
    def build(cls, method: str, path: str, headers: Optional[Dict[str, str]] = None,
              remote_addr: str = "") -> "PipelineRequest":
        """Build a request from a plain header dict."""
        return cls(method=method, path=path, headers=Headers(headers or {}), remote_addr=remote_addr)


@dataclass
class PipelineResponse:
    """Response produced by exactly one stage of the pipeline."""

    status_code: int = 200
    body: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    media_type: str = "text/plain"

    @classmethod
    def from_error(cls, error: GatewayError) -> "PipelineResponse":
        """Render a rejection as a JSON error response."""
        return cls(
            status_code=error.status_code,
            body=error.to_response().model_dump_json(),
            headers=error.response_headers(),
            media_type="application/json",
        )


Handler = Callable[[PipelineRequest], PipelineResponse]


class Middleware(ABC):
    """A pipeline stage wrapping the remainder of the chain."""

    @abstractmethod
    def handle(self, request: PipelineRequest, call_next: Handler) -> PipelineResponse:
        """Process ``request``, either answering it or delegating to ``call_next``."""


class MiddlewareChain:
    """Ordered, fixed composition of middleware around a terminal handler."""

    def __init__(self, middlewares: Sequence[Middleware], handler: Handler):
        self.middlewares: List[Middleware] = list(middlewares)
        self.handler = handler
        self._entry = self._compose()

    def _compose(self) -> Handler:
        # Built innermost-out so middlewares[0] ends up outermost.
        call_next = self._guard(self.handler)
        for middleware in reversed(self.middlewares):
            call_next = self._guard(self._bind(middleware, call_next))
        return call_next

    @staticmethod
    def _bind(middleware: Middleware, call_next: Handler) -> Handler:
        def invoke(request: PipelineRequest) -> PipelineResponse:
            return middleware.handle(request, call_next)
        return invoke

    @staticmethod
    def _guard(stage: Handler) -> Handler:
        """Turn a GatewayError raised inside ``stage`` into its response."""
        def invoke(request: PipelineRequest) -> PipelineResponse:
            try:
                return stage(request)
            except GatewayError as exc:
                return PipelineResponse.from_error(exc)
        return invoke

    def handle(self, request: PipelineRequest) -> PipelineResponse:
        """Run ``request`` through the full chain."""
        return self._entry(request)

    __call__ = handle
