"""
anthropic-client - Middleware Chain

Ordered request/response rewriting around the transport call.

A middleware receives the call's ``MiddlewareContext`` and ``call_next``,
the rest of the chain (ending in the HTTP send). It may rewrite the envelope
before calling ``call_next``, inspect the response after, or return its own
response without calling ``call_next``. The first registered middleware is
the outermost.

The transport runs the whole chain again for every retry attempt, each time
on a fresh copy of the original envelope, so a middleware must not assume it
runs once per logical call.

Usage:
    class Tagging(Middleware):
        async def handle(self, ctx, call_next):
            ctx.request.headers["x-tag"] = "demo"
            return await call_next(ctx)

    chain = MiddlewareChain([DefaultHeadersMiddleware(api_key="sk-..."), Tagging()])
    response = await chain.run(ctx, send)
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union

import httpx

from .errors import MiddlewareFailure
from ..observability.tracing import inject_trace_context


API_VERSION = "2023-06-01"


class RequestEnvelope:
    """
    One outgoing request: method, URL, headers and serialized JSON body.

    Owned by a single in-flight attempt; middleware mutates it in place.
    """

    def __init__(
        self,
        method: str,
        url: Union[str, httpx.URL],
        headers: Optional[Mapping[str, str]] = None,
        content: bytes = b"",
    ):
        self.method = method.upper()
        self.url = httpx.URL(url)
        self.headers = httpx.Headers(headers)
        self.content = content

    @classmethod
    def for_json(
        cls,
        method: str,
        url: Union[str, httpx.URL],
        body: Any = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> "RequestEnvelope":
        envelope = cls(method, url, headers)
        if body is not None:
            envelope.set_json(body)
        return envelope

    @property
    def path(self) -> str:
        return self.url.path

    def json(self) -> Any:
        """Decoded body, or None for an empty body."""
        if not self.content:
            return None
        return json.loads(self.content)

    def set_json(self, body: Any) -> None:
        self.content = json.dumps(body, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
        self.headers["content-type"] = "application/json"

    def copy(self) -> "RequestEnvelope":
        return RequestEnvelope(self.method, self.url, self.headers, self.content)

    def build(self, client: httpx.AsyncClient, timeout: Any = None) -> httpx.Request:
        """Materialize the envelope as an ``httpx.Request`` on ``client``."""
        kwargs: Dict[str, Any] = {}
        if timeout is not None:
            kwargs["timeout"] = timeout
        return client.build_request(
            self.method,
            self.url,
            headers=self.headers,
            content=self.content or None,
            **kwargs,
        )

    def __repr__(self) -> str:
        return f"RequestEnvelope(method={self.method!r}, url={str(self.url)!r})"


@dataclass
class MiddlewareContext:
    """
    Mutable view over one attempt's envelope plus call metadata.

    Attributes:
        request: The envelope being sent
        provider: Target provider (``anthropic``, ``bedrock``, ``vertex``)
        betas: Beta feature flags requested for this call
        attempt: 0-based attempt number
        stream: Whether the call expects an SSE response
        metadata: Free-form per-call values shared between middlewares
    """
    request: RequestEnvelope
    provider: str = "anthropic"
    betas: List[str] = field(default_factory=list)
    attempt: int = 0
    stream: bool = False
    metadata: Dict[str, Any] = field(default_factory=dict)


CallNext = Callable[[MiddlewareContext], Awaitable[httpx.Response]]
MiddlewareFunc = Callable[[MiddlewareContext, CallNext], Awaitable[httpx.Response]]


class Middleware(ABC):
    """Base class for request middleware."""

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    async def handle(self, ctx: MiddlewareContext, call_next: CallNext) -> httpx.Response:
        """Process the request, usually by delegating to ``call_next``."""

    async def __call__(self, ctx: MiddlewareContext, call_next: CallNext) -> httpx.Response:
        return await self.handle(ctx, call_next)


def _middleware_name(middleware: Any) -> str:
    if isinstance(middleware, Middleware):
        return middleware.name
    return getattr(middleware, "__qualname__", None) or type(middleware).__name__


class MiddlewareChain:
    """
    Composes middlewares outermost-first around a terminal call.

    Errors raised by inner stages propagate unchanged. Any exception raised
    by a middleware's own code, client errors included, is wrapped in
    ``MiddlewareFailure`` and is never retried.
    """

    def __init__(self, middlewares: Optional[Iterable[Union[Middleware, MiddlewareFunc]]] = None):
        self._middlewares: List[Union[Middleware, MiddlewareFunc]] = list(middlewares or [])

    def __len__(self) -> int:
        return len(self._middlewares)

    @property
    def middlewares(self) -> Sequence[Union[Middleware, MiddlewareFunc]]:
        return tuple(self._middlewares)

    def add(self, middleware: Union[Middleware, MiddlewareFunc]) -> "MiddlewareChain":
        """Append an innermost middleware."""
        self._middlewares.append(middleware)
        return self

    def extended(self, middlewares: Iterable[Union[Middleware, MiddlewareFunc]]) -> "MiddlewareChain":
        """New chain with ``middlewares`` appended inside this chain's."""
        return MiddlewareChain([*self._middlewares, *middlewares])

    async def run(self, ctx: MiddlewareContext, terminal: CallNext) -> httpx.Response:
        return await self._dispatch(0, ctx, terminal)

    async def _dispatch(self, index: int, ctx: MiddlewareContext, terminal: CallNext) -> httpx.Response:
        if index >= len(self._middlewares):
            return await terminal(ctx)

        middleware = self._middlewares[index]
        inner_errors: List[BaseException] = []

        async def call_next(next_ctx: MiddlewareContext) -> httpx.Response:
            try:
                return await self._dispatch(index + 1, next_ctx, terminal)
            except BaseException as e:
                inner_errors.append(e)
                raise

        try:
            return await middleware(ctx, call_next)
        except Exception as e:
            if any(e is inner for inner in inner_errors):
                raise
            raise MiddlewareFailure(_middleware_name(middleware), e) from e


# ============================================================
# Built-in middleware
# ============================================================

class DefaultHeadersMiddleware(Middleware):
    """
    Injects the API version, content type, API key and caller defaults.

    Headers already present on the envelope win over these defaults.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_version: str = API_VERSION,
        user_agent: Optional[str] = None,
        default_headers: Optional[Mapping[str, str]] = None,
    ):
        self.api_key = api_key
        self.api_version = api_version
        self.user_agent = user_agent
        self.default_headers = dict(default_headers or {})

    async def handle(self, ctx: MiddlewareContext, call_next: CallNext) -> httpx.Response:
        headers = ctx.request.headers
        headers.setdefault("anthropic-version", self.api_version)
        headers.setdefault("content-type", "application/json")
        headers.setdefault("accept", "application/json")
        if self.api_key:
            headers.setdefault("x-api-key", self.api_key)
        if self.user_agent:
            headers.setdefault("user-agent", self.user_agent)
        for key, value in self.default_headers.items():
            headers.setdefault(key, value)
        return await call_next(ctx)


def merge_betas(*groups: Iterable[str]) -> List[str]:
    """Flatten beta flag groups, splitting comma lists, keeping first-seen order."""
    merged: List[str] = []
    for group in groups:
        for entry in group:
            for flag in entry.split(","):
                flag = flag.strip()
                if flag and flag not in merged:
                    merged.append(flag)
    return merged


class BetaHeadersMiddleware(Middleware):
    """
    Sets ``anthropic-beta`` from client-level and per-call beta flags.

    Flags already on the envelope are kept; duplicates are dropped.
    """

    def __init__(self, betas: Optional[Iterable[str]] = None):
        self.betas = list(betas or [])

    async def handle(self, ctx: MiddlewareContext, call_next: CallNext) -> httpx.Response:
        existing = ctx.request.headers.get_list("anthropic-beta")
        flags = merge_betas(existing, self.betas, ctx.betas)
        if flags:
            ctx.request.headers["anthropic-beta"] = ",".join(flags)
        return await call_next(ctx)


class TracePropagationMiddleware(Middleware):
    """Adds W3C ``traceparent``/``tracestate`` for the active span, if any."""

    async def handle(self, ctx: MiddlewareContext, call_next: CallNext) -> httpx.Response:
        carrier: Dict[str, str] = {}
        inject_trace_context(carrier)
        for key, value in carrier.items():
            ctx.request.headers[key] = value
        return await call_next(ctx)
