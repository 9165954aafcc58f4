"""
anthropic-client - Cloud Adapter Base

Cloud providers host the Messages API behind their own URL scheme and
authentication. An adapter is a middleware that rewrites the Anthropic-shaped
envelope (``POST /v1/messages`` with ``model`` in the body) into the
provider's shape and authenticates it.

Adapters should be the innermost middleware so that authentication (request
signing in particular) sees the final envelope.
"""

import inspect
from abc import abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Union
from urllib.parse import quote

import httpx

from ..core.errors import AnthropicError
from ..core.middleware import CallNext, Middleware, MiddlewareContext, RequestEnvelope


MESSAGES_PATH = "/v1/messages"
COMPLETE_PATH = "/v1/complete"
COUNT_TOKENS_PATH = "/v1/messages/count_tokens"


async def maybe_await(value: Union[Any, Awaitable[Any]]) -> Any:
    """Await ``value`` if a capability returned an awaitable."""
    if inspect.isawaitable(value):
        return await value
    return value


def quote_segment(value: str) -> str:
    """Percent-encode one path segment (model ids may contain ``:``)."""
    return quote(value, safe="")


@dataclass
class RewriteResult:
    """Outcome of moving ``model`` out of the body."""
    model: str
    stream: bool
    body: Dict[str, Any]


class CloudAdapter(Middleware):
    """
    Base class for provider adapters.

    Subclasses implement ``rewrite`` (URL and body shape) and ``authenticate``
    (credentials). Both run on the attempt's own envelope copy, so they run
    again on every retry.
    """

    provider: str = "anthropic"
    anthropic_version: str = ""
    supplies_auth = True

    @property
    @abstractmethod
    def base_url(self) -> str:
        """Scheme and host the client should target."""

    @abstractmethod
    def rewrite(self, envelope: RequestEnvelope) -> None:
        """Reshape an Anthropic-style envelope for this provider."""

    @abstractmethod
    async def authenticate(self, envelope: RequestEnvelope) -> None:
        """Attach provider credentials to the envelope."""

    async def handle(self, ctx: MiddlewareContext, call_next: CallNext) -> httpx.Response:
        envelope = ctx.request
        envelope.headers.pop("x-api-key", None)
        self.rewrite(envelope)
        await self.authenticate(envelope)
        return await call_next(ctx)

    def inject_version(self, envelope: RequestEnvelope) -> Optional[Dict[str, Any]]:
        """Add ``anthropic_version`` to a JSON object body when absent; returns the body."""
        body = envelope.json() if envelope.content else None
        if not isinstance(body, dict):
            return None
        if "anthropic_version" not in body:
            body["anthropic_version"] = self.anthropic_version
            envelope.set_json(body)
        return body

    @staticmethod
    def take_model(envelope: RequestEnvelope, body: Dict[str, Any], keep_stream: bool) -> RewriteResult:
        """Remove ``model`` (and unless ``keep_stream``, ``stream``) from the body."""
        model = body.pop("model", None)
        if not isinstance(model, str) or not model:
            raise AnthropicError(f"{envelope.method} {envelope.path} requires a model in the request body")
        stream = bool(body.get("stream", False))
        if not keep_stream:
            body.pop("stream", None)
        envelope.set_json(body)
        return RewriteResult(model=model, stream=stream, body=body)

    @staticmethod
    def set_path(envelope: RequestEnvelope, path: str) -> None:
        """Replace the URL path, dropping any query string."""
        envelope.url = envelope.url.join(path)


TokenProvider = Callable[[], Union[str, Awaitable[str]]]
Signer = Callable[[RequestEnvelope], Union[None, Awaitable[None]]]
