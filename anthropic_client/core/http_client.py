"""
anthropic-client - HTTP Transport

Executes API calls over a pooled ``httpx.AsyncClient``:
- Runs the middleware chain around every attempt
- Classifies outcomes into the client's error taxonomy
- Retries through ``RetryPolicy`` (only before a stream body is consumed)
- Per-attempt logging, metrics and tracing spans

The per-attempt timeout is a deadline on the whole attempt for non-streaming
calls (middleware, send and body read). For streaming calls it covers the
response headers and the first body chunk only; later chunks may arrive
after any idle gap.
"""

import asyncio
import json
import time
from typing import Any, AsyncIterator, Awaitable, Iterable, List, Mapping, Optional, TypeVar

import httpx

from .config import DEFAULT_TIMEOUT
from .errors import (
    APIConnectionError,
    APITimeoutError,
    ApiError,
    SerializationFailure,
    TransportFailure,
)
from .middleware import MiddlewareChain, MiddlewareContext, RequestEnvelope
from .retry import RetryPolicy
from ..observability.logging import get_logger, log_context
from ..observability.metrics import get_metrics
from ..observability.tracing import set_response_status, trace_request


T = TypeVar("T")

logger = get_logger(__name__)


def map_transport_error(error: httpx.HTTPError) -> TransportFailure:
    """Translate an httpx failure that produced no response."""
    if isinstance(error, httpx.TimeoutException):
        return APITimeoutError(cause=error)
    return APIConnectionError(str(error) or "Connection error", cause=error)


def api_error_from_response(response: httpx.Response) -> ApiError:
    """
    Build an ``ApiError`` from a fully-read error response.

    Args:
        response: Response with a non-2xx status whose body has been read

    Returns:
        The ``ApiError`` subclass selected by the body's ``error.type``
    """
    text = response.text
    try:
        body: Any = json.loads(text) if text else None
    except ValueError:
        body = None
    return ApiError.from_response(
        status=response.status_code,
        body=body,
        request_id=response.headers.get("request-id"),
        raw_text=text,
        headers=response.headers,
    )


class HttpTransport:
    """
    Transport executor shared by every call of one client.

    Holds no per-call state: each call gets its own attempt counter, its own
    envelope copy per attempt and its own middleware context.

    Example:
        transport = HttpTransport("https://api.anthropic.com", MiddlewareChain([...]))
        envelope = transport.envelope("GET", "/v1/models")
        page = await transport.execute(envelope)
    """

    def __init__(
        self,
        base_url: str,
        middleware: Optional[MiddlewareChain] = None,
        retry_policy: Optional[RetryPolicy] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT,
        provider: str = "anthropic",
    ):
        self.base_url = base_url.rstrip("/")
        self.middleware = middleware or MiddlewareChain()
        self.retry_policy = retry_policy or RetryPolicy()
        self.provider = provider
        self.timeout = timeout
        # reads are bounded by the attempt deadline, not per chunk
        self._http_timeout = httpx.Timeout(timeout, connect=min(timeout, 10.0), read=None)
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=self._http_timeout)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def envelope(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> RequestEnvelope:
        """Envelope for ``path`` relative to the base URL."""
        url = httpx.URL(f"{self.base_url}/{path.lstrip('/')}")
        if params:
            url = url.copy_merge_params({k: v for k, v in params.items() if v is not None})
        return RequestEnvelope.for_json(method, url, body=body, headers=headers)

    async def execute(
        self,
        envelope: RequestEnvelope,
        betas: Optional[Iterable[str]] = None,
    ) -> Any:
        """
        Run a non-streaming call and return its decoded JSON body.

        Raises:
            ApiError: Non-retryable API error
            RetriesExhausted: Retryable failures persisted past the budget
            SerializationFailure: The success body is not JSON
            MiddlewareFailure: A middleware's own code failed
        """
        beta_flags = list(betas or [])

        async def attempt(n: int) -> Any:
            response = await self._attempt(envelope, n, beta_flags, stream=False)
            try:
                await response.aread()
            except httpx.HTTPError as e:
                raise map_transport_error(e) from e
            finally:
                await response.aclose()
            return self._decode_body(response)

        return await self.retry_policy.execute_async(lambda n: self._within_deadline(attempt(n)))

    async def execute_stream(
        self,
        envelope: RequestEnvelope,
        betas: Optional[Iterable[str]] = None,
    ) -> httpx.Response:
        """
        Run a streaming call and return the open response.

        Retries cover everything up to a successful status line and the first
        body chunk; once the response is returned its body belongs to the
        caller, who must close it.
        """
        beta_flags = list(betas or [])

        async def attempt(n: int) -> httpx.Response:
            return await self._within_deadline(self._open_stream(envelope, n, beta_flags))

        return await self.retry_policy.execute_async(attempt)

    async def _open_stream(self, envelope: RequestEnvelope, attempt: int, betas: List[str]) -> httpx.Response:
        response = await self._attempt(envelope, attempt, betas, stream=True)
        raw = response.aiter_raw()
        try:
            first = await raw.__anext__()
        except StopAsyncIteration:
            first = b""
        except httpx.HTTPError as e:
            await response.aclose()
            raise map_transport_error(e) from e
        except BaseException:
            await response.aclose()
            raise
        return httpx.Response(
            response.status_code,
            headers=response.headers,
            stream=_PrefetchedStream(first, raw, response),
            request=response.request,
            extensions=response.extensions,
        )

    async def _within_deadline(self, operation: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(operation, self.timeout)
        except asyncio.TimeoutError as e:
            logger.debug("Attempt deadline exceeded", timeout=self.timeout)
            raise APITimeoutError(f"Request timed out after {self.timeout}s", cause=e) from e

    async def _attempt(
        self,
        envelope: RequestEnvelope,
        attempt: int,
        betas: List[str],
        stream: bool,
    ) -> httpx.Response:
        ctx = MiddlewareContext(
            request=envelope.copy(),
            provider=self.provider,
            betas=list(betas),
            attempt=attempt,
            stream=stream,
        )
        method = envelope.method
        metrics = get_metrics()
        start = time.perf_counter()

        with log_context(method=method, path=envelope.path, attempt=attempt), \
                trace_request(method, envelope.path, attempt, {"anthropic.stream": stream}) as span:
            logger.debug("Sending request", stream=stream)
            try:
                response = await self.middleware.run(ctx, self._send)
            except TransportFailure as e:
                metrics.record_request(method, type(e).__name__, time.perf_counter() - start)
                logger.debug("Request failed without a response", error=repr(e))
                raise

            elapsed = time.perf_counter() - start
            set_response_status(span, response.status_code)
            metrics.record_request(method, response.status_code, elapsed)

            if response.is_success:
                logger.debug(
                    "Response received",
                    status=response.status_code,
                    duration_ms=round(elapsed * 1000, 2),
                    request_id=response.headers.get("request-id", ""),
                )
                return response

            try:
                await response.aread()
            except httpx.HTTPError as e:
                raise map_transport_error(e) from e
            finally:
                await response.aclose()

            error = api_error_from_response(response)
            span.set_attribute("anthropic.error_type", error.discriminant)
            logger.debug(
                "API error response",
                status=response.status_code,
                error_type=error.discriminant,
                request_id=error.request_id or "",
            )
            raise error

    async def _send(self, ctx: MiddlewareContext) -> httpx.Response:
        request = ctx.request.build(self._client, timeout=self._http_timeout)
        try:
            return await self._client.send(request, stream=True)
        except httpx.HTTPError as e:
            raise map_transport_error(e) from e

    @staticmethod
    def _decode_body(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise SerializationFailure(
                f"Response body is not valid JSON (status {response.status_code})",
                payload=response.text,
                cause=e,
            ) from e


class _PrefetchedStream(httpx.AsyncByteStream):
    """Response body whose first chunk was read while the deadline applied."""

    def __init__(self, first: bytes, rest: AsyncIterator[bytes], response: httpx.Response):
        self._first = first
        self._rest = rest
        self._response = response

    async def __aiter__(self) -> AsyncIterator[bytes]:
        if self._first:
            yield self._first
        async for chunk in self._rest:
            yield chunk

    async def aclose(self) -> None:
        await self._rest.aclose()  # type: ignore[attr-defined]
        await self._response.aclose()
