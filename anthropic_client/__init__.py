"""
anthropic-client - Typed async client for the Anthropic Messages API

Quick start:
    from anthropic_client import AsyncAnthropic

    async with AsyncAnthropic() as client:
        message = await client.messages.create(
            model="claude-sonnet-4-6",
            max_tokens=1024,
            messages=[{"role": "user", "content": "Hello"}],
        )
"""

from ._version import __version__
from .core.errors import (
    AnthropicError,
    APIConnectionError,
    APITimeoutError,
    ApiError,
    AuthenticationError,
    InternalServerError,
    InvalidRequestError,
    MiddlewareFailure,
    NotFoundError,
    OverloadedError,
    PermissionDeniedError,
    RateLimitError,
    RequestTooLargeError,
    RetriesExhausted,
    SerializationFailure,
    StreamProtocolViolation,
    TransportFailure,
    is_retryable_error,
)
from .core.config import ClientConfig
from .core.middleware import Middleware, MiddlewareChain, MiddlewareContext, RequestEnvelope
from .core.retry import RetryPolicy
from .types import Message, Model, StopReason
from .streaming import MessageAccumulator, MessageStream, SseDecoder, StreamEventDispatcher
from .adapters import (
    BedrockConfig,
    BedrockMiddleware,
    OAuthConfig,
    OAuthMiddleware,
    OAuthTokens,
    VertexConfig,
    VertexMiddleware,
)
from .client import AsyncAnthropic

__all__ = [
    "__version__",
    # Client
    "AsyncAnthropic",
    "ClientConfig",
    "RetryPolicy",
    # Middleware
    "Middleware",
    "MiddlewareChain",
    "MiddlewareContext",
    "RequestEnvelope",
    "BedrockConfig",
    "BedrockMiddleware",
    "OAuthConfig",
    "OAuthMiddleware",
    "OAuthTokens",
    "VertexConfig",
    "VertexMiddleware",
    # Types
    "Message",
    "Model",
    "StopReason",
    # Streaming
    "MessageAccumulator",
    "MessageStream",
    "SseDecoder",
    "StreamEventDispatcher",
    # Errors
    "AnthropicError",
    "APIConnectionError",
    "APITimeoutError",
    "ApiError",
    "AuthenticationError",
    "InternalServerError",
    "InvalidRequestError",
    "MiddlewareFailure",
    "NotFoundError",
    "OverloadedError",
    "PermissionDeniedError",
    "RateLimitError",
    "RequestTooLargeError",
    "RetriesExhausted",
    "SerializationFailure",
    "StreamProtocolViolation",
    "TransportFailure",
    "is_retryable_error",
]
