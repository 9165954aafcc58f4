"""
anthropic-client - Core Module

Transport, resilience and configuration:
- Error taxonomy
- Retry policy with full-jitter backoff and server hints
- Middleware chain around every HTTP attempt
- Transport executor over httpx
"""

from .errors import (
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
    is_retryable_status,
)
from .retry import RetryPolicy, calculate_backoff, parse_retry_after, should_retry_header
from .middleware import (
    BetaHeadersMiddleware,
    DefaultHeadersMiddleware,
    Middleware,
    MiddlewareChain,
    MiddlewareContext,
    RequestEnvelope,
    TracePropagationMiddleware,
)
from .config import ClientConfig
from .http_client import HttpTransport

__all__ = [
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
    "is_retryable_status",
    # Retry
    "RetryPolicy",
    "calculate_backoff",
    "parse_retry_after",
    "should_retry_header",
    # Middleware
    "BetaHeadersMiddleware",
    "DefaultHeadersMiddleware",
    "Middleware",
    "MiddlewareChain",
    "MiddlewareContext",
    "RequestEnvelope",
    "TracePropagationMiddleware",
    # Transport
    "ClientConfig",
    "HttpTransport",
]
