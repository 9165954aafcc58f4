"""
anthropic-client - Error Classes

Every public call either returns a fully-typed value or raises one of the
errors below.

Taxonomy:
- TransportFailure: connection/timeout failures (retryable)
- ApiError: HTTP error responses and in-stream ``error`` events; the concrete
  subclass is selected by the error body's ``type`` discriminant
- SerializationFailure: payload matched none of the expected shapes
- StreamProtocolViolation: stream events arrived out of order
- RetriesExhausted: retry budget spent, wraps the last failure
- MiddlewareFailure: a middleware's own code failed (never retried)
"""

from typing import Any, Dict, Mapping, Optional, Type


class AnthropicError(Exception):
    """
    Base exception for the client.

    Attributes:
        message: Human-readable error message
        retryable: Whether the retry policy may retry this failure
    """

    retryable: bool = False

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r})"


# ============================================================
# Transport
# ============================================================

class TransportFailure(AnthropicError):
    """The request never produced an HTTP response."""

    retryable = True

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class APIConnectionError(TransportFailure):
    """Connection could not be established or was reset."""

    def __init__(self, message: str = "Connection error", cause: Optional[BaseException] = None):
        super().__init__(message, cause=cause)


class APITimeoutError(TransportFailure):
    """The attempt exceeded its timeout."""

    def __init__(self, message: str = "Request timed out", cause: Optional[BaseException] = None):
        super().__init__(message, cause=cause)


# ============================================================
# API errors
# ============================================================

def is_retryable_status(status: Optional[int]) -> bool:
    """Retryable statuses: 408, 409, 429 and any 5xx."""
    if status is None:
        return False
    return status in (408, 409, 429) or status >= 500


class ApiError(AnthropicError):
    """
    The API answered with an error.

    Attributes:
        status: HTTP status code (None for errors delivered inside a stream)
        discriminant: The error body's ``type`` field
        request_id: Value of the ``request-id`` response header
        body: The decoded error body, when the body was JSON
        headers: Response headers, consulted for retry hints
    """

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        discriminant: str = "api_error",
        request_id: Optional[str] = None,
        body: Optional[Any] = None,
        headers: Optional[Mapping[str, str]] = None,
    ):
        super().__init__(message)
        self.status = status
        self.discriminant = discriminant
        self.request_id = request_id
        self.body = body
        self.headers = headers

    @property
    def retryable(self) -> bool:  # type: ignore[override]
        return is_retryable_status(self.status)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"status={self.status}, "
            f"discriminant={self.discriminant!r}, "
            f"message={self.message!r})"
        )

    def __str__(self) -> str:
        prefix = f"{self.status} " if self.status is not None else ""
        return f"{prefix}{self.discriminant}: {self.message}"

    @classmethod
    def from_response(
        cls,
        status: Optional[int],
        body: Any,
        request_id: Optional[str] = None,
        raw_text: str = "",
        headers: Optional[Mapping[str, str]] = None,
    ) -> "ApiError":
        """
        Build the error for a decoded error body.

        The nested ``error.type`` selects the subclass; a body that is not a
        well-formed error envelope yields the base class with discriminant
        ``unknown_error`` and the raw text as message.
        """
        error = body.get("error") if isinstance(body, dict) else None
        if not isinstance(error, dict) or not isinstance(error.get("type"), str):
            return cls(
                message=raw_text or f"HTTP {status}",
                status=status,
                discriminant="unknown_error",
                request_id=request_id,
                body=body,
                headers=headers,
            )

        discriminant = error["type"]
        error_class = ERROR_CLASSES.get(discriminant, ApiError)
        return error_class(
            message=str(error.get("message", "")),
            status=status,
            discriminant=discriminant,
            request_id=request_id,
            body=body,
            headers=headers,
        )


class InvalidRequestError(ApiError):
    """400: malformed request or invalid parameters."""


class AuthenticationError(ApiError):
    """401: missing or invalid API key."""

    def __init__(self, message: str = "Invalid or missing API key", **kwargs: Any):
        kwargs.setdefault("status", 401)
        kwargs.setdefault("discriminant", "authentication_error")
        super().__init__(message, **kwargs)


class PermissionDeniedError(ApiError):
    """403: the key may not use this resource."""


class NotFoundError(ApiError):
    """404: resource does not exist."""


class RequestTooLargeError(ApiError):
    """413: request exceeds the size limit."""


class RateLimitError(ApiError):
    """429: rate limit exceeded."""


class InternalServerError(ApiError):
    """5xx ``api_error``: unexpected server failure."""


class OverloadedError(ApiError):
    """529 ``overloaded_error``: the API is temporarily overloaded."""


ERROR_CLASSES: Dict[str, Type[ApiError]] = {
    "invalid_request_error": InvalidRequestError,
    "authentication_error": AuthenticationError,
    "permission_error": PermissionDeniedError,
    "not_found_error": NotFoundError,
    "request_too_large": RequestTooLargeError,
    "rate_limit_error": RateLimitError,
    "api_error": InternalServerError,
    "overloaded_error": OverloadedError,
}


# ============================================================
# Decoding / protocol
# ============================================================

class SerializationFailure(AnthropicError):
    """
    A payload did not match any expected shape.

    Attributes:
        payload: The offending value (raw text or decoded JSON)
        cause: Underlying parser/validation error
    """

    def __init__(self, message: str, payload: Any = None, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.payload = payload
        self.cause = cause


class StreamProtocolViolation(AnthropicError):
    """Stream events arrived in an order the message state machine rejects."""

    def __init__(self, message: str, event_type: Optional[str] = None):
        super().__init__(message)
        self.event_type = event_type


# ============================================================
# Resilience / middleware
# ============================================================

class RetriesExhausted(AnthropicError):
    """
    The retry budget was spent.

    Attributes:
        last_error: The failure observed on the final attempt
        attempts: Total number of attempts made
    """

    def __init__(self, last_error: AnthropicError, attempts: int):
        super().__init__(f"Retries exhausted after {attempts} attempt(s): {last_error}")
        self.last_error = last_error
        self.attempts = attempts

    def __repr__(self) -> str:
        return f"RetriesExhausted(attempts={self.attempts}, last_error={self.last_error!r})"


class MiddlewareFailure(AnthropicError):
    """A middleware's own code raised (e.g. signing failed)."""

    def __init__(self, middleware_name: str, cause: BaseException):
        super().__init__(f"Middleware {middleware_name} failed: {cause}")
        self.middleware_name = middleware_name
        self.cause = cause


def is_retryable_error(error: Any) -> bool:
    """
    Check if an error is retryable.

    Transport failures and API errors with status 408, 409, 429 or 5xx are
    retryable. Everything else is not.
    """
    if isinstance(error, AnthropicError):
        return bool(error.retryable)
    return False
