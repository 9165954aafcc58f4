"""
anthropic-client - Error Taxonomy Tests

Verifies:
- Error bodies select the ApiError subclass by discriminant
- Malformed error bodies fall back to unknown_error with the raw text
- Retryability by status and error kind
"""

import httpx
import pytest

from anthropic_client.core.errors import (
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
    RateLimitError,
    RetriesExhausted,
    SerializationFailure,
    StreamProtocolViolation,
    is_retryable_error,
    is_retryable_status,
)
from anthropic_client.core.http_client import api_error_from_response, map_transport_error


# ============================================================
# Classification
# ============================================================

class TestApiErrorFromResponse:
    """Test building ApiError from error bodies."""

    @pytest.mark.parametrize("discriminant,expected", [
        ("invalid_request_error", InvalidRequestError),
        ("authentication_error", AuthenticationError),
        ("not_found_error", NotFoundError),
        ("rate_limit_error", RateLimitError),
        ("api_error", InternalServerError),
        ("overloaded_error", OverloadedError),
    ])
    def test_discriminant_selects_subclass(self, discriminant, expected):
        """The nested error.type picks the subclass."""
        body = {"type": "error", "error": {"type": discriminant, "message": "nope"}}
        error = ApiError.from_response(status=400, body=body, request_id="req_1")
        assert isinstance(error, expected)
        assert error.discriminant == discriminant
        assert error.message == "nope"
        assert error.request_id == "req_1"

    def test_unrecognized_discriminant_keeps_base_class(self):
        """A new error type is preserved on the base class."""
        body = {"type": "error", "error": {"type": "brand_new_error", "message": "hm"}}
        error = ApiError.from_response(status=418, body=body)
        assert type(error) is ApiError
        assert error.discriminant == "brand_new_error"

    def test_malformed_body_is_unknown_error(self):
        """A body without an error envelope keeps the raw text as message."""
        error = ApiError.from_response(status=502, body=None, raw_text="<html>Bad Gateway</html>")
        assert error.discriminant == "unknown_error"
        assert error.message == "<html>Bad Gateway</html>"
        assert error.status == 502

    def test_empty_malformed_body_uses_status(self):
        """No body at all still yields a readable message."""
        error = ApiError.from_response(status=503, body=None)
        assert error.message == "HTTP 503"

    def test_from_httpx_response_reads_request_id(self):
        """request-id header is recorded on the error."""
        response = httpx.Response(
            404,
            json={"type": "error", "error": {"type": "not_found_error", "message": "missing"}},
            headers={"request-id": "req_abc"},
        )
        error = api_error_from_response(response)
        assert isinstance(error, NotFoundError)
        assert error.request_id == "req_abc"
        assert error.status == 404

    def test_from_httpx_response_non_json(self):
        """Non-JSON error bodies become unknown_error."""
        response = httpx.Response(500, text="internal oops")
        error = api_error_from_response(response)
        assert error.discriminant == "unknown_error"
        assert error.message == "internal oops"

    def test_str_includes_status_and_discriminant(self):
        """str() reads as 'status discriminant: message'."""
        error = ApiError("slow down", status=429, discriminant="rate_limit_error")
        assert str(error) == "429 rate_limit_error: slow down"


# ============================================================
# Retryability
# ============================================================

class TestRetryability:
    """Test which failures are retryable."""

    @pytest.mark.parametrize("status", [408, 409, 429, 500, 502, 503, 529])
    def test_retryable_statuses(self, status):
        """408, 409, 429 and 5xx are retryable."""
        assert is_retryable_status(status) is True
        assert ApiError("x", status=status).retryable is True

    @pytest.mark.parametrize("status", [400, 401, 403, 404, 413, 422])
    def test_non_retryable_statuses(self, status):
        """Other 4xx statuses are not retryable."""
        assert is_retryable_status(status) is False
        assert is_retryable_error(ApiError("x", status=status)) is False

    def test_stream_error_without_status_not_retryable(self):
        """Errors delivered inside a stream carry no status and are not retried."""
        assert is_retryable_status(None) is False

    def test_transport_failures_retryable(self):
        """Connection and timeout failures are retryable."""
        assert is_retryable_error(APIConnectionError()) is True
        assert is_retryable_error(APITimeoutError()) is True

    def test_local_failures_not_retryable(self):
        """Serialization, protocol and middleware failures are never retried."""
        assert is_retryable_error(SerializationFailure("bad")) is False
        assert is_retryable_error(StreamProtocolViolation("order")) is False
        assert is_retryable_error(MiddlewareFailure("Signer", RuntimeError("x"))) is False

    def test_non_client_errors_not_retryable(self):
        """Arbitrary exceptions are not retryable."""
        assert is_retryable_error(ValueError("x")) is False

    def test_map_timeout(self):
        """httpx timeouts map to APITimeoutError."""
        error = map_transport_error(httpx.ReadTimeout("slow"))
        assert isinstance(error, APITimeoutError)
        assert isinstance(error.cause, httpx.ReadTimeout)

    def test_map_connect_error(self):
        """Other httpx failures map to APIConnectionError."""
        error = map_transport_error(httpx.ConnectError("refused"))
        assert isinstance(error, APIConnectionError)


class TestErrorAttributes:
    """Test error payloads."""

    def test_retries_exhausted_keeps_last_error(self):
        """RetriesExhausted carries the final error and attempt count."""
        last = RateLimitError("slow down", status=429, discriminant="rate_limit_error")
        error = RetriesExhausted(last, attempts=3)
        assert error.last_error is last
        assert error.attempts == 3
        assert isinstance(error, AnthropicError)

    def test_middleware_failure_names_middleware(self):
        """MiddlewareFailure names the failing middleware and keeps the cause."""
        cause = RuntimeError("signer down")
        error = MiddlewareFailure("BedrockMiddleware", cause)
        assert error.middleware_name == "BedrockMiddleware"
        assert error.cause is cause

    def test_authentication_error_defaults(self):
        """AuthenticationError defaults to a 401 authentication_error."""
        error = AuthenticationError()
        assert error.status == 401
        assert error.discriminant == "authentication_error"
