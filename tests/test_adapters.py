"""
anthropic-client - Cloud Adapter Tests

Verifies:
- Bedrock path/body rewriting and signing
- Vertex path/body rewriting and bearer tokens
- Rewrites are applied once per attempt, on every attempt
"""

import json

import httpx
import pytest

from anthropic_client import AsyncAnthropic, RetryPolicy
from anthropic_client.adapters import (
    BEDROCK_VERSION,
    VERTEX_VERSION,
    BedrockConfig,
    BedrockMiddleware,
    VertexConfig,
    VertexMiddleware,
)
from anthropic_client.core.errors import AuthenticationError, MiddlewareFailure
from anthropic_client.core.middleware import MiddlewareChain, MiddlewareContext, RequestEnvelope

from conftest import error_body, message_json


async def ok_terminal(ctx):
    return httpx.Response(200, json={})


def messages_ctx(base_url, body, path="/v1/messages"):
    envelope = RequestEnvelope.for_json("POST", f"{base_url}{path}", body=body, headers={"x-api-key": "sk"})
    return MiddlewareContext(request=envelope)


async def no_sleep(delay):
    return None


class TestBedrock:
    """Test the Bedrock adapter."""

    def test_base_url(self):
        """The runtime endpoint is region-specific."""
        assert BedrockMiddleware("eu-west-1").base_url == "https://bedrock-runtime.eu-west-1.amazonaws.com"

    @pytest.mark.asyncio
    async def test_invoke_rewrite(self):
        """model moves into the path; stream is dropped; version injected."""
        adapter = BedrockMiddleware("us-east-1")
        ctx = messages_ctx(adapter.base_url, {"model": "anthropic.claude-v2", "max_tokens": 10, "stream": False})
        await MiddlewareChain([adapter]).run(ctx, ok_terminal)

        assert ctx.request.path == "/model/anthropic.claude-v2/invoke"
        body = ctx.request.json()
        assert "model" not in body
        assert "stream" not in body
        assert body["anthropic_version"] == BEDROCK_VERSION
        assert body["max_tokens"] == 10
        assert "x-api-key" not in ctx.request.headers

    @pytest.mark.asyncio
    async def test_stream_rewrite(self):
        """A streaming body targets invoke-with-response-stream."""
        adapter = BedrockMiddleware("us-east-1")
        ctx = messages_ctx(adapter.base_url, {"model": "anthropic.claude-v2", "stream": True})
        await MiddlewareChain([adapter]).run(ctx, ok_terminal)
        assert ctx.request.path == "/model/anthropic.claude-v2/invoke-with-response-stream"

    @pytest.mark.asyncio
    async def test_existing_version_kept(self):
        """A caller-supplied anthropic_version is not replaced."""
        adapter = BedrockMiddleware("us-east-1")
        ctx = messages_ctx(adapter.base_url, {"model": "m", "anthropic_version": "custom"})
        await MiddlewareChain([adapter]).run(ctx, ok_terminal)
        assert ctx.request.json()["anthropic_version"] == "custom"

    @pytest.mark.asyncio
    async def test_beta_query_dropped(self):
        """The ?beta=true query does not survive the rewrite."""
        adapter = BedrockMiddleware("us-east-1")
        ctx = messages_ctx(adapter.base_url, {"model": "m"}, path="/v1/messages?beta=true")
        await MiddlewareChain([adapter]).run(ctx, ok_terminal)
        assert ctx.request.url.query == b""

    @pytest.mark.asyncio
    async def test_other_paths_untouched(self):
        """Only message endpoints are rewritten."""
        adapter = BedrockMiddleware("us-east-1")
        envelope = RequestEnvelope("GET", f"{adapter.base_url}/v1/models")
        ctx = MiddlewareContext(request=envelope)
        await MiddlewareChain([adapter]).run(ctx, ok_terminal)
        assert ctx.request.path == "/v1/models"

    @pytest.mark.asyncio
    async def test_rewrite_is_idempotent(self):
        """Running the adapter twice on one envelope changes nothing more."""
        adapter = BedrockMiddleware("us-east-1")
        ctx = messages_ctx(adapter.base_url, {"model": "m"})
        await MiddlewareChain([adapter, adapter]).run(ctx, ok_terminal)
        assert ctx.request.path == "/model/m/invoke"

    @pytest.mark.asyncio
    async def test_signer_sees_final_envelope(self):
        """The signer runs after rewriting; async signers are awaited."""
        signed = []

        async def signer(envelope):
            signed.append((envelope.path, json.loads(envelope.content)))
            envelope.headers["authorization"] = "AWS4-HMAC-SHA256 test"

        adapter = BedrockMiddleware("us-east-1", signer=signer)
        ctx = messages_ctx(adapter.base_url, {"model": "m"})
        await MiddlewareChain([adapter]).run(ctx, ok_terminal)
        assert signed == [("/model/m/invoke", {"anthropic_version": BEDROCK_VERSION})]
        assert ctx.request.headers["authorization"].startswith("AWS4")

    @pytest.mark.asyncio
    async def test_signer_failure_wrapped(self):
        """A signer exception becomes MiddlewareFailure."""
        def signer(envelope):
            raise RuntimeError("expired credentials")

        adapter = BedrockMiddleware("us-east-1", signer=signer)
        with pytest.raises(MiddlewareFailure) as exc_info:
            await MiddlewareChain([adapter]).run(messages_ctx(adapter.base_url, {"model": "m"}), ok_terminal)
        assert exc_info.value.middleware_name == "BedrockMiddleware"

    @pytest.mark.asyncio
    async def test_missing_model_is_adapter_failure(self):
        """A messages body without a model fails inside the adapter."""
        adapter = BedrockMiddleware("us-east-1")
        with pytest.raises(MiddlewareFailure) as exc_info:
            await MiddlewareChain([adapter]).run(messages_ctx(adapter.base_url, {"max_tokens": 1}), ok_terminal)
        assert exc_info.value.middleware_name == "BedrockMiddleware"

    @pytest.mark.asyncio
    async def test_client_retries_resign(self):
        """Every attempt is rewritten and signed again from the original body."""
        requests = []
        signatures = []

        def handler(request):
            requests.append(request)
            if len(requests) == 1:
                return httpx.Response(500, json=error_body("api_error"))
            return httpx.Response(200, json=message_json(model="anthropic.claude-v2"))

        def signer(envelope):
            signatures.append(envelope.path)

        client = BedrockConfig(region="us-east-1", signer=signer).into_client(
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
            retry_policy=RetryPolicy(sleep=no_sleep),
        )
        message = await client.messages.create(
            model="anthropic.claude-v2",
            max_tokens=16,
            messages=[{"role": "user", "content": "hi"}],
        )
        assert message.text() == "Hello!"
        assert [r.url.path for r in requests] == ["/model/anthropic.claude-v2/invoke"] * 2
        assert signatures == ["/model/anthropic.claude-v2/invoke"] * 2
        assert all("x-api-key" not in r.headers for r in requests)
        assert requests[0].url.host == "bedrock-runtime.us-east-1.amazonaws.com"


class TestVertex:
    """Test the Vertex adapter."""

    def test_base_url(self):
        """Regional and global endpoints."""
        assert VertexMiddleware("us-east5", "p", lambda: "t").base_url == "https://us-east5-aiplatform.googleapis.com"
        assert VertexMiddleware("global", "p", lambda: "t").base_url == "https://aiplatform.googleapis.com"

    @pytest.mark.asyncio
    async def test_raw_predict_rewrite(self):
        """model moves into the publisher path; version and bearer token added."""
        adapter = VertexMiddleware("us-east5", "my-project", lambda: "ya29.token")
        ctx = messages_ctx(adapter.base_url, {"model": "claude-sonnet-4-6", "max_tokens": 5, "stream": False})
        await MiddlewareChain([adapter]).run(ctx, ok_terminal)

        assert ctx.request.path == (
            "/v1/projects/my-project/locations/us-east5/publishers/anthropic/models/claude-sonnet-4-6:rawPredict"
        )
        body = ctx.request.json()
        assert "model" not in body
        assert body["anthropic_version"] == VERTEX_VERSION
        assert body["stream"] is False
        assert ctx.request.headers["authorization"] == "Bearer ya29.token"
        assert "x-api-key" not in ctx.request.headers

    @pytest.mark.asyncio
    async def test_stream_raw_predict(self):
        """Streaming bodies target streamRawPredict and keep the stream flag."""
        async def token():
            return "async-token"

        adapter = VertexMiddleware("us-east5", "p", token)
        ctx = messages_ctx(adapter.base_url, {"model": "claude-haiku-4-5", "stream": True})
        await MiddlewareChain([adapter]).run(ctx, ok_terminal)
        assert ctx.request.path.endswith("/models/claude-haiku-4-5:streamRawPredict")
        assert ctx.request.json()["stream"] is True
        assert ctx.request.headers["authorization"] == "Bearer async-token"

    @pytest.mark.asyncio
    async def test_count_tokens(self):
        """count_tokens maps to the count-tokens publisher model; model stays in the body."""
        adapter = VertexMiddleware("us-east5", "p", lambda: "t")
        ctx = messages_ctx(adapter.base_url, {"model": "claude-sonnet-4-6"}, path="/v1/messages/count_tokens")
        await MiddlewareChain([adapter]).run(ctx, ok_terminal)
        assert ctx.request.path.endswith("/publishers/anthropic/models/count-tokens:rawPredict")
        assert ctx.request.json()["model"] == "claude-sonnet-4-6"

    @pytest.mark.asyncio
    async def test_empty_token_rejected(self):
        """An empty token fails the adapter as a MiddlewareFailure carrying the auth error."""
        adapter = VertexMiddleware("us-east5", "p", lambda: "")
        with pytest.raises(MiddlewareFailure) as exc_info:
            await MiddlewareChain([adapter]).run(messages_ctx(adapter.base_url, {"model": "m"}), ok_terminal)
        assert exc_info.value.middleware_name == "VertexMiddleware"
        assert isinstance(exc_info.value.cause, AuthenticationError)

    @pytest.mark.asyncio
    async def test_token_provider_failure_wrapped(self):
        """A token provider exception becomes MiddlewareFailure."""
        def token():
            raise OSError("metadata server unreachable")

        adapter = VertexMiddleware("us-east5", "p", token)
        with pytest.raises(MiddlewareFailure):
            await MiddlewareChain([adapter]).run(messages_ctx(adapter.base_url, {"model": "m"}), ok_terminal)

    @pytest.mark.asyncio
    async def test_client_from_config(self):
        """VertexConfig builds a client that needs no API key."""
        handler_requests = []

        def handler(request):
            handler_requests.append(request)
            return httpx.Response(200, json=message_json())

        client = VertexConfig(region="us-east5", project_id="p", token_provider=lambda: "t").into_client(
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
        assert client.transport.provider == "vertex"
        await client.messages.create(model="sonnet", max_tokens=8, messages=[{"role": "user", "content": "hi"}])
        request = handler_requests[0]
        assert request.url.host == "us-east5-aiplatform.googleapis.com"
        assert request.url.path.endswith("/models/claude-sonnet-4-6:rawPredict")
        assert request.headers["authorization"] == "Bearer t"
