"""
anthropic-client - Pytest Configuration

Provides:
- SSE byte builders and a canonical streamed message
- A client factory backed by ``httpx.MockTransport``
- Metrics singleton reset between tests
"""

import json
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest

from anthropic_client import AsyncAnthropic, RetryPolicy
from anthropic_client.observability.metrics import MetricsCollector


# ============================================================
# SSE helpers
# ============================================================

def sse_frame(event: str, data: Any) -> str:
    """Render one SSE frame; dict data is JSON-encoded."""
    payload = data if isinstance(data, str) else json.dumps(data)
    return f"event: {event}\ndata: {payload}\n\n"


def sse_body(events: List[Tuple[str, Any]]) -> bytes:
    return "".join(sse_frame(name, data) for name, data in events).encode("utf-8")


def message_start(message_id: str = "msg_01", model: str = "claude-sonnet-4-6") -> Dict[str, Any]:
    return {
        "type": "message_start",
        "message": {
            "id": message_id,
            "type": "message",
            "role": "assistant",
            "content": [],
            "model": model,
            "stop_reason": None,
            "stop_sequence": None,
            "usage": {"input_tokens": 10, "output_tokens": 1},
        },
    }


def text_stream_events(*chunks: str, stop_reason: str = "end_turn") -> List[Tuple[str, Any]]:
    """A complete stream with one text block built from ``chunks``."""
    events: List[Tuple[str, Any]] = [
        ("message_start", message_start()),
        ("content_block_start", {"type": "content_block_start", "index": 0, "content_block": {"type": "text", "text": ""}}),
        ("ping", {"type": "ping"}),
    ]
    for chunk in chunks:
        events.append((
            "content_block_delta",
            {"type": "content_block_delta", "index": 0, "delta": {"type": "text_delta", "text": chunk}},
        ))
    events.extend([
        ("content_block_stop", {"type": "content_block_stop", "index": 0}),
        ("message_delta", {
            "type": "message_delta",
            "delta": {"stop_reason": stop_reason, "stop_sequence": None},
            "usage": {"output_tokens": 12},
        }),
        ("message_stop", {"type": "message_stop"}),
    ])
    return events


def message_json(text: str = "Hello!", model: str = "claude-sonnet-4-6") -> Dict[str, Any]:
    return {
        "id": "msg_01",
        "type": "message",
        "role": "assistant",
        "content": [{"type": "text", "text": text}],
        "model": model,
        "stop_reason": "end_turn",
        "stop_sequence": None,
        "usage": {"input_tokens": 5, "output_tokens": 3},
    }


@pytest.fixture
def hi_there_sse() -> bytes:
    """Stream that accumulates to a single "Hi there" text block."""
    return sse_body(text_stream_events("Hi", " there"))


# ============================================================
# Client factory
# ============================================================

async def _no_sleep(delay: float) -> None:
    return None


class RecordingHandler:
    """MockTransport handler that records requests and replays responses in order."""

    def __init__(self, responses: List[Any]):
        self.responses = list(responses)
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            raise AssertionError(f"Unexpected request {request.method} {request.url}")
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(request)
        # a response body can only be streamed once; replay a copy
        return httpx.Response(response.status_code, headers=response.headers, content=response.content)

    @property
    def last_json(self) -> Any:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def make_client() -> Callable[..., Tuple[AsyncAnthropic, RecordingHandler]]:
    """
    Build a client whose HTTP traffic goes to a RecordingHandler.

    Retries never sleep. Extra keyword arguments go to ``AsyncAnthropic``.
    """
    def factory(*responses: Any, max_retries: int = 2, **kwargs: Any):
        handler = RecordingHandler(list(responses))
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        kwargs.setdefault("api_key", "sk-test")
        kwargs.setdefault("base_url", "https://api.test")
        client = AsyncAnthropic(
            http_client=http_client,
            retry_policy=RetryPolicy(max_retries=max_retries, sleep=_no_sleep),
            **kwargs,
        )
        return client, handler

    return factory


@pytest.fixture(autouse=True)
def fresh_metrics():
    """Each test sees an empty metrics registry."""
    MetricsCollector.reset_instance()
    yield
    MetricsCollector.reset_instance()


@pytest.fixture(autouse=True)
def no_env_config(monkeypatch):
    """Keep the developer's ANTHROPIC_* variables out of tests."""
    for name in ("ANTHROPIC_API_KEY", "ANTHROPIC_BASE_URL", "ANTHROPIC_MAX_RETRIES", "ANTHROPIC_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)


def json_response(status: int, body: Any, headers: Optional[Dict[str, str]] = None) -> httpx.Response:
    return httpx.Response(status, json=body, headers=headers)


def error_body(error_type: str, message: str = "boom") -> Dict[str, Any]:
    return {"type": "error", "error": {"type": error_type, "message": message}}
