"""
anthropic-client - Observability Tests

Tests for the observability stack:
- Prometheus metrics
- OpenTelemetry tracing
- Structured logging
"""

import json
import logging
from unittest.mock import patch

import httpx
import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import StatusCode
from prometheus_client import REGISTRY, CollectorRegistry

from anthropic_client.observability.logging import (
    JSONFormatter,
    LogContext,
    get_logger,
    log_context,
    setup_logging,
)
from anthropic_client.observability.metrics import MetricsCollector, get_metrics
from anthropic_client.observability.tracing import (
    inject_trace_context,
    set_response_status,
    trace_request,
)

from conftest import error_body


# ============================================================
# Metrics Tests
# ============================================================

class TestMetricsCollector:
    """Tests for MetricsCollector."""

    @pytest.fixture
    def metrics(self):
        """Create a metrics collector with fresh registry."""
        return MetricsCollector(registry=CollectorRegistry())

    def test_record_request(self, metrics):
        """Test recording a request."""
        metrics.record_request(method="POST", status=200, duration_seconds=1.5)

        assert metrics.registry.get_sample_value(
            "anthropic_client_requests_total", {"method": "POST", "status": "200"},
        ) == 1.0
        assert metrics.registry.get_sample_value(
            "anthropic_client_request_duration_seconds_sum", {"method": "POST"},
        ) == 1.5

    def test_record_retry_and_events(self, metrics):
        """Retries and stream events are counted by label."""
        metrics.record_retry("429")
        metrics.record_retry("429")
        metrics.record_stream_event("content_block_delta")

        assert metrics.registry.get_sample_value(
            "anthropic_client_retries_total", {"reason": "429"},
        ) == 2.0
        assert metrics.registry.get_sample_value(
            "anthropic_client_stream_events_total", {"type": "content_block_delta"},
        ) == 1.0

    def test_export_text_format(self, metrics):
        """export renders the Prometheus text format."""
        metrics.record_request(method="GET", status="connection_error", duration_seconds=0.1)
        output = metrics.export().decode()
        assert 'anthropic_client_requests_total{method="GET",status="connection_error"} 1.0' in output

    def test_global_registry_untouched(self):
        """Collectors never register on the process-global registry."""
        get_metrics().record_request(method="POST", status=200, duration_seconds=0.2)
        assert REGISTRY.get_sample_value(
            "anthropic_client_requests_total", {"method": "POST", "status": "200"},
        ) is None

    def test_singleton(self):
        """get_metrics returns one collector until reset."""
        first = get_metrics()
        assert get_metrics() is first
        MetricsCollector.reset_instance()
        assert get_metrics() is not first

    @pytest.mark.asyncio
    async def test_client_records_retries(self, make_client):
        """A retried call counts the retry by status."""
        client, _ = make_client(
            httpx.Response(529, json=error_body("overloaded_error")),
            httpx.Response(200, json={"input_tokens": 1}),
        )
        await client.messages.count_tokens(model="claude-sonnet-4-6", messages=[{"role": "user", "content": "x"}])
        registry = get_metrics().registry
        assert registry.get_sample_value("anthropic_client_retries_total", {"reason": "529"}) == 1.0


# ============================================================
# Tracing Tests
# ============================================================

class TestTracing:
    """Tests for request spans and propagation."""

    @pytest.fixture
    def exporter(self):
        """Route library spans to an in-memory exporter."""
        exporter = InMemorySpanExporter()
        provider = TracerProvider()
        provider.add_span_processor(SimpleSpanProcessor(exporter))
        tracer = provider.get_tracer("anthropic_client")
        with patch("anthropic_client.observability.tracing.get_tracer", return_value=tracer):
            yield exporter

    def test_span_attributes(self, exporter):
        """The request span carries method, route and attempt."""
        with trace_request("POST", "/v1/messages", attempt=1) as span:
            set_response_status(span, 200)

        (finished,) = exporter.get_finished_spans()
        assert finished.name == "anthropic.request"
        assert finished.attributes["http.method"] == "POST"
        assert finished.attributes["http.route"] == "/v1/messages"
        assert finished.attributes["anthropic.attempt"] == 1
        assert finished.attributes["http.status_code"] == 200
        assert finished.status.status_code == StatusCode.OK

    def test_error_status(self, exporter):
        """4xx/5xx responses mark the span as an error."""
        with trace_request("POST", "/v1/messages", attempt=0) as span:
            set_response_status(span, 529)
        assert exporter.get_finished_spans()[0].status.status_code == StatusCode.ERROR

    def test_exception_recorded(self, exporter):
        """An exception inside the span is recorded and re-raised."""
        with pytest.raises(RuntimeError):
            with trace_request("GET", "/v1/models", attempt=0):
                raise RuntimeError("boom")
        finished = exporter.get_finished_spans()[0]
        assert finished.status.status_code == StatusCode.ERROR
        assert finished.events[0].name == "exception"

    def test_traceparent_injected_inside_span(self, exporter):
        """An active span produces a traceparent header."""
        with trace_request("POST", "/v1/messages", attempt=0):
            headers = inject_trace_context({})
        assert headers["traceparent"].startswith("00-")

    def test_no_traceparent_without_span(self):
        """Nothing is injected without an active span."""
        assert "traceparent" not in inject_trace_context({})

    @pytest.mark.asyncio
    async def test_one_span_per_attempt(self, exporter, make_client):
        """A retried call produces one span per attempt."""
        client, _ = make_client(
            httpx.Response(500, json=error_body("api_error")),
            httpx.Response(200, json={"input_tokens": 1}),
        )
        await client.messages.count_tokens(model="claude-sonnet-4-6", messages=[{"role": "user", "content": "x"}])
        attempts = [span.attributes["anthropic.attempt"] for span in exporter.get_finished_spans()]
        assert attempts == [0, 1]


# ============================================================
# Logging Tests
# ============================================================

def make_record(message="hello", **fields):
    record = logging.LogRecord("anthropic_client.test", logging.INFO, __file__, 1, message, None, None)
    for key, value in fields.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_basic_fields(self):
        """Output is one JSON object with level, logger and message."""
        data = json.loads(JSONFormatter().format(make_record("Sending request", attempt=2)))
        assert data["level"] == "INFO"
        assert data["logger"] == "anthropic_client.test"
        assert data["message"] == "Sending request"
        assert data["attempt"] == 2
        assert "timestamp" in data

    def test_sensitive_fields_redacted(self):
        """Credential-like fields are redacted."""
        data = json.loads(JSONFormatter().format(make_record(api_key="sk-ant-secret", x_authorization="Bearer t")))
        assert data["api_key"] == "[REDACTED]"
        assert data["x_authorization"] == "[REDACTED]"

    def test_redaction_can_be_disabled(self):
        """redact_sensitive=False leaves values alone."""
        data = json.loads(JSONFormatter(redact_sensitive=False).format(make_record(token="abc")))
        assert data["token"] == "abc"

    def test_location(self):
        """include_location adds filename:lineno."""
        data = json.loads(JSONFormatter(include_location=True).format(make_record()))
        assert data["location"].endswith(":1")


class TestLogContext:
    """Tests for per-call log context."""

    def test_no_context_by_default(self):
        """Outside a block there is no context."""
        assert LogContext.get_current() is None

    def test_nested_contexts(self):
        """Inner blocks inherit and override; exit restores the parent."""
        with log_context(method="POST", path="/v1/messages", tenant="a"):
            with log_context(attempt=2, tenant="b") as inner:
                assert inner.to_dict() == {"method": "POST", "path": "/v1/messages", "attempt": 2, "tenant": "b"}
            outer = LogContext.get_current()
            assert outer.attempt == 0
            assert outer.extra == {"tenant": "a"}
        assert LogContext.get_current() is None

    def test_context_in_formatted_output(self):
        """The formatter injects the active context."""
        with log_context(request_id="req_1"):
            data = json.loads(JSONFormatter().format(make_record()))
        assert data["request_id"] == "req_1"


class TestStructuredLogger:
    """Tests for StructuredLogger and setup_logging."""

    def test_kwargs_become_fields(self, caplog):
        """Keyword arguments land on the record."""
        logger = get_logger("anthropic_client.test")
        with caplog.at_level(logging.DEBUG, logger="anthropic_client.test"):
            with log_context(path="/v1/models"):
                logger.debug("Listing", limit=5)
        record = caplog.records[0]
        assert record.getMessage() == "Listing"
        assert record.limit == 5
        assert record.path == "/v1/models"

    def test_no_handlers_installed_on_import(self):
        """The library logger starts without its own handler."""
        handlers = logging.getLogger("anthropic_client").handlers
        assert not any(getattr(h, "_anthropic_client_handler", False) for h in handlers)

    def test_setup_logging_replaces_handler(self):
        """Calling setup_logging twice leaves one library handler."""
        package_logger = logging.getLogger("anthropic_client")
        try:
            setup_logging(level="DEBUG")
            handler = setup_logging(level="WARNING")
            ours = [h for h in package_logger.handlers if getattr(h, "_anthropic_client_handler", False)]
            assert ours == [handler]
            assert isinstance(handler.formatter, JSONFormatter)
            assert package_logger.level == logging.WARNING
        finally:
            for h in package_logger.handlers[:]:
                if getattr(h, "_anthropic_client_handler", False):
                    package_logger.removeHandler(h)
            package_logger.setLevel(logging.NOTSET)

    @pytest.mark.asyncio
    async def test_retry_logged_as_warning(self, caplog, make_client):
        """Scheduled retries log at WARNING."""
        client, _ = make_client(
            httpx.Response(429, json=error_body("rate_limit_error")),
            httpx.Response(200, json={"input_tokens": 1}),
        )
        with caplog.at_level(logging.DEBUG, logger="anthropic_client"):
            await client.messages.count_tokens(model="claude-sonnet-4-6", messages=[{"role": "user", "content": "x"}])
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert warnings
