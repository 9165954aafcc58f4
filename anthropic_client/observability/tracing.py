"""
anthropic-client - OpenTelemetry Tracing

Spans for outgoing API attempts and W3C trace context propagation.

The library only depends on the OpenTelemetry API: without a configured
``TracerProvider`` every span is a no-op. Applications that want spans
either install their own provider or call ``setup_tracing``.

Usage:
    from anthropic_client.observability.tracing import setup_tracing

    setup_tracing(service_name="my-app", console_export=True)
"""

from contextlib import contextmanager
from typing import Any, Dict, Iterator, MutableMapping, Optional

from opentelemetry import trace
from opentelemetry.propagate import inject, set_global_textmap
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import ConsoleSpanExporter, SimpleSpanProcessor
from opentelemetry.trace import SpanKind, Status, StatusCode
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

from .._version import __version__


INSTRUMENTATION_NAME = "anthropic_client"
INSTRUMENTATION_VERSION = __version__


def setup_tracing(
    service_name: str = "anthropic-client",
    service_version: str = INSTRUMENTATION_VERSION,
    console_export: bool = False,
) -> TracerProvider:
    """
    Install an SDK tracer provider and the W3C trace context propagator.

    Args:
        service_name: Name reported on every span's resource
        service_version: Version reported on every span's resource
        console_export: Print finished spans to stdout (debugging aid)

    Returns:
        The installed TracerProvider
    """
    provider = TracerProvider(resource=Resource.create({
        SERVICE_NAME: service_name,
        SERVICE_VERSION: service_version,
    }))
    if console_export:
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
    set_global_textmap(TraceContextTextMapPropagator())
    return provider


def get_tracer() -> trace.Tracer:
    """Get the library tracer from the current global provider."""
    return trace.get_tracer(INSTRUMENTATION_NAME, INSTRUMENTATION_VERSION)


def inject_trace_context(headers: MutableMapping[str, str]) -> MutableMapping[str, str]:
    """
    Inject the current trace context (``traceparent``) into outgoing headers.

    Nothing is written when there is no active, valid span.
    """
    inject(headers)
    return headers


@contextmanager
def trace_request(
    method: str,
    path: str,
    attempt: int,
    attributes: Optional[Dict[str, Any]] = None,
) -> Iterator[trace.Span]:
    """
    Client span around one HTTP attempt.

    Usage:
        with trace_request("POST", "/v1/messages", attempt=0) as span:
            response = await client.send(request)
            span.set_attribute("http.status_code", response.status_code)
    """
    span_attributes: Dict[str, Any] = {
        "http.method": method,
        "http.route": path,
        "anthropic.attempt": attempt,
    }
    if attributes:
        span_attributes.update(attributes)

    with get_tracer().start_as_current_span(
        "anthropic.request",
        kind=SpanKind.CLIENT,
        attributes=span_attributes,
        record_exception=True,
        set_status_on_exception=True,
    ) as span:
        yield span


def set_response_status(span: trace.Span, status_code: int) -> None:
    """Annotate a request span with the HTTP status."""
    span.set_attribute("http.status_code", status_code)
    if status_code >= 400:
        span.set_status(Status(StatusCode.ERROR, f"HTTP {status_code}"))
    else:
        span.set_status(Status(StatusCode.OK))
