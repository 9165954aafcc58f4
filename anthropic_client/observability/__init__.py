"""
anthropic-client - Observability Module

- Structured JSON logging with per-call context
- Prometheus metrics on a dedicated registry
- OpenTelemetry spans and W3C trace context propagation
"""

from .logging import (
    JSONFormatter,
    LogContext,
    StructuredLogger,
    get_logger,
    log_context,
    setup_logging,
)
from .metrics import MetricsCollector, get_metrics
from .tracing import (
    get_tracer,
    inject_trace_context,
    set_response_status,
    setup_tracing,
    trace_request,
)

__all__ = [
    # Logging
    "JSONFormatter",
    "LogContext",
    "StructuredLogger",
    "get_logger",
    "log_context",
    "setup_logging",
    # Metrics
    "MetricsCollector",
    "get_metrics",
    # Tracing
    "get_tracer",
    "inject_trace_context",
    "set_response_status",
    "setup_tracing",
    "trace_request",
]
