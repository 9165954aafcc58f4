"""
anthropic-client - Structured Logging

Structured logging with per-call context injection.

The library never installs handlers on import; applications opt in with
``setup_logging``.

Usage:
    from anthropic_client.observability.logging import setup_logging, get_logger

    setup_logging(level="DEBUG")

    logger = get_logger(__name__)
    logger.warning("Retrying request", attempt=1, delay=0.42)

Output:
    {"timestamp": "2026-01-15T10:30:00+00:00", "level": "WARNING",
     "logger": "anthropic_client.core.http_client", "message": "Retrying request",
     "attempt": 1, "delay": 0.42, "method": "POST", "path": "/v1/messages"}
"""

import json
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional, Union


_call_context: ContextVar[Optional["LogContext"]] = ContextVar(
    "anthropic_client_log_context", default=None
)

# LogRecord attributes that are never treated as structured fields
_RESERVED_ATTRS = frozenset({
    "name", "msg", "args", "created", "filename",
    "funcName", "levelname", "levelno", "lineno",
    "module", "msecs", "pathname", "process",
    "processName", "relativeCreated", "stack_info",
    "exc_info", "exc_text", "thread", "threadName",
    "message", "taskName",
})


@dataclass
class LogContext:
    """
    Correlation fields for one logical call.

    Stored in a ContextVar so concurrent calls on the same event loop never
    see each other's fields.
    """
    request_id: str = ""
    method: str = ""
    path: str = ""
    attempt: int = 0
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def get_current(cls) -> Optional["LogContext"]:
        return _call_context.get()

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        if self.request_id:
            result["request_id"] = self.request_id
        if self.method:
            result["method"] = self.method
        if self.path:
            result["path"] = self.path
        if self.attempt:
            result["attempt"] = self.attempt
        result.update(self.extra)
        return result


@contextmanager
def log_context(**fields: Any) -> Iterator[LogContext]:
    """
    Bind correlation fields for the duration of a block.

    Nested blocks inherit and override the enclosing fields; the enclosing
    context is restored on exit.
    """
    parent = LogContext.get_current() or LogContext()
    known = {k: v for k, v in fields.items() if k in LogContext.__dataclass_fields__ and k != "extra"}
    extra = {**parent.extra, **{k: v for k, v in fields.items() if k not in known}}
    ctx = replace(parent, extra=extra, **known)
    token = _call_context.set(ctx)
    try:
        yield ctx
    finally:
        _call_context.reset(token)


class JSONFormatter(logging.Formatter):
    """
    JSON log formatter with automatic context injection.

    Fields whose name looks like a credential are redacted.
    """

    SENSITIVE_FIELDS = {
        "password", "secret", "token", "api_key", "apikey",
        "authorization", "auth", "credential", "private_key",
    }

    def __init__(self, include_location: bool = False, redact_sensitive: bool = True):
        super().__init__()
        self.include_location = include_location
        self.redact_sensitive = redact_sensitive

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if self.include_location:
            log_data["location"] = f"{record.filename}:{record.lineno}"

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        ctx = LogContext.get_current()
        if ctx:
            log_data.update(ctx.to_dict())

        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS:
                continue
            if self.redact_sensitive and self._is_sensitive(key):
                value = "[REDACTED]"
            log_data[key] = value

        return json.dumps(log_data, default=str, ensure_ascii=False)

    def _is_sensitive(self, field_name: str) -> bool:
        field_lower = field_name.lower()
        return any(sensitive in field_lower for sensitive in self.SENSITIVE_FIELDS)


class StructuredLogger:
    """
    Logger wrapper whose keyword arguments become structured fields.

    Example:
        logger.debug("Sending request", attempt=0, url=str(url))
    """

    def __init__(self, logger: logging.Logger):
        self._logger = logger

    @property
    def name(self) -> str:
        return self._logger.name

    def _log(self, level: int, msg: str, *args: Any, **kwargs: Any) -> None:
        if not self._logger.isEnabledFor(level):
            return
        extra = dict(kwargs.pop("extra", None) or {})

        ctx = LogContext.get_current()
        if ctx:
            for key, value in ctx.to_dict().items():
                extra.setdefault(key, value)

        for key in list(kwargs):
            if key not in {"exc_info", "stack_info", "stacklevel"}:
                extra[key] = kwargs.pop(key)

        kwargs["extra"] = extra
        self._logger.log(level, msg, *args, **kwargs)

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.ERROR, msg, *args, **kwargs)

    def exception(self, msg: str, *args: Any, **kwargs: Any) -> None:
        kwargs["exc_info"] = True
        self._log(logging.ERROR, msg, *args, **kwargs)


def setup_logging(
    level: Union[str, int] = "INFO",
    json_output: bool = True,
    include_location: bool = False,
    redact_sensitive: bool = True,
) -> logging.Handler:
    """
    Attach a stdout handler to the ``anthropic_client`` logger.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Use JSON formatter (True) or standard formatter (False)
        include_location: Include filename:lineno in logs
        redact_sensitive: Redact credential-like fields

    Returns:
        The installed handler, so callers can remove it again
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    package_logger = logging.getLogger("anthropic_client")
    package_logger.setLevel(level)

    for handler in package_logger.handlers[:]:
        if getattr(handler, "_anthropic_client_handler", False):
            package_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    if json_output:
        handler.setFormatter(JSONFormatter(
            include_location=include_location,
            redact_sensitive=redact_sensitive,
        ))
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        ))
    handler._anthropic_client_handler = True  # type: ignore[attr-defined]
    package_logger.addHandler(handler)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    return handler


def get_logger(name: str) -> StructuredLogger:
    """
    Get a structured logger.

    Args:
        name: Logger name (typically __name__)
    """
    return StructuredLogger(logging.getLogger(name))
