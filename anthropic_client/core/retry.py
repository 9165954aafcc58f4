"""
anthropic-client - Retry Logic

Exponential backoff with full jitter and server-directed wait hints.

Backoff for attempt ``n`` (0-based) is ``min(max_delay, initial_delay * 2**n)``;
the actual wait is drawn uniformly from ``[0, backoff]``. A server wait hint
(``retry-after-ms`` or ``retry-after``) replaces the computed wait for that
attempt, capped at ``max_delay``. ``x-should-retry`` forces or suppresses the
retry regardless of status.
"""

import asyncio
import random
import time
from email.utils import parsedate_to_datetime
from typing import Any, Awaitable, Callable, Mapping, Optional, TypeVar

from .errors import AnthropicError, RetriesExhausted, is_retryable_error
from ..observability.logging import get_logger
from ..observability.metrics import get_metrics


T = TypeVar("T")

logger = get_logger(__name__)

DEFAULT_MAX_RETRIES = 2
DEFAULT_INITIAL_DELAY = 0.5
DEFAULT_MAX_DELAY = 8.0


def calculate_backoff(
    attempt: int,
    initial_delay: float = DEFAULT_INITIAL_DELAY,
    max_delay: float = DEFAULT_MAX_DELAY,
) -> float:
    """
    Pre-jitter backoff for an attempt.

    Args:
        attempt: Retry attempt (0-based)
        initial_delay: Delay for attempt 0, in seconds
        max_delay: Ceiling, in seconds

    Returns:
        ``min(max_delay, initial_delay * 2**attempt)``
    """
    # 2**attempt overflows float for absurd attempt counts; the cap applies long before
    if attempt >= 64:
        return max_delay
    return min(max_delay, initial_delay * (2 ** attempt))


def parse_retry_after(headers: Optional[Mapping[str, str]], now: Optional[float] = None) -> Optional[float]:
    """
    Read a server wait hint, in seconds.

    ``retry-after-ms`` wins over ``retry-after``. ``retry-after`` may be a
    number of seconds or an HTTP date; a date in the past yields ``0``.
    Malformed values are ignored.
    """
    if not headers:
        return None

    raw_ms = headers.get("retry-after-ms")
    if raw_ms is not None:
        try:
            return max(0.0, float(raw_ms) / 1000.0)
        except ValueError:
            pass

    raw = headers.get("retry-after")
    if raw is None:
        return None
    try:
        return max(0.0, float(raw))
    except ValueError:
        pass

    try:
        when = parsedate_to_datetime(raw)
    except (TypeError, ValueError, IndexError):
        return None
    if when is None:
        return None
    now = time.time() if now is None else now
    return max(0.0, when.timestamp() - now)


def should_retry_header(headers: Optional[Mapping[str, str]]) -> Optional[bool]:
    """Value of ``x-should-retry`` (``True``/``False``), or None when absent or unrecognized."""
    if not headers:
        return None
    raw = headers.get("x-should-retry")
    if raw is None:
        return None
    value = raw.strip().lower()
    if value == "true":
        return True
    if value == "false":
        return False
    return None


def _retry_reason(error: AnthropicError) -> str:
    status = getattr(error, "status", None)
    if status is not None:
        return str(status)
    return type(error).__name__


class RetryPolicy:
    """
    Retry policy for API calls.

    One instance is shared by every call of a client; per-call state (the
    attempt counter) lives in ``execute_async``'s frame.

    Example:
        policy = RetryPolicy(max_retries=5, initial_delay=0.25)
        result = await policy.execute_async(lambda attempt: send(attempt))
    """

    def __init__(
        self,
        max_retries: int = DEFAULT_MAX_RETRIES,
        initial_delay: float = DEFAULT_INITIAL_DELAY,
        max_delay: float = DEFAULT_MAX_DELAY,
        on_retry: Optional[Callable[[int, Exception, float], None]] = None,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
    ):
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self.max_retries = max_retries
        self.initial_delay = initial_delay
        self.max_delay = max_delay
        self.on_retry = on_retry
        self.sleep = sleep or asyncio.sleep

    def __repr__(self) -> str:
        return (
            f"RetryPolicy(max_retries={self.max_retries}, "
            f"initial_delay={self.initial_delay}, max_delay={self.max_delay})"
        )

    def compute_backoff(self, attempt: int) -> float:
        return calculate_backoff(attempt, self.initial_delay, self.max_delay)

    def delay_for_attempt(self, attempt: int, retry_after: Optional[float] = None) -> float:
        """
        Wait before the retry that follows ``attempt``.

        Args:
            attempt: The attempt that just failed (0-based)
            retry_after: Server wait hint in seconds, if any

        Returns:
            The hint capped at ``max_delay`` when given, otherwise a value drawn
            uniformly from ``[0, compute_backoff(attempt)]``
        """
        if retry_after is not None:
            return min(max(0.0, retry_after), self.max_delay)
        return random.uniform(0, self.compute_backoff(attempt))

    def should_retry(self, error: Exception) -> bool:
        """
        Decide whether a failed attempt is worth retrying, budget aside.

        ``x-should-retry`` on the error's response headers is authoritative;
        otherwise the error's own classification applies.
        """
        hint = should_retry_header(getattr(error, "headers", None))
        if hint is not None:
            return hint
        return is_retryable_error(error)

    async def execute_async(self, func: Callable[[int], Awaitable[T]]) -> T:
        """
        Run ``func(attempt)`` until it succeeds or the policy gives up.

        Raises:
            RetriesExhausted: A retryable failure persisted past ``max_retries``
            AnthropicError: A non-retryable failure, unchanged
        """
        attempt = 0
        while True:
            try:
                return await func(attempt)
            except AnthropicError as e:
                if not self.should_retry(e):
                    raise
                if attempt >= self.max_retries:
                    logger.error(
                        "Retries exhausted",
                        attempts=attempt + 1,
                        error=repr(e),
                    )
                    raise RetriesExhausted(e, attempts=attempt + 1) from e

                hint = parse_retry_after(getattr(e, "headers", None))
                delay = self.delay_for_attempt(attempt, hint)
                logger.warning(
                    "Retrying request",
                    retry_attempt=attempt + 1,
                    max_retries=self.max_retries,
                    delay=round(delay, 3),
                    retry_hint=hint,
                    error=repr(e),
                )

                get_metrics().record_retry(_retry_reason(e))
                if self.on_retry:
                    self.on_retry(attempt, e, delay)

                await self.sleep(delay)
                attempt += 1
